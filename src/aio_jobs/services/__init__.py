"""Job pipeline and session services."""

from .bulk_enqueue import BulkEnqueueOrchestrator
from .drain import DrainService, EmbeddingDrain, TranslationDrain
from .job_queue import JobQueue
from .metrics import MetricsAggregator
from .performance import PerformanceCollector
from .session_store import SessionStore

__all__ = [
    "BulkEnqueueOrchestrator",
    "DrainService",
    "EmbeddingDrain",
    "TranslationDrain",
    "JobQueue",
    "MetricsAggregator",
    "PerformanceCollector",
    "SessionStore",
]
