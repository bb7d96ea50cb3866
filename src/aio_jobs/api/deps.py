"""API dependencies."""

from typing import Annotated, NoReturn

from fastapi import Depends, Header, HTTPException

from aio_jobs.core.config import settings
from aio_jobs.core.errors import (
    AioJobsError,
    JobStateError,
    JobValidationError,
    NotFoundError,
)
from aio_jobs.services.bulk_enqueue import BulkEnqueueOrchestrator
from aio_jobs.services.drain import EmbeddingDrain, TranslationDrain
from aio_jobs.services.job_queue import JobQueue
from aio_jobs.services.metrics import MetricsAggregator
from aio_jobs.services.performance import PerformanceCollector
from aio_jobs.services.session_store import SessionStore

# Global service instances
_job_queue: JobQueue | None = None
_translation_drain: TranslationDrain | None = None
_embedding_drain: EmbeddingDrain | None = None
_bulk_enqueue: BulkEnqueueOrchestrator | None = None
_metrics: MetricsAggregator | None = None
_session_store: SessionStore | None = None
_performance: PerformanceCollector | None = None


def init_services(
    job_queue: JobQueue,
    translation_drain: TranslationDrain,
    embedding_drain: EmbeddingDrain,
    bulk_enqueue: BulkEnqueueOrchestrator,
    metrics: MetricsAggregator,
    session_store: SessionStore,
    performance: PerformanceCollector,
) -> None:
    """Initialize service instances."""
    global _job_queue, _translation_drain, _embedding_drain, _bulk_enqueue
    global _metrics, _session_store, _performance
    _job_queue = job_queue
    _translation_drain = translation_drain
    _embedding_drain = embedding_drain
    _bulk_enqueue = bulk_enqueue
    _metrics = metrics
    _session_store = session_store
    _performance = performance


def get_job_queue() -> JobQueue:
    """Get the job queue instance."""
    if _job_queue is None:
        raise RuntimeError("Services not initialized")
    return _job_queue


def get_translation_drain() -> TranslationDrain:
    """Get the translation drain instance."""
    if _translation_drain is None:
        raise RuntimeError("Services not initialized")
    return _translation_drain


def get_embedding_drain() -> EmbeddingDrain:
    """Get the embedding drain instance."""
    if _embedding_drain is None:
        raise RuntimeError("Services not initialized")
    return _embedding_drain


def get_bulk_enqueue() -> BulkEnqueueOrchestrator:
    """Get the bulk enqueue orchestrator instance."""
    if _bulk_enqueue is None:
        raise RuntimeError("Services not initialized")
    return _bulk_enqueue


def get_metrics() -> MetricsAggregator:
    """Get the metrics aggregator instance."""
    if _metrics is None:
        raise RuntimeError("Services not initialized")
    return _metrics


def get_session_store() -> SessionStore:
    """Get the session store instance."""
    if _session_store is None:
        raise RuntimeError("Services not initialized")
    return _session_store


def get_performance() -> PerformanceCollector:
    """Get the performance collector instance."""
    if _performance is None:
        raise RuntimeError("Services not initialized")
    return _performance


async def verify_api_key(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Verify API key if configured."""
    if not settings.api_key:
        return  # No API key required

    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    # Expect "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization format")

    if parts[1] != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")


def raise_http_error(error: AioJobsError) -> NoReturn:
    """Translate a service error into an HTTP error response."""
    if isinstance(error, JobValidationError):
        raise HTTPException(status_code=400, detail=error.message) from error
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=404, detail=error.message) from error
    if isinstance(error, JobStateError):
        raise HTTPException(status_code=409, detail=error.message) from error
    raise HTTPException(status_code=500, detail=error.message) from error


# Type aliases for dependency injection
JobQueueDep = Annotated[JobQueue, Depends(get_job_queue)]
TranslationDrainDep = Annotated[TranslationDrain, Depends(get_translation_drain)]
EmbeddingDrainDep = Annotated[EmbeddingDrain, Depends(get_embedding_drain)]
BulkEnqueueDep = Annotated[BulkEnqueueOrchestrator, Depends(get_bulk_enqueue)]
MetricsDep = Annotated[MetricsAggregator, Depends(get_metrics)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
PerformanceDep = Annotated[PerformanceCollector, Depends(get_performance)]
ApiKeyDep = Annotated[None, Depends(verify_api_key)]
