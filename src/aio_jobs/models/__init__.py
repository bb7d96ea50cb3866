"""Pydantic models for API requests/responses and domain objects."""

from .content import ContentType
from .embedding import Embedding, EmbeddingFilter, EmbeddingPage
from .job import (
    BulkEmbeddingRequest,
    BulkEnqueueResult,
    BulkTranslationRequest,
    DrainResult,
    EmbeddingJob,
    EmbeddingJobCreate,
    EnqueueResult,
    JobFilter,
    JobKind,
    JobPage,
    JobStatus,
    TranslationJob,
    TranslationJobCreate,
)
from .metrics import EmbeddingMetrics, JobMetrics, PerformanceSummary
from .session import (
    InterviewSession,
    InterviewSessionCreate,
    LatestSessionState,
    SaveAnswersConflict,
    SaveAnswersRequest,
    SaveAnswersSuccess,
    SessionDetail,
    SessionStatus,
)

__all__ = [
    "ContentType",
    "Embedding",
    "EmbeddingFilter",
    "EmbeddingPage",
    "BulkEmbeddingRequest",
    "BulkEnqueueResult",
    "BulkTranslationRequest",
    "DrainResult",
    "EmbeddingJob",
    "EmbeddingJobCreate",
    "EnqueueResult",
    "JobFilter",
    "JobKind",
    "JobPage",
    "JobStatus",
    "TranslationJob",
    "TranslationJobCreate",
    "EmbeddingMetrics",
    "JobMetrics",
    "PerformanceSummary",
    "InterviewSession",
    "InterviewSessionCreate",
    "LatestSessionState",
    "SaveAnswersConflict",
    "SaveAnswersRequest",
    "SaveAnswersSuccess",
    "SessionDetail",
    "SessionStatus",
]
