"""Repository layer for database operations."""

from .content_repository import ContentRepository
from .job_repository import EmbeddingJobRepository, JobRepository, TranslationJobRepository
from .session_repository import InterviewSessionRepository

__all__ = [
    "ContentRepository",
    "JobRepository",
    "TranslationJobRepository",
    "EmbeddingJobRepository",
    "InterviewSessionRepository",
]
