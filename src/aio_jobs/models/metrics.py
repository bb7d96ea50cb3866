"""Metrics models."""

from typing import Optional

from pydantic import BaseModel, Field


class JobMetrics(BaseModel):
    """Summary statistics over a job table."""

    total_jobs: int = 0
    pending_jobs: int = 0
    in_progress_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    cancelled_jobs: int = 0
    avg_processing_time_minutes: Optional[float] = None  # None when no completed job has both timestamps
    success_rate_percent: int = 0
    jobs_by_language: dict[str, int] = Field(default_factory=dict)
    jobs_by_table: dict[str, int] = Field(default_factory=dict)


class EmbeddingMetrics(JobMetrics):
    """Job metrics plus embedding row statistics."""

    total_embeddings: int = 0
    active_embeddings: int = 0
    embeddings_by_model: dict[str, int] = Field(default_factory=dict)


class PerformanceSummary(BaseModel):
    """Summary of the request performance ring buffer."""

    count: int = 0
    capacity: int
    error_count: int = 0
    avg_duration_ms: Optional[float] = None
    p95_duration_ms: Optional[float] = None
    max_duration_ms: Optional[float] = None
