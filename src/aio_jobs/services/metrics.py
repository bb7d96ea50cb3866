"""Job metrics aggregation."""

import logging
from collections import Counter
from typing import Iterable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database.session import SessionLocal
from ..models.job import JobStatus
from ..models.metrics import EmbeddingMetrics, JobMetrics
from ..repositories.job_repository import EmbeddingJobRepository, TranslationJobRepository

logger = logging.getLogger(__name__)


def aggregate_job_metrics(rows: Iterable[Mapping]) -> dict:
    """
    Reduce job rows to summary statistics.

    Average processing time uses only completed jobs that have both
    started_at and completed_at.

    Args:
        rows: Mappings with status, source_table, started_at, completed_at
            and optionally target_lang

    Returns:
        Dict of JobMetrics fields
    """
    statuses: Counter = Counter()
    by_language: Counter = Counter()
    by_table: Counter = Counter()
    durations = []

    for row in rows:
        status = row["status"]
        statuses[status] += 1
        by_table[row["source_table"]] += 1
        if row.get("target_lang"):
            by_language[row["target_lang"]] += 1

        if (
            status == JobStatus.COMPLETED.value
            and row.get("started_at")
            and row.get("completed_at")
        ):
            durations.append((row["completed_at"] - row["started_at"]).total_seconds() / 60)

    total = sum(statuses.values())
    completed = statuses[JobStatus.COMPLETED.value]

    return {
        "total_jobs": total,
        "pending_jobs": statuses[JobStatus.PENDING.value],
        "in_progress_jobs": statuses[JobStatus.IN_PROGRESS.value],
        "completed_jobs": completed,
        "failed_jobs": statuses[JobStatus.FAILED.value],
        "cancelled_jobs": statuses[JobStatus.CANCELLED.value],
        "avg_processing_time_minutes": (
            round(sum(durations) / len(durations), 2) if durations else None
        ),
        "success_rate_percent": round(completed / total * 100) if total else 0,
        "jobs_by_language": dict(by_language),
        "jobs_by_table": dict(by_table),
    }


class MetricsAggregator:
    """Reads job tables and reports summary statistics."""

    def __init__(self, session_factory: async_sessionmaker = SessionLocal):
        self._session_factory = session_factory

    async def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        return self._session_factory()

    async def translation_metrics(self, organization_id: Optional[str] = None) -> JobMetrics:
        """Metrics over translation jobs, optionally for one organization."""
        async with await self._get_session() as session:
            rows = await TranslationJobRepository(session).get_metric_rows(organization_id)
        return JobMetrics(**aggregate_job_metrics(rows))

    async def embedding_metrics(self, organization_id: Optional[str] = None) -> EmbeddingMetrics:
        """Metrics over embedding jobs plus embedding row counts."""
        async with await self._get_session() as session:
            repo = EmbeddingJobRepository(session)
            rows = await repo.get_metric_rows(organization_id)
            stats = await repo.get_embedding_stats(organization_id)
        return EmbeddingMetrics(**aggregate_job_metrics(rows), **stats)
