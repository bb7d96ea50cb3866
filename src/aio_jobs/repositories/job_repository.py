"""Job repositories for database operations."""

from datetime import datetime, timedelta
from typing import Any, Optional, Type, TypeVar
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models.embedding import EmbeddingORM
from ..database.models.job import EmbeddingJobORM, TranslationJobORM
from ..models.embedding import Embedding, EmbeddingFilter
from ..models.job import (
    ACTIVE_STATUSES,
    EmbeddingJob,
    JobBase,
    JobFilter,
    JobStatus,
    TranslationJob,
)
from .base import BaseRepository

ORMT = TypeVar("ORMT", TranslationJobORM, EmbeddingJobORM)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


class JobRepository(BaseRepository[ORMT]):
    """Queue operations shared by the translation and embedding job tables.

    Every status transition is a conditional UPDATE on the expected current
    status, so concurrent drain cycles and cancellations never overwrite each
    other's work.
    """

    schema: Type[JobBase]

    def __init__(self, model: Type[ORMT], session: AsyncSession):
        """Initialize job repository."""
        super().__init__(model, session)

    def to_pydantic(self, job_orm: ORMT) -> JobBase:
        """
        Convert ORM model to Pydantic model.

        Args:
            job_orm: ORM job instance

        Returns:
            Pydantic job model
        """
        return self.schema.model_validate(job_orm)

    async def create_job(self, **values: Any) -> ORMT:
        """
        Insert a new pending job.

        Args:
            **values: Column values; id and bookkeeping defaults are filled in

        Returns:
            ORM job instance
        """
        values.setdefault("id", str(uuid4()))
        values.setdefault("status", JobStatus.PENDING.value)
        values.setdefault("retry_count", 0)
        return await self.create(self.model(**values))

    async def get_active_by_key(self, idempotency_key: str) -> Optional[ORMT]:
        """
        Get the outstanding (pending/in_progress) job for an idempotency key.

        Args:
            idempotency_key: Idempotency key

        Returns:
            ORM job instance or None
        """
        result = await self.session.execute(
            select(self.model)
            .where(self.model.idempotency_key == idempotency_key)
            .where(self.model.status.in_(_ACTIVE_VALUES))
        )
        return result.scalars().first()

    async def list_filtered(self, job_filter: JobFilter) -> tuple[list[JobBase], int]:
        """
        List jobs matching a filter in drain order.

        Args:
            job_filter: Filter and paging options

        Returns:
            Tuple of (page of jobs, total matching count)
        """
        query = select(self.model)
        conditions = [
            (job_filter.organization_id, lambda v: self.model.organization_id == v),
            (job_filter.source_table, lambda v: self.model.source_table == v.value),
            (job_filter.source_field, lambda v: self.model.source_field == v),
            (job_filter.status, lambda v: self.model.status == v.value),
            (job_filter.priority_min, lambda v: self.model.priority >= v),
            (job_filter.priority_max, lambda v: self.model.priority <= v),
            (job_filter.created_after, lambda v: self.model.created_at >= v),
            (job_filter.created_before, lambda v: self.model.created_at <= v),
        ]
        if hasattr(self.model, "target_lang"):
            conditions.append((job_filter.source_lang, lambda v: self.model.source_lang == v))
            conditions.append((job_filter.target_lang, lambda v: self.model.target_lang == v))

        for value, condition in conditions:
            if value is not None:
                query = query.where(condition(value))

        total = await self.session.scalar(
            select(func.count()).select_from(query.subquery())
        )

        query = (
            query.order_by(*self._drain_order())
            .limit(job_filter.limit)
            .offset(job_filter.offset)
        )
        result = await self.session.execute(query)
        return [self.to_pydantic(job) for job in result.scalars().all()], total or 0

    async def get_eligible_ids(self, now: datetime, limit: int) -> list[str]:
        """
        Get ids of pending jobs that are due, highest priority first.

        Args:
            now: Current time; jobs scheduled later are not eligible
            limit: Maximum number of ids

        Returns:
            Job ids ordered by priority DESC, scheduled_at ASC
        """
        result = await self.session.execute(
            select(self.model.id)
            .where(self.model.status == JobStatus.PENDING.value)
            .where(self.model.scheduled_at <= now)
            .order_by(*self._drain_order())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def claim(self, job_id: str, now: datetime) -> bool:
        """
        Atomically move a job from pending to in_progress.

        Args:
            job_id: Job ID
            now: Claim time, stored as started_at

        Returns:
            True if this caller claimed the job, False if it was no longer pending
        """
        return await self.update_where(
            job_id,
            self.model.status == JobStatus.PENDING.value,
            status=JobStatus.IN_PROGRESS.value,
            started_at=now,
            updated_at=now,
        )

    async def mark_completed(self, job_id: str, now: datetime, **output: Any) -> bool:
        """
        Finalize an in-progress job as completed.

        Args:
            job_id: Job ID
            now: Completion time
            **output: Output columns to write (e.g. translated_text)

        Returns:
            True if written, False if the job is no longer in progress
        """
        return await self.update_where(
            job_id,
            self.model.status == JobStatus.IN_PROGRESS.value,
            status=JobStatus.COMPLETED.value,
            completed_at=now,
            error_message=None,
            updated_at=now,
            **output,
        )

    async def record_failure(
        self,
        job_id: str,
        error_message: str,
        now: datetime,
        retry_base_delay_seconds: float,
    ) -> Optional[JobStatus]:
        """
        Record a failed execution attempt.

        Requeues the job with exponential backoff while retry budget remains,
        otherwise finalizes it as failed.

        Args:
            job_id: Job ID
            error_message: Failure reason
            now: Failure time
            retry_base_delay_seconds: Backoff base; doubles per retry

        Returns:
            Resulting status, or None if the job is no longer in progress
        """
        job_orm = await self.get(job_id)
        if not job_orm or job_orm.status != JobStatus.IN_PROGRESS.value:
            return None

        if job_orm.retry_count < job_orm.max_retries:
            delay = retry_base_delay_seconds * (2 ** job_orm.retry_count)
            new_status = JobStatus.PENDING
            values = {
                "retry_count": job_orm.retry_count + 1,
                "scheduled_at": now + timedelta(seconds=delay),
                "started_at": None,
                "completed_at": None,
            }
        else:
            new_status = JobStatus.FAILED
            values = {"completed_at": now}

        written = await self.update_where(
            job_id,
            self.model.status == JobStatus.IN_PROGRESS.value,
            status=new_status.value,
            error_message=error_message,
            updated_at=now,
            **values,
        )
        return new_status if written else None

    async def cancel(self, job_id: str, now: datetime) -> bool:
        """
        Cancel an outstanding job.

        Args:
            job_id: Job ID
            now: Cancellation time

        Returns:
            True if cancelled, False if the job is already terminal or missing
        """
        return await self.update_where(
            job_id,
            self.model.status.in_(_ACTIVE_VALUES),
            status=JobStatus.CANCELLED.value,
            completed_at=now,
            updated_at=now,
        )

    async def get_metric_rows(self, organization_id: Optional[str] = None) -> list[dict]:
        """
        Get the columns the metrics aggregator needs.

        Args:
            organization_id: Optional tenant scope

        Returns:
            List of dicts with status, source_table, target_lang, started_at, completed_at
        """
        lang_column = getattr(self.model, "target_lang", None)
        columns = [
            self.model.status,
            self.model.source_table,
            self.model.started_at,
            self.model.completed_at,
        ]
        if lang_column is not None:
            columns.append(lang_column)

        query = select(*columns)
        if organization_id:
            query = query.where(self.model.organization_id == organization_id)

        result = await self.session.execute(query)
        return [dict(row._mapping) for row in result.all()]

    async def count_by_status(self) -> dict[str, int]:
        """Count jobs per status with one grouped query."""
        result = await self.session.execute(
            select(self.model.status, func.count()).group_by(self.model.status)
        )
        return {status: count for status, count in result.all()}

    def _drain_order(self) -> tuple:
        return (
            self.model.priority.desc(),
            self.model.scheduled_at.asc(),
            self.model.created_at.asc(),
        )


class TranslationJobRepository(JobRepository[TranslationJobORM]):
    """Repository for translation job database operations."""

    schema = TranslationJob

    def __init__(self, session: AsyncSession):
        """Initialize translation job repository."""
        super().__init__(TranslationJobORM, session)


class EmbeddingJobRepository(JobRepository[EmbeddingJobORM]):
    """Repository for embedding jobs and the embeddings they produce."""

    schema = EmbeddingJob

    def __init__(self, session: AsyncSession):
        """Initialize embedding job repository."""
        super().__init__(EmbeddingJobORM, session)

    async def replace_embeddings(
        self,
        job: EmbeddingJob,
        chunks: list[str],
        vectors: list[list[float]],
        now: datetime,
    ) -> int:
        """
        Deactivate the previous embeddings of a source field and store new ones.

        Args:
            job: Embedding job the vectors belong to
            chunks: Chunk texts in order
            vectors: One vector per chunk
            now: Write time

        Returns:
            Number of embedding rows inserted
        """
        await self.session.execute(
            update(EmbeddingORM)
            .where(EmbeddingORM.organization_id == job.organization_id)
            .where(EmbeddingORM.source_table == job.source_table)
            .where(EmbeddingORM.source_id == job.source_id)
            .where(EmbeddingORM.source_field == job.source_field)
            .where(EmbeddingORM.is_active == True)  # noqa: E712
            .values(is_active=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        for index, (chunk, vector) in enumerate(zip(chunks, vectors)):
            self.session.add(
                EmbeddingORM(
                    id=str(uuid4()),
                    organization_id=job.organization_id,
                    source_table=job.source_table,
                    source_id=job.source_id,
                    source_field=job.source_field,
                    job_id=job.id,
                    chunk_index=index,
                    chunk_text=chunk,
                    content_hash=job.content_hash,
                    embedding_model=job.embedding_model,
                    vector=vector,
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                )
            )
        await self.session.flush()
        return len(chunks)

    async def get_embedding_stats(self, organization_id: Optional[str] = None) -> dict:
        """
        Count embedding rows, active rows, and rows per model.

        Args:
            organization_id: Optional tenant scope

        Returns:
            Dict with total_embeddings, active_embeddings, embeddings_by_model
        """
        query = select(
            EmbeddingORM.embedding_model,
            EmbeddingORM.is_active,
            func.count(EmbeddingORM.id),
        ).group_by(EmbeddingORM.embedding_model, EmbeddingORM.is_active)
        if organization_id:
            query = query.where(EmbeddingORM.organization_id == organization_id)

        result = await self.session.execute(query)

        stats = {"total_embeddings": 0, "active_embeddings": 0, "embeddings_by_model": {}}
        for model_name, is_active, count in result.all():
            stats["total_embeddings"] += count
            if is_active:
                stats["active_embeddings"] += count
            by_model = stats["embeddings_by_model"]
            by_model[model_name] = by_model.get(model_name, 0) + count
        return stats

    async def list_embeddings(
        self, embedding_filter: EmbeddingFilter
    ) -> tuple[list[Embedding], int]:
        """
        List stored embedding chunks, most recently written first.

        Args:
            embedding_filter: Filter and paging options

        Returns:
            Tuple of (page of chunks, total matching count)
        """
        query = select(EmbeddingORM)
        if embedding_filter.organization_id:
            query = query.where(EmbeddingORM.organization_id == embedding_filter.organization_id)
        if embedding_filter.source_table:
            query = query.where(EmbeddingORM.source_table == embedding_filter.source_table.value)
        if embedding_filter.source_id:
            query = query.where(EmbeddingORM.source_id == embedding_filter.source_id)
        if embedding_filter.is_active is not None:
            query = query.where(EmbeddingORM.is_active == embedding_filter.is_active)

        total = await self.session.scalar(select(func.count()).select_from(query.subquery()))

        query = (
            query.order_by(
                EmbeddingORM.updated_at.desc(),
                EmbeddingORM.source_id,
                EmbeddingORM.source_field,
                EmbeddingORM.chunk_index,
            )
            .limit(embedding_filter.limit)
            .offset(embedding_filter.offset)
        )
        result = await self.session.execute(query)

        embeddings = []
        for row in result.scalars().all():
            embedding = Embedding.model_validate(row)
            if not embedding_filter.include_vectors:
                embedding.vector = None
            embeddings.append(embedding)
        return embeddings, total or 0
