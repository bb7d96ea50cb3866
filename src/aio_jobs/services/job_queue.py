"""Database-backed job queue: enqueue, inspect and cancel jobs."""

import logging
from datetime import timedelta
from typing import Any, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.clock import utcnow
from ..core.config import settings
from ..core.errors import JobStateError, JobValidationError, NotFoundError
from ..database.session import SessionLocal
from ..models.embedding import EmbeddingFilter, EmbeddingPage
from ..models.job import (
    EmbeddingJobCreate,
    EnqueueResult,
    JobBase,
    JobCreate,
    JobFilter,
    JobKind,
    JobPage,
    JobStatus,
    TranslationJobCreate,
)
from ..repositories.content_repository import ContentRepository
from ..repositories.job_repository import (
    EmbeddingJobRepository,
    JobRepository,
    TranslationJobRepository,
)
from .idempotency import build_idempotency_key, content_hash

logger = logging.getLogger(__name__)


class JobQueue:
    """Manages the translation and embedding job queues with database persistence."""

    def __init__(
        self,
        session_factory: async_sessionmaker = SessionLocal,
        embedding_model: Optional[str] = None,
        max_source_text_length: Optional[int] = None,
    ):
        """
        Initialize job queue.

        Args:
            session_factory: Session factory (defaults to the application database)
            embedding_model: Model recorded on new embedding jobs
            max_source_text_length: Longest accepted source text
        """
        self._session_factory = session_factory
        self.embedding_model = embedding_model or settings.embedding_model
        self.max_source_text_length = (
            max_source_text_length or settings.max_source_text_length
        )

    async def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        return self._session_factory()

    @staticmethod
    def repository(kind: JobKind, session: AsyncSession) -> JobRepository:
        """Get the repository for a job kind."""
        if kind == JobKind.TRANSLATION:
            return TranslationJobRepository(session)
        return EmbeddingJobRepository(session)

    async def enqueue_translation(self, request: TranslationJobCreate) -> EnqueueResult:
        """Enqueue a translation job unless an identical one is outstanding."""
        return await self._enqueue(
            JobKind.TRANSLATION,
            request,
            target_lang=request.target_lang,
            columns={
                "source_lang": request.source_lang,
                "target_lang": request.target_lang,
            },
        )

    async def enqueue_embedding(self, request: EmbeddingJobCreate) -> EnqueueResult:
        """Enqueue an embedding job unless an identical one is outstanding."""
        return await self._enqueue(
            JobKind.EMBEDDING,
            request,
            target_lang=None,
            columns={
                "content_hash": content_hash(request.source_text),
                "embedding_model": self.embedding_model,
                "chunk_strategy": "overlap",
            },
        )

    async def _enqueue(
        self,
        kind: JobKind,
        request: Union[TranslationJobCreate, EmbeddingJobCreate],
        target_lang: Optional[str],
        columns: dict[str, Any],
    ) -> EnqueueResult:
        """
        Validate, deduplicate and insert one job.

        Raises:
            JobValidationError: Field or text rejected
            NotFoundError: Organization or source row missing
        """
        idempotency_key = build_idempotency_key(
            kind,
            request.organization_id,
            request.source_table.value,
            request.source_id,
            request.source_field,
            target_lang,
        )

        async with await self._get_session() as session:
            await self._validate(session, request)

            repo = self.repository(kind, session)
            existing = await repo.get_active_by_key(idempotency_key)
            if existing:
                logger.info(
                    f"{kind.value.capitalize()} job skipped (outstanding job {existing.id}): "
                    f"{request.source_table.value}/{request.source_id}/{request.source_field}"
                )
                return self._deduplicated(existing.id)

            now = utcnow()
            try:
                job_orm = await repo.create_job(
                    organization_id=request.organization_id,
                    source_table=request.source_table.value,
                    source_id=request.source_id,
                    source_field=request.source_field,
                    source_text=request.source_text,
                    idempotency_key=idempotency_key,
                    priority=request.priority or settings.default_priority,
                    max_retries=(
                        request.max_retries
                        if request.max_retries is not None
                        else settings.default_max_retries
                    ),
                    scheduled_at=now + timedelta(seconds=request.delay_seconds),
                    created_at=now,
                    updated_at=now,
                    **columns,
                )
                job_id = job_orm.id
                priority = job_orm.priority
                await session.commit()
            except IntegrityError:
                # Lost an insert race against an identical enqueue
                await session.rollback()
                existing = await repo.get_active_by_key(idempotency_key)
                if existing is None:
                    raise
                logger.info(f"{kind.value.capitalize()} job deduplicated after insert race: {existing.id}")
                return self._deduplicated(existing.id)

            logger.info(
                f"{kind.value.capitalize()} job enqueued: {job_id} "
                f"({request.source_table.value}/{request.source_id}/{request.source_field}"
                f"{'->' + target_lang if target_lang else ''}, priority={priority})"
            )
            return EnqueueResult(
                job_id=job_id,
                message=f"{kind.value.capitalize()} job enqueued",
            )

    async def _validate(self, session: AsyncSession, request: JobCreate) -> None:
        """Check the request against the content model and the database."""
        content_type = request.source_table
        if request.source_field not in content_type.fields:
            raise JobValidationError(
                f"Field '{request.source_field}' is not translatable on {content_type.value}"
            )

        if len(request.source_text) > self.max_source_text_length:
            raise JobValidationError(
                f"source_text exceeds {self.max_source_text_length} characters"
            )

        content = ContentRepository(session)
        if not await content.organization_exists(request.organization_id):
            raise NotFoundError(f"Organization not found: {request.organization_id}")

        row = await content.get_row(content_type, request.source_id)
        if row is None or row.organization_id != request.organization_id:
            raise NotFoundError(
                f"Source not found: {content_type.value}/{request.source_id}"
            )

    @staticmethod
    def _deduplicated(job_id: str) -> EnqueueResult:
        return EnqueueResult(
            skipped=True,
            job_id=job_id,
            message="Skipped (outstanding job exists)",
        )

    async def get_job(self, kind: JobKind, job_id: str) -> Optional[JobBase]:
        """Get a job by ID."""
        async with await self._get_session() as session:
            repo = self.repository(kind, session)
            job_orm = await repo.get(job_id)
            return repo.to_pydantic(job_orm) if job_orm else None

    async def list_jobs(self, kind: JobKind, job_filter: JobFilter) -> JobPage:
        """List jobs in drain order with an unpaged total."""
        async with await self._get_session() as session:
            repo = self.repository(kind, session)
            jobs, total = await repo.list_filtered(job_filter)
            return JobPage[repo.schema](data=jobs, total=total)

    async def count_by_status(self, kind: JobKind) -> dict[str, int]:
        """Get the number of jobs in each status; absent statuses count 0."""
        async with await self._get_session() as session:
            counts = await self.repository(kind, session).count_by_status()
        return {status.value: counts.get(status.value, 0) for status in JobStatus}

    async def list_embeddings(self, embedding_filter: EmbeddingFilter) -> EmbeddingPage:
        """List stored embedding chunks, most recently written first."""
        async with await self._get_session() as session:
            embeddings, total = await EmbeddingJobRepository(session).list_embeddings(
                embedding_filter
            )
            return EmbeddingPage(data=embeddings, total=total)

    async def cancel_job(self, kind: JobKind, job_id: str) -> JobBase:
        """
        Cancel a pending or in-progress job.

        An in-flight execution is not interrupted; its result is discarded.

        Raises:
            NotFoundError: Job does not exist
            JobStateError: Job already reached a terminal status
        """
        async with await self._get_session() as session:
            repo = self.repository(kind, session)
            if not await repo.cancel(job_id, utcnow()):
                job_orm = await repo.get(job_id)
                if job_orm is None:
                    raise NotFoundError(f"Job not found: {job_id}")
                raise JobStateError(f"Job {job_id} already {job_orm.status}")
            await session.commit()

            job_orm = await repo.get(job_id)
            logger.info(f"{kind.value.capitalize()} job cancelled: {job_id}")
            return repo.to_pydantic(job_orm)
