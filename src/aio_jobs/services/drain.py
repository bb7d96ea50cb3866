"""Drain cycles: claim due jobs in priority order, execute them, record the outcome."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.clock import utcnow
from ..core.config import settings
from ..database.session import SessionLocal
from ..models.job import DrainResult, EmbeddingJob, JobBase, JobKind, JobStatus, TranslationJob
from ..repositories.job_repository import (
    EmbeddingJobRepository,
    JobRepository,
    TranslationJobRepository,
)
from .chunking import chunk_text
from .embedding_client import EmbeddingProvider
from .translation_client import TranslationProvider

logger = logging.getLogger(__name__)


class DrainService:
    """One bounded batch per invocation; there is no background loop.

    Claims are conditional updates, so overlapping invocations never execute
    the same job twice. Provider calls run outside any database transaction.
    """

    kind: JobKind

    def __init__(
        self,
        session_factory: async_sessionmaker = SessionLocal,
        batch_size: Optional[int] = None,
        provider_timeout_seconds: Optional[float] = None,
        retry_base_delay_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize drain service.

        Args:
            session_factory: Session factory (defaults to the application database)
            batch_size: Default number of jobs claimed per cycle
            provider_timeout_seconds: Bound on one job's provider calls
            retry_base_delay_seconds: Backoff base for requeued jobs
            clock: Source of claim/completion timestamps
        """
        self._session_factory = session_factory
        self.batch_size = batch_size or settings.drain_batch_size
        self.provider_timeout_seconds = (
            provider_timeout_seconds
            if provider_timeout_seconds is not None
            else settings.provider_timeout_seconds
        )
        self.retry_base_delay_seconds = (
            retry_base_delay_seconds
            if retry_base_delay_seconds is not None
            else settings.retry_base_delay_seconds
        )
        self._clock = clock

    async def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        return self._session_factory()

    def repository(self, session: AsyncSession) -> JobRepository:
        raise NotImplementedError

    async def execute(self, job: JobBase) -> Any:
        """Run the provider for one job and return its output."""
        raise NotImplementedError

    async def store_result(
        self, repo: JobRepository, job: JobBase, output: Any, now: datetime
    ) -> bool:
        """Write a successful output; False if the job is no longer in progress."""
        raise NotImplementedError

    async def drain(
        self, batch_size: Optional[int] = None, now: Optional[datetime] = None
    ) -> DrainResult:
        """
        Run one drain cycle.

        Args:
            batch_size: Maximum jobs to claim (defaults to the configured size)
            now: Eligibility cut-off for scheduled_at (defaults to the clock)

        Returns:
            Counts of what this cycle did
        """
        now = now or self._clock()
        limit = batch_size or self.batch_size

        async with await self._get_session() as session:
            candidate_ids = await self.repository(session).get_eligible_ids(now, limit)

        if not candidate_ids:
            logger.debug(f"{self.kind.value} drain: no pending jobs")
            return DrainResult(message="No pending jobs")

        result = await self.process_candidates(candidate_ids)
        logger.info(
            f"{self.kind.value} drain finished: processed={result.processed_count} "
            f"completed={result.completed_count} retried={result.retried_count} "
            f"failed={result.failed_count} skipped={result.skipped_count}"
        )
        return result

    async def process_candidates(self, candidate_ids: list[str]) -> DrainResult:
        """
        Claim and execute candidates in the given order.

        Candidates another invocation claimed first are skipped.

        Args:
            candidate_ids: Job ids in drain order

        Returns:
            Counts of what was done
        """
        result = DrainResult()

        for job_id in candidate_ids:
            try:
                job = await self._claim(job_id)
                if job is None:
                    result.skipped_count += 1
                    continue

                result.processed_count += 1
                status = await self._run(job)
            except SQLAlchemyError as e:
                logger.error(f"{self.kind.value} job {job_id}: storage error, moving on: {e}")
                result.failed_count += 1
                continue

            if status == JobStatus.COMPLETED:
                result.completed_count += 1
            elif status == JobStatus.PENDING:
                result.retried_count += 1
            elif status == JobStatus.FAILED:
                result.failed_count += 1

        result.message = f"Processed {result.processed_count} {self.kind.value} jobs"
        return result

    async def _claim(self, job_id: str) -> Optional[JobBase]:
        """Claim one job; None if it is no longer pending."""
        async with await self._get_session() as session:
            repo = self.repository(session)
            if not await repo.claim(job_id, self._clock()):
                return None
            await session.commit()
            job_orm = await repo.get(job_id)
            return repo.to_pydantic(job_orm)

    async def _run(self, job: JobBase) -> Optional[JobStatus]:
        """Execute one claimed job and record the outcome."""
        try:
            output = await asyncio.wait_for(
                self.execute(job), timeout=self.provider_timeout_seconds
            )
        except asyncio.TimeoutError:
            return await self._fail(
                job, f"Provider timed out after {self.provider_timeout_seconds}s"
            )
        except Exception as e:
            return await self._fail(job, str(e) or e.__class__.__name__)

        try:
            async with await self._get_session() as session:
                repo = self.repository(session)
                if not await self.store_result(repo, job, output, self._clock()):
                    await session.rollback()
                    logger.info(
                        f"{self.kind.value} job {job.id} no longer in progress, result discarded"
                    )
                    return None
                await session.commit()
        except SQLAlchemyError as e:
            # The session was rolled back on close; the job is still in_progress
            logger.error(f"{self.kind.value} job {job.id} result could not be stored: {e}")
            return await self._fail(job, f"Storing result failed: {e}")

        logger.info(f"{self.kind.value} job completed: {job.id}")
        return JobStatus.COMPLETED

    async def _fail(self, job: JobBase, error_message: str) -> Optional[JobStatus]:
        """Record a failed attempt: requeue while budget remains, else fail."""
        async with await self._get_session() as session:
            repo = self.repository(session)
            status = await repo.record_failure(
                job.id, error_message, self._clock(), self.retry_base_delay_seconds
            )
            await session.commit()

        if status == JobStatus.PENDING:
            logger.warning(
                f"{self.kind.value} job {job.id} failed (attempt {job.retry_count + 1}/"
                f"{job.max_retries + 1}), requeued: {error_message}"
            )
        elif status == JobStatus.FAILED:
            logger.error(
                f"{self.kind.value} job {job.id} failed permanently after "
                f"{job.retry_count + 1} attempts: {error_message}"
            )
        return status


class TranslationDrain(DrainService):
    """Drains translation_jobs through a translation provider."""

    kind = JobKind.TRANSLATION

    def __init__(self, provider: TranslationProvider, **kwargs: Any):
        super().__init__(**kwargs)
        self.provider = provider

    def repository(self, session: AsyncSession) -> TranslationJobRepository:
        return TranslationJobRepository(session)

    async def execute(self, job: TranslationJob) -> str:
        return await self.provider.translate(job.source_text, job.source_lang, job.target_lang)

    async def store_result(
        self, repo: TranslationJobRepository, job: TranslationJob, output: str, now: datetime
    ) -> bool:
        return await repo.mark_completed(
            job.id,
            now,
            translated_text=output,
            translation_service=self.provider.service_name,
        )


class EmbeddingDrain(DrainService):
    """Drains embedding_jobs: chunk, embed each chunk, replace active embeddings."""

    kind = JobKind.EMBEDDING

    def __init__(
        self,
        provider: EmbeddingProvider,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.provider = provider
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.chunk_overlap

    def repository(self, session: AsyncSession) -> EmbeddingJobRepository:
        return EmbeddingJobRepository(session)

    async def execute(self, job: EmbeddingJob) -> tuple[list[str], list[list[float]]]:
        chunks = chunk_text(job.source_text, self.chunk_size, self.chunk_overlap)
        vectors = []
        for chunk in chunks:
            vectors.append(await self.provider.embed(chunk))
        return chunks, vectors

    async def store_result(
        self,
        repo: EmbeddingJobRepository,
        job: EmbeddingJob,
        output: tuple[list[str], list[list[float]]],
        now: datetime,
    ) -> bool:
        chunks, vectors = output
        # Status is checked after writing chunks; the caller rolls back on False
        await repo.replace_embeddings(job, chunks, vectors, now)
        return await repo.mark_completed(job.id, now, chunk_count=len(chunks))
