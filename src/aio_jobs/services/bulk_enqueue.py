"""Bulk enqueue over an organization's CMS content."""

import logging
from typing import Awaitable, Callable

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import settings
from ..core.errors import AioJobsError, NotFoundError
from ..database.session import SessionLocal
from ..models.content import ContentType
from ..models.job import (
    BulkEmbeddingRequest,
    BulkEnqueueResult,
    BulkTranslationRequest,
    EmbeddingJobCreate,
    EnqueueResult,
    TranslationJobCreate,
)
from ..repositories.content_repository import ContentRepository
from .job_queue import JobQueue

logger = logging.getLogger(__name__)


class BulkEnqueueOrchestrator:
    """Fans a bulk request out into individual enqueue calls.

    A failing item is logged and counted; it never aborts the batch.
    """

    def __init__(
        self,
        job_queue: JobQueue,
        session_factory: async_sessionmaker = SessionLocal,
    ):
        self.job_queue = job_queue
        self._session_factory = session_factory

    async def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        return self._session_factory()

    async def enqueue_translations(self, request: BulkTranslationRequest) -> BulkEnqueueResult:
        """
        Enqueue one translation job per non-empty field and target language.

        Args:
            request: Organization, target languages and content types

        Returns:
            Aggregate counts

        Raises:
            NotFoundError: Organization does not exist
        """
        source_lang = request.source_lang or settings.default_source_lang
        rows = await self._collect_rows(request.organization_id, request.content_types)

        calls: list[tuple[str, Callable[[], Awaitable[EnqueueResult]]]] = []
        for content_type, source_id, field, text in rows:
            for target_lang in request.target_languages:
                label = f"{content_type.value}/{source_id}/{field}->{target_lang}"
                calls.append((label, self._translation_call(
                    request, content_type, source_id, field, text, source_lang, target_lang
                )))

        result = await self._run(calls)
        result.message = (
            f"Enqueued {result.enqueued_count} translation jobs "
            f"({result.skipped_count} already outstanding, {result.failed_count} failed)"
        )
        logger.info(f"Bulk translation for {request.organization_id}: {result.message}")
        return result

    async def enqueue_embeddings(self, request: BulkEmbeddingRequest) -> BulkEnqueueResult:
        """
        Enqueue one embedding job per non-empty field.

        Args:
            request: Organization and content types

        Returns:
            Aggregate counts

        Raises:
            NotFoundError: Organization does not exist
        """
        rows = await self._collect_rows(request.organization_id, request.content_types)

        calls = []
        for content_type, source_id, field, text in rows:
            label = f"{content_type.value}/{source_id}/{field}"
            calls.append((label, self._embedding_call(request, content_type, source_id, field, text)))

        result = await self._run(calls)
        result.message = (
            f"Enqueued {result.enqueued_count} embedding jobs "
            f"({result.skipped_count} already outstanding, {result.failed_count} failed)"
        )
        logger.info(f"Bulk embedding for {request.organization_id}: {result.message}")
        return result

    async def _collect_rows(
        self, organization_id: str, content_types: list[ContentType]
    ) -> list[tuple[ContentType, str, str, str]]:
        """Flatten content rows into (type, id, field, text), skipping empty fields."""
        rows = []
        async with await self._get_session() as session:
            content = ContentRepository(session)
            if not await content.organization_exists(organization_id):
                raise NotFoundError(f"Organization not found: {organization_id}")

            # dict.fromkeys drops duplicate content types but keeps order
            for content_type in dict.fromkeys(content_types):
                for source_id, values in await content.list_field_values(organization_id, content_type):
                    for field, text in values.items():
                        if text and text.strip():
                            rows.append((content_type, source_id, field, text))
        return rows

    def _translation_call(
        self,
        request: BulkTranslationRequest,
        content_type: ContentType,
        source_id: str,
        field: str,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> Callable[[], Awaitable[EnqueueResult]]:
        async def call() -> EnqueueResult:
            return await self.job_queue.enqueue_translation(
                TranslationJobCreate(
                    organization_id=request.organization_id,
                    source_table=content_type,
                    source_id=source_id,
                    source_field=field,
                    source_text=text,
                    source_lang=source_lang,
                    target_lang=target_lang,
                    priority=request.priority,
                )
            )

        return call

    def _embedding_call(
        self,
        request: BulkEmbeddingRequest,
        content_type: ContentType,
        source_id: str,
        field: str,
        text: str,
    ) -> Callable[[], Awaitable[EnqueueResult]]:
        async def call() -> EnqueueResult:
            return await self.job_queue.enqueue_embedding(
                EmbeddingJobCreate(
                    organization_id=request.organization_id,
                    source_table=content_type,
                    source_id=source_id,
                    source_field=field,
                    source_text=text,
                    priority=request.priority,
                )
            )

        return call

    async def _run(
        self, calls: list[tuple[str, Callable[[], Awaitable[EnqueueResult]]]]
    ) -> BulkEnqueueResult:
        result = BulkEnqueueResult(requested_count=len(calls))

        for label, call in calls:
            try:
                outcome = await call()
            except (AioJobsError, ValidationError, SQLAlchemyError) as e:
                result.failed_count += 1
                logger.error(f"Bulk enqueue failed for {label}: {e}")
                continue

            result.enqueued_count += 1
            if outcome.skipped:
                result.skipped_count += 1

        return result
