"""Tests for enqueueing, listing and cancelling jobs."""

from datetime import timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from aio_jobs.core.errors import JobStateError, JobValidationError, NotFoundError
from aio_jobs.database.models import FaqORM, PostORM, TranslationJobORM
from aio_jobs.models.content import ContentType
from aio_jobs.models.job import (
    EmbeddingJobCreate,
    JobFilter,
    JobKind,
    JobStatus,
    TranslationJobCreate,
)
from aio_jobs.services.idempotency import build_idempotency_key, content_hash
from aio_jobs.services.job_queue import JobQueue


def translation_request(**overrides) -> TranslationJobCreate:
    values = {
        "organization_id": "org-1",
        "source_table": "posts",
        "source_id": "post-1",
        "source_field": "title",
        "source_text": "こんにちは",
        "source_lang": "ja",
        "target_lang": "en",
    }
    values.update(overrides)
    return TranslationJobCreate(**values)


async def count_jobs(factory) -> int:
    async with factory() as session:
        return await session.scalar(select(func.count()).select_from(TranslationJobORM))


def test_enqueue_creates_pending_job(run, seed):
    """A new job starts pending with default priority and retry budget."""

    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="こんにちは"))
        queue = JobQueue(session_factory=factory)

        result = await queue.enqueue_translation(translation_request())

        assert result.success is True
        assert result.skipped is False
        job = await queue.get_job(JobKind.TRANSLATION, result.job_id)
        assert job.status == JobStatus.PENDING
        assert job.priority == 5
        assert job.max_retries == 3
        assert job.retry_count == 0
        assert job.scheduled_at == job.created_at
        assert job.completed_at is None
        assert job.idempotency_key == build_idempotency_key(
            JobKind.TRANSLATION, "org-1", "posts", "post-1", "title", "en"
        )

    run(body)


def test_enqueue_duplicate_is_noop(run, seed):
    """An outstanding job with the same key absorbs the second request."""

    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="こんにちは"))
        queue = JobQueue(session_factory=factory)

        first = await queue.enqueue_translation(translation_request())
        # Edited text still maps to the same key
        second = await queue.enqueue_translation(translation_request(source_text="こんばんは"))

        assert second.success is True
        assert second.skipped is True
        assert second.job_id == first.job_id
        assert await count_jobs(factory) == 1

        job = await queue.get_job(JobKind.TRANSLATION, first.job_id)
        assert job.source_text == "こんにちは"

    run(body)


def test_enqueue_after_terminal_creates_new_job(run, seed):
    """Once the previous job is terminal the same key may be enqueued again."""

    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="こんにちは"))
        queue = JobQueue(session_factory=factory)

        first = await queue.enqueue_translation(translation_request())
        await queue.cancel_job(JobKind.TRANSLATION, first.job_id)
        second = await queue.enqueue_translation(translation_request())

        assert second.skipped is False
        assert second.job_id != first.job_id
        assert await count_jobs(factory) == 2

    run(body)


def test_enqueue_distinct_target_languages(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="こんにちは"))
        queue = JobQueue(session_factory=factory)

        en = await queue.enqueue_translation(translation_request(target_lang="en"))
        zh = await queue.enqueue_translation(translation_request(target_lang="zh"))

        assert en.job_id != zh.job_id
        assert await count_jobs(factory) == 2

    run(body)


def test_enqueue_rejects_unknown_field(run, seed):
    """Fields outside the content type are rejected and nothing is written."""

    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        queue = JobQueue(session_factory=factory)

        with pytest.raises(JobValidationError):
            await queue.enqueue_translation(translation_request(source_field="slug"))
        assert await count_jobs(factory) == 0

    run(body)


def test_enqueue_rejects_oversized_text(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        queue = JobQueue(session_factory=factory, max_source_text_length=10)

        with pytest.raises(JobValidationError):
            await queue.enqueue_translation(translation_request(source_text="x" * 11))
        assert await count_jobs(factory) == 0

    run(body)


def test_enqueue_missing_organization_or_source(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        await seed(
            factory,
            FaqORM(id="faq-2", organization_id="org-2", question="q"),
            org_id="org-2",
        )
        queue = JobQueue(session_factory=factory)

        with pytest.raises(NotFoundError):
            await queue.enqueue_translation(translation_request(organization_id="org-missing"))
        with pytest.raises(NotFoundError):
            await queue.enqueue_translation(translation_request(source_id="post-missing"))
        # Row exists but belongs to another organization
        with pytest.raises(NotFoundError):
            await queue.enqueue_translation(
                translation_request(source_table="faqs", source_id="faq-2", source_field="question")
            )
        assert await count_jobs(factory) == 0

    run(body)


def test_request_model_validation():
    """Pydantic rejects malformed requests before the service runs."""
    with pytest.raises(ValidationError):
        translation_request(target_lang="ja")
    with pytest.raises(ValidationError):
        translation_request(priority=11)
    with pytest.raises(ValidationError):
        translation_request(source_text="")
    with pytest.raises(ValidationError):
        translation_request(source_table="users")
    with pytest.raises(ValidationError):
        translation_request(target_lang="english!")


def test_enqueue_delay_and_overrides(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        queue = JobQueue(session_factory=factory)

        result = await queue.enqueue_translation(
            translation_request(priority=9, max_retries=0, delay_seconds=120)
        )

        job = await queue.get_job(JobKind.TRANSLATION, result.job_id)
        assert job.priority == 9
        assert job.max_retries == 0
        assert job.scheduled_at - job.created_at == timedelta(seconds=120)

    run(body)


def test_enqueue_embedding(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", content="本文"))
        queue = JobQueue(session_factory=factory, embedding_model="text-embedding-3-small")

        request = EmbeddingJobCreate(
            organization_id="org-1",
            source_table=ContentType.POSTS,
            source_id="post-1",
            source_field="content",
            content_text="本文",
        )
        result = await queue.enqueue_embedding(request)
        again = await queue.enqueue_embedding(request)

        job = await queue.get_job(JobKind.EMBEDDING, result.job_id)
        assert job.source_text == "本文"
        assert job.content_hash == content_hash("本文")
        assert job.embedding_model == "text-embedding-3-small"
        assert job.chunk_strategy == "overlap"
        assert again.skipped is True
        # Translation and embedding keys never collide
        assert await queue.get_job(JobKind.TRANSLATION, result.job_id) is None

    run(body)


def test_list_jobs_filters_and_orders(run, seed):
    async def body(factory):
        await seed(
            factory,
            PostORM(id="post-1", organization_id="org-1", title="a"),
            PostORM(id="post-2", organization_id="org-1", title="b"),
        )
        queue = JobQueue(session_factory=factory)
        low = await queue.enqueue_translation(translation_request(priority=2))
        high = await queue.enqueue_translation(translation_request(source_id="post-2", priority=8))
        other = await queue.enqueue_translation(translation_request(target_lang="zh", priority=5))

        page = await queue.list_jobs(JobKind.TRANSLATION, JobFilter())
        assert page.total == 3
        assert [job.id for job in page.data] == [high.job_id, other.job_id, low.job_id]

        page = await queue.list_jobs(JobKind.TRANSLATION, JobFilter(target_lang="en"))
        assert page.total == 2

        page = await queue.list_jobs(JobKind.TRANSLATION, JobFilter(priority_min=5, limit=1))
        assert page.total == 2
        assert [job.id for job in page.data] == [high.job_id]

        page = await queue.list_jobs(
            JobKind.TRANSLATION, JobFilter(status=JobStatus.COMPLETED)
        )
        assert page.total == 0
        assert page.data == []

    run(body)


def test_cancel_job(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        queue = JobQueue(session_factory=factory)
        result = await queue.enqueue_translation(translation_request())

        cancelled = await queue.cancel_job(JobKind.TRANSLATION, result.job_id)
        assert cancelled.status == JobStatus.CANCELLED
        assert cancelled.completed_at is not None

        with pytest.raises(JobStateError):
            await queue.cancel_job(JobKind.TRANSLATION, result.job_id)
        with pytest.raises(NotFoundError):
            await queue.cancel_job(JobKind.TRANSLATION, "missing")

    run(body)


def test_count_by_status(run, seed):
    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        queue = JobQueue(session_factory=factory)
        await queue.enqueue_translation(translation_request(target_lang="en"))
        await queue.enqueue_translation(translation_request(target_lang="zh"))
        cancelled = await queue.enqueue_translation(translation_request(target_lang="ko"))
        await queue.cancel_job(JobKind.TRANSLATION, cancelled.job_id)

        counts = await queue.count_by_status(JobKind.TRANSLATION)

        assert counts == {
            "pending": 2,
            "in_progress": 0,
            "completed": 0,
            "failed": 0,
            "cancelled": 1,
        }
        assert set((await queue.count_by_status(JobKind.EMBEDDING)).values()) == {0}

    run(body)
