"""Tests for bulk enqueue over CMS content."""

import pytest

from aio_jobs.core.errors import NotFoundError
from aio_jobs.database.models import FaqORM, PostORM
from aio_jobs.models.content import ContentType
from aio_jobs.models.job import BulkEmbeddingRequest, BulkTranslationRequest, JobFilter, JobKind
from aio_jobs.services.bulk_enqueue import BulkEnqueueOrchestrator
from aio_jobs.services.job_queue import JobQueue


def five_posts() -> list[PostORM]:
    return [
        PostORM(id=f"post-{i}", organization_id="org-1", title=f"タイトル{i}")
        for i in range(1, 6)
    ]


def test_bulk_translation_enqueues_each_field_and_language(run, seed):
    async def body(factory):
        await seed(factory, *five_posts())
        queue = JobQueue(session_factory=factory)
        orchestrator = BulkEnqueueOrchestrator(queue, session_factory=factory)
        request = BulkTranslationRequest(
            organization_id="org-1",
            target_languages=["en", "zh"],
            content_types=[ContentType.POSTS],
        )

        result = await orchestrator.enqueue_translations(request)

        assert result.success is True
        assert result.requested_count == 10
        assert result.enqueued_count == 10
        assert result.skipped_count == 0
        assert result.failed_count == 0
        page = await queue.list_jobs(JobKind.TRANSLATION, JobFilter())
        assert page.total == 10
        assert {job.source_lang for job in page.data} == {"ja"}
        # Empty content fields are not enqueued
        assert {job.source_field for job in page.data} == {"title"}

        # Re-running while the jobs are outstanding only deduplicates
        again = await orchestrator.enqueue_translations(request)
        assert again.enqueued_count == 10
        assert again.skipped_count == 10
        page = await queue.list_jobs(JobKind.TRANSLATION, JobFilter())
        assert page.total == 10

    run(body)


def test_bulk_translation_isolates_item_failures(run, seed):
    """One invalid row fails its items without aborting the batch."""

    async def body(factory):
        rows = five_posts()
        rows[2].title = "長" * 50
        await seed(factory, *rows)
        queue = JobQueue(session_factory=factory, max_source_text_length=20)
        orchestrator = BulkEnqueueOrchestrator(queue, session_factory=factory)

        result = await orchestrator.enqueue_translations(
            BulkTranslationRequest(
                organization_id="org-1",
                target_languages=["en", "zh"],
                content_types=[ContentType.POSTS],
            )
        )

        assert result.requested_count == 10
        assert result.enqueued_count == 8
        assert result.failed_count == 2
        assert "2 failed" in result.message

    run(body)


def test_bulk_translation_skips_source_language_target(run, seed):
    """A target equal to the source language is an item failure, not a batch error."""

    async def body(factory):
        await seed(factory, PostORM(id="post-1", organization_id="org-1", title="x"))
        orchestrator = BulkEnqueueOrchestrator(JobQueue(session_factory=factory), session_factory=factory)

        result = await orchestrator.enqueue_translations(
            BulkTranslationRequest(organization_id="org-1", target_languages=["ja", "en"])
        )

        assert result.requested_count == 2
        assert result.enqueued_count == 1
        assert result.failed_count == 1

    run(body)


def test_bulk_translation_covers_all_content_types_by_default(run, seed):
    async def body(factory):
        await seed(
            factory,
            PostORM(id="post-1", organization_id="org-1", title="t", content="c"),
            FaqORM(id="faq-1", organization_id="org-1", question="q", answer="  "),
            # Other organizations' content is never touched
            PostORM(id="post-x", organization_id="org-2", title="other"),
        )
        orchestrator = BulkEnqueueOrchestrator(JobQueue(session_factory=factory), session_factory=factory)

        result = await orchestrator.enqueue_translations(
            BulkTranslationRequest(organization_id="org-1", target_languages=["en"])
        )

        assert result.requested_count == 3
        assert result.enqueued_count == 3

    run(body)


def test_bulk_unknown_organization(run):
    async def body(factory):
        orchestrator = BulkEnqueueOrchestrator(JobQueue(session_factory=factory), session_factory=factory)
        with pytest.raises(NotFoundError):
            await orchestrator.enqueue_translations(
                BulkTranslationRequest(organization_id="nope", target_languages=["en"])
            )

    run(body)


def test_bulk_embedding(run, seed):
    async def body(factory):
        await seed(
            factory,
            PostORM(id="post-1", organization_id="org-1", title="t", content="c"),
            PostORM(id="post-2", organization_id="org-1", title="t2"),
        )
        queue = JobQueue(session_factory=factory)
        orchestrator = BulkEnqueueOrchestrator(queue, session_factory=factory)

        result = await orchestrator.enqueue_embeddings(
            BulkEmbeddingRequest(organization_id="org-1", priority=7)
        )

        assert result.requested_count == 3
        assert result.enqueued_count == 3
        page = await queue.list_jobs(JobKind.EMBEDDING, JobFilter())
        assert {job.priority for job in page.data} == {7}

    run(body)
