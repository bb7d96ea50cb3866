"""Command line entry point for cron-style drain and bulk runs."""

import asyncio
from enum import Enum
from typing import Awaitable, Optional, TypeVar

import structlog
import typer
from rich.console import Console
from rich.table import Table

from aio_jobs import __version__
from aio_jobs.core.config import settings
from aio_jobs.core.errors import AioJobsError
from aio_jobs.database import engine, init_db
from aio_jobs.models.content import ContentType
from aio_jobs.models.job import (
    BulkEmbeddingRequest,
    BulkEnqueueResult,
    BulkTranslationRequest,
    DrainResult,
)
from aio_jobs.models.metrics import JobMetrics
from aio_jobs.services.bulk_enqueue import BulkEnqueueOrchestrator
from aio_jobs.services.drain import EmbeddingDrain, TranslationDrain
from aio_jobs.services.embedding_client import OpenAIEmbeddingClient
from aio_jobs.services.job_queue import JobQueue
from aio_jobs.services.metrics import MetricsAggregator
from aio_jobs.services.translation_client import OpenAITranslationClient

app = typer.Typer(
    name="aio-jobs",
    help="AIO Jobs - translation and embedding job pipeline",
)
console = Console()
logger = structlog.get_logger()

T = TypeVar("T")


class Kind(str, Enum):
    translation = "translation"
    embedding = "embedding"


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine, then release database connections."""

    async def runner() -> T:
        try:
            return await coro
        finally:
            await engine.dispose()

    try:
        return asyncio.run(runner())
    except AioJobsError as e:
        console.print(f"[red][X][/red] {e.message}")
        raise typer.Exit(code=1)


async def _drain(kind: Kind, batch_size: Optional[int]) -> DrainResult:
    await init_db()
    if kind == Kind.translation:
        client = OpenAITranslationClient(
            api_key=settings.openai_api_key or "",
            base_url=settings.openai_base_url,
            model=settings.translation_model,
            temperature=settings.translation_temperature,
            timeout=settings.provider_timeout_seconds,
        )
        drain = TranslationDrain(provider=client)
    else:
        client = OpenAIEmbeddingClient(
            api_key=settings.openai_api_key or "",
            base_url=settings.openai_base_url,
            model=settings.embedding_model,
            timeout=settings.provider_timeout_seconds,
        )
        drain = EmbeddingDrain(provider=client)

    try:
        return await drain.drain(batch_size=batch_size)
    finally:
        await client.close()


def _print_counts(title: str, counts: dict) -> None:
    table = Table(title=title)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for name, value in counts.items():
        if isinstance(value, dict):
            value = ", ".join(f"{k}={v}" for k, v in sorted(value.items())) or "-"
        table.add_row(name, "-" if value is None else str(value))
    console.print(table)


@app.command("init-db")
def init_database() -> None:
    """Create all tables."""
    _run(init_db())
    console.print("[green][OK][/green] Database initialized")


@app.command()
def drain(
    kind: Kind = typer.Option(Kind.translation, "--kind", "-k", help="Job table to drain"),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-n", min=1, help="Maximum jobs to claim"
    ),
) -> None:
    """Process one bounded batch of due jobs."""
    if not settings.openai_api_key:
        console.print("[yellow][!][/yellow] AIO_OPENAI_API_KEY not set, provider calls will fail")

    logger.info("drain_starting", kind=kind.value, batch_size=batch_size or settings.drain_batch_size)
    result = _run(_drain(kind, batch_size))
    logger.info("drain_finished", kind=kind.value, processed=result.processed_count)
    _print_counts(f"{kind.value} drain", result.model_dump(exclude={"success", "message"}))


def _bulk(request: BulkTranslationRequest | BulkEmbeddingRequest) -> BulkEnqueueResult:
    async def run() -> BulkEnqueueResult:
        await init_db()
        orchestrator = BulkEnqueueOrchestrator(JobQueue())
        if isinstance(request, BulkTranslationRequest):
            return await orchestrator.enqueue_translations(request)
        return await orchestrator.enqueue_embeddings(request)

    return _run(run())


@app.command("bulk-translate")
def bulk_translate(
    organization_id: str = typer.Argument(..., help="Organization to translate"),
    target: list[str] = typer.Option(..., "--target", "-t", help="Target language (repeatable)"),
    content_type: Optional[list[ContentType]] = typer.Option(
        None, "--content-type", help="Restrict to content type (repeatable)"
    ),
    source_lang: Optional[str] = typer.Option(None, "--source-lang", help="Source language"),
    priority: int = typer.Option(5, "--priority", "-p", min=1, max=10),
) -> None:
    """Enqueue translations for an organization's content."""
    request = BulkTranslationRequest(
        organization_id=organization_id,
        target_languages=target,
        content_types=content_type or list(ContentType),
        source_lang=source_lang,
        priority=priority,
    )
    logger.info("bulk_translate_starting", organization_id=organization_id, targets=target)
    result = _bulk(request)
    _print_counts("Bulk translation", result.model_dump(exclude={"success", "message"}))
    console.print(result.message)


@app.command("bulk-embed")
def bulk_embed(
    organization_id: str = typer.Argument(..., help="Organization to embed"),
    content_type: Optional[list[ContentType]] = typer.Option(
        None, "--content-type", help="Restrict to content type (repeatable)"
    ),
    priority: int = typer.Option(5, "--priority", "-p", min=1, max=10),
) -> None:
    """Enqueue embeddings for an organization's content."""
    request = BulkEmbeddingRequest(
        organization_id=organization_id,
        content_types=content_type or list(ContentType),
        priority=priority,
    )
    logger.info("bulk_embed_starting", organization_id=organization_id)
    result = _bulk(request)
    _print_counts("Bulk embedding", result.model_dump(exclude={"success", "message"}))
    console.print(result.message)


@app.command()
def metrics(
    kind: Kind = typer.Option(Kind.translation, "--kind", "-k", help="Job table"),
    organization_id: Optional[str] = typer.Option(None, "--organization-id", "-o"),
) -> None:
    """Show queue statistics."""

    async def run() -> JobMetrics:
        await init_db()
        aggregator = MetricsAggregator()
        if kind == Kind.translation:
            return await aggregator.translation_metrics(organization_id)
        return await aggregator.embedding_metrics(organization_id)

    result = _run(run())
    _print_counts(f"{kind.value} metrics", result.model_dump())


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"AIO Jobs v{__version__}")


if __name__ == "__main__":
    app()
