"""Embedding job API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query

from aio_jobs.api.deps import (
    ApiKeyDep,
    BulkEnqueueDep,
    EmbeddingDrainDep,
    JobQueueDep,
    MetricsDep,
    raise_http_error,
)
from aio_jobs.core.errors import AioJobsError
from aio_jobs.models.embedding import EmbeddingFilter, EmbeddingPage
from aio_jobs.models.job import (
    BulkEmbeddingRequest,
    BulkEnqueueResult,
    DrainResult,
    EmbeddingJob,
    EmbeddingJobCreate,
    EnqueueResult,
    JobFilter,
    JobKind,
    JobPage,
)
from aio_jobs.models.metrics import EmbeddingMetrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/embeddings", tags=["embeddings"])


@router.post("/enqueue", response_model=EnqueueResult)
async def enqueue_embedding(
    request: EmbeddingJobCreate,
    job_queue: JobQueueDep,
    _: ApiKeyDep,
) -> EnqueueResult:
    """Enqueue an embedding job (no-op if an identical job is outstanding)."""
    try:
        return await job_queue.enqueue_embedding(request)
    except AioJobsError as e:
        raise_http_error(e)


@router.post("/drain", response_model=DrainResult)
async def drain_embeddings(
    drain: EmbeddingDrainDep,
    _: ApiKeyDep,
    batch_size: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> DrainResult:
    """Process one bounded batch of due embedding jobs."""
    logger.debug(f"Embedding drain requested (batch_size={batch_size})")
    return await drain.drain(batch_size=batch_size)


@router.post("/bulk", response_model=BulkEnqueueResult)
async def bulk_embed(
    request: BulkEmbeddingRequest,
    bulk_enqueue: BulkEnqueueDep,
    _: ApiKeyDep,
) -> BulkEnqueueResult:
    """Enqueue embeddings for every text field of an organization's content."""
    try:
        return await bulk_enqueue.enqueue_embeddings(request)
    except AioJobsError as e:
        raise_http_error(e)


@router.get("", response_model=JobPage[EmbeddingJob])
async def list_embedding_jobs(
    job_queue: JobQueueDep,
    filters: Annotated[JobFilter, Query()],
) -> JobPage[EmbeddingJob]:
    """List embedding jobs in drain order."""
    return await job_queue.list_jobs(JobKind.EMBEDDING, filters)


@router.get("/metrics", response_model=EmbeddingMetrics)
async def get_embedding_metrics(
    metrics: MetricsDep,
    organization_id: str | None = None,
) -> EmbeddingMetrics:
    """Get embedding queue and embedding row statistics."""
    return await metrics.embedding_metrics(organization_id)


@router.get("/vectors", response_model=EmbeddingPage)
async def list_embeddings(
    job_queue: JobQueueDep,
    filters: Annotated[EmbeddingFilter, Query()],
) -> EmbeddingPage:
    """List stored embedding chunks, most recently written first."""
    return await job_queue.list_embeddings(filters)


@router.get("/{job_id}", response_model=EmbeddingJob)
async def get_embedding_job(
    job_id: str,
    job_queue: JobQueueDep,
) -> EmbeddingJob:
    """Get a specific embedding job."""
    job = await job_queue.get_job(JobKind.EMBEDDING, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("/{job_id}/cancel", response_model=EmbeddingJob)
async def cancel_embedding_job(
    job_id: str,
    job_queue: JobQueueDep,
    _: ApiKeyDep,
) -> EmbeddingJob:
    """Cancel a pending or in-progress embedding job."""
    try:
        return await job_queue.cancel_job(JobKind.EMBEDDING, job_id)
    except AioJobsError as e:
        raise_http_error(e)
