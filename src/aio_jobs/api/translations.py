"""Translation job API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query

from aio_jobs.api.deps import (
    ApiKeyDep,
    BulkEnqueueDep,
    JobQueueDep,
    MetricsDep,
    TranslationDrainDep,
    raise_http_error,
)
from aio_jobs.core.errors import AioJobsError
from aio_jobs.models.job import (
    BulkEnqueueResult,
    BulkTranslationRequest,
    DrainResult,
    EnqueueResult,
    JobFilter,
    JobKind,
    JobPage,
    TranslationJob,
    TranslationJobCreate,
)
from aio_jobs.models.metrics import JobMetrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/translations", tags=["translations"])


@router.post("/enqueue", response_model=EnqueueResult)
async def enqueue_translation(
    request: TranslationJobCreate,
    job_queue: JobQueueDep,
    _: ApiKeyDep,
) -> EnqueueResult:
    """Enqueue a translation job (no-op if an identical job is outstanding)."""
    try:
        return await job_queue.enqueue_translation(request)
    except AioJobsError as e:
        raise_http_error(e)


@router.post("/drain", response_model=DrainResult)
async def drain_translations(
    drain: TranslationDrainDep,
    _: ApiKeyDep,
    batch_size: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> DrainResult:
    """Process one bounded batch of due translation jobs."""
    logger.debug(f"Translation drain requested (batch_size={batch_size})")
    return await drain.drain(batch_size=batch_size)


@router.post("/bulk", response_model=BulkEnqueueResult)
async def bulk_translate(
    request: BulkTranslationRequest,
    bulk_enqueue: BulkEnqueueDep,
    _: ApiKeyDep,
) -> BulkEnqueueResult:
    """Enqueue translations for every translatable field of an organization's content."""
    try:
        return await bulk_enqueue.enqueue_translations(request)
    except AioJobsError as e:
        raise_http_error(e)


@router.get("", response_model=JobPage[TranslationJob])
async def list_translation_jobs(
    job_queue: JobQueueDep,
    filters: Annotated[JobFilter, Query()],
) -> JobPage[TranslationJob]:
    """List translation jobs in drain order."""
    return await job_queue.list_jobs(JobKind.TRANSLATION, filters)


@router.get("/metrics", response_model=JobMetrics)
async def get_translation_metrics(
    metrics: MetricsDep,
    organization_id: str | None = None,
) -> JobMetrics:
    """Get translation queue statistics."""
    return await metrics.translation_metrics(organization_id)


@router.get("/{job_id}", response_model=TranslationJob)
async def get_translation_job(
    job_id: str,
    job_queue: JobQueueDep,
) -> TranslationJob:
    """Get a specific translation job."""
    job = await job_queue.get_job(JobKind.TRANSLATION, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("/{job_id}/cancel", response_model=TranslationJob)
async def cancel_translation_job(
    job_id: str,
    job_queue: JobQueueDep,
    _: ApiKeyDep,
) -> TranslationJob:
    """Cancel a pending or in-progress translation job."""
    try:
        return await job_queue.cancel_job(JobKind.TRANSLATION, job_id)
    except AioJobsError as e:
        raise_http_error(e)
