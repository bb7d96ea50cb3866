"""Admin API endpoints."""

from fastapi import APIRouter

from aio_jobs.api.deps import ApiKeyDep, PerformanceDep
from aio_jobs.models.metrics import PerformanceSummary

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/performance", response_model=PerformanceSummary)
async def get_performance(
    performance: PerformanceDep,
    _: ApiKeyDep,
) -> PerformanceSummary:
    """Summarize recent request timings."""
    return performance.summary()


@router.get("/performance/samples")
async def get_performance_samples(
    performance: PerformanceDep,
    _: ApiKeyDep,
) -> list[dict]:
    """Get the buffered request samples, oldest first."""
    return [
        {
            "method": s.method,
            "path": s.path,
            "status_code": s.status_code,
            "duration_ms": s.duration_ms,
            "timestamp": s.timestamp.isoformat(),
        }
        for s in performance.samples()
    ]


@router.delete("/performance")
async def clear_performance(
    performance: PerformanceDep,
    _: ApiKeyDep,
) -> dict:
    """Drop all buffered request samples."""
    performance.clear()
    return {"status": "ok"}
