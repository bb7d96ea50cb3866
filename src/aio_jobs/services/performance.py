"""Bounded in-memory record of recent request timings."""

import math
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.clock import utcnow
from ..models.metrics import PerformanceSummary


@dataclass
class RequestSample:
    """One completed HTTP request."""

    method: str
    path: str
    status_code: int
    duration_ms: float
    timestamp: datetime


class PerformanceCollector:
    """Ring buffer of request samples; the oldest sample is evicted at capacity."""

    def __init__(self, capacity: int = 500):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._samples: deque[RequestSample] = deque(maxlen=capacity)

    def record(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        timestamp: Optional[datetime] = None,
    ) -> None:
        self._samples.append(
            RequestSample(method, path, status_code, duration_ms, timestamp or utcnow())
        )

    def samples(self) -> list[RequestSample]:
        """Samples oldest first."""
        return list(self._samples)

    def clear(self) -> None:
        self._samples.clear()

    def summary(self) -> PerformanceSummary:
        """Aggregate the buffered samples."""
        if not self._samples:
            return PerformanceSummary(capacity=self.capacity)

        durations = sorted(s.duration_ms for s in self._samples)
        # Nearest-rank percentile
        p95_index = max(math.ceil(0.95 * len(durations)) - 1, 0)

        return PerformanceSummary(
            count=len(durations),
            capacity=self.capacity,
            error_count=sum(1 for s in self._samples if s.status_code >= 500),
            avg_duration_ms=round(sum(durations) / len(durations), 2),
            p95_duration_ms=durations[p95_index],
            max_duration_ms=durations[-1],
        )
