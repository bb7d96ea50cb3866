"""Exception hierarchy shared by services and the API layer."""

from typing import Any, Optional


class AioJobsError(Exception):
    """Base class for expected service failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class JobValidationError(AioJobsError):
    """Request rejected before anything was written."""


class NotFoundError(AioJobsError):
    """Organization, source row, job or session does not exist (or is soft-deleted)."""


class JobStateError(AioJobsError):
    """Requested transition is not allowed from the job's current status."""


class ProviderError(AioJobsError):
    """Translation or embedding provider returned an error."""


class VersionConflictError(AioJobsError):
    """Optimistic save rejected because the stored version moved on.

    Carries the authoritative document so the caller can re-merge and retry.
    """

    def __init__(self, latest: Any, client_version: Optional[int] = None):
        super().__init__(
            f"Version conflict: client has {client_version}, server has {latest.version}"
        )
        self.latest = latest
        self.client_version = client_version
