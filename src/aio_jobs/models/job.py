"""Job-related models."""

from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .content import ContentType

LANG_PATTERN = r"^[a-z]{2,3}(-[A-Za-z0-9]{2,8})?$"


class JobStatus(str, Enum):
    """Status of a job."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """True once the job can no longer change status."""
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES = (JobStatus.PENDING, JobStatus.IN_PROGRESS)
TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


class JobKind(str, Enum):
    """Type of job."""

    TRANSLATION = "translation"
    EMBEDDING = "embedding"


class JobCreate(BaseModel):
    """Fields common to every enqueue request."""

    organization_id: str = Field(min_length=1)
    source_table: ContentType
    source_id: str = Field(min_length=1)
    source_field: str = Field(min_length=1)
    priority: Optional[int] = Field(default=None, ge=1, le=10)  # Higher = more urgent
    max_retries: Optional[int] = Field(default=None, ge=0, le=10)
    delay_seconds: int = Field(default=0, ge=0)  # Delayed scheduling


class TranslationJobCreate(JobCreate):
    """Request to enqueue a translation job."""

    source_lang: str = Field(pattern=LANG_PATTERN)
    target_lang: str = Field(pattern=LANG_PATTERN)
    source_text: str = Field(min_length=1)

    @model_validator(mode="after")
    def check_language_pair(self) -> "TranslationJobCreate":
        if self.source_lang == self.target_lang:
            raise ValueError("target_lang must differ from source_lang")
        return self


class EmbeddingJobCreate(JobCreate):
    """Request to enqueue an embedding job."""

    source_text: str = Field(
        min_length=1,
        validation_alias=AliasChoices("source_text", "content_text"),
    )


class JobBase(BaseModel):
    """A job in the system."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    source_table: str
    source_id: str
    source_field: str
    source_text: str

    status: JobStatus = JobStatus.PENDING
    idempotency_key: str
    priority: int = 5
    retry_count: int = 0
    max_retries: int = 3
    error_message: Optional[str] = None

    # Timestamps
    scheduled_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TranslationJob(JobBase):
    """A translation job."""

    source_lang: str
    target_lang: str
    translated_text: Optional[str] = None
    translation_service: Optional[str] = None


class EmbeddingJob(JobBase):
    """An embedding job."""

    content_hash: str
    chunk_count: int = 0
    chunk_strategy: str = "overlap"
    embedding_model: str


JobT = TypeVar("JobT", bound=JobBase)


class JobFilter(BaseModel):
    """Filter for listing jobs."""

    organization_id: Optional[str] = None
    source_table: Optional[ContentType] = None
    source_field: Optional[str] = None
    source_lang: Optional[str] = None  # Translation only
    target_lang: Optional[str] = None  # Translation only
    status: Optional[JobStatus] = None
    priority_min: Optional[int] = Field(default=None, ge=1, le=10)
    priority_max: Optional[int] = Field(default=None, ge=1, le=10)
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class JobPage(BaseModel, Generic[JobT]):
    """One page of jobs plus the unpaged total."""

    data: list[JobT]
    total: int


class EnqueueResult(BaseModel):
    """Outcome of a single enqueue call."""

    success: bool = True
    skipped: bool = False  # True when deduplicated onto an outstanding job
    job_id: Optional[str] = None
    message: str


class DrainResult(BaseModel):
    """Outcome of one bounded drain cycle."""

    success: bool = True
    processed_count: int = 0  # Jobs claimed and executed by this cycle
    completed_count: int = 0
    retried_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0  # Candidates claimed by a concurrent cycle
    message: str = ""


class BulkTranslationRequest(BaseModel):
    """Request to translate every matching content row of an organization."""

    organization_id: str = Field(min_length=1)
    target_languages: list[str] = Field(min_length=1)
    content_types: list[ContentType] = Field(default_factory=lambda: list(ContentType))
    source_lang: Optional[str] = None
    priority: int = Field(default=5, ge=1, le=10)


class BulkEmbeddingRequest(BaseModel):
    """Request to embed every matching content row of an organization."""

    organization_id: str = Field(min_length=1)
    content_types: list[ContentType] = Field(default_factory=lambda: list(ContentType))
    priority: int = Field(default=5, ge=1, le=10)


class BulkEnqueueResult(BaseModel):
    """Aggregate outcome of a bulk enqueue; item failures never abort the batch."""

    success: bool = True
    requested_count: int = 0
    enqueued_count: int = 0  # Successful enqueue calls, dedup no-ops included
    skipped_count: int = 0  # Of which deduplicated
    failed_count: int = 0
    message: str = ""
