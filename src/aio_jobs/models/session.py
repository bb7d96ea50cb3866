"""Interview session models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionStatus(str, Enum):
    """Status of an interview session."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class InterviewSessionCreate(BaseModel):
    """Request to open a new interview session."""

    user_id: str = Field(min_length=1)
    organization_id: Optional[str] = None
    content_type: Optional[str] = None
    answers: dict[str, Any] = Field(default_factory=dict)


class InterviewSession(BaseModel):
    """An interview session."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: Optional[str] = None
    user_id: str
    content_type: Optional[str] = None
    status: SessionStatus = SessionStatus.DRAFT
    answers: dict[str, Any] = Field(default_factory=dict)
    version: int = 0
    created_at: datetime
    updated_at: datetime


class SessionDetail(BaseModel):
    """Session plus whether it can still be edited."""

    model_config = ConfigDict(populate_by_name=True)

    data: InterviewSession
    read_only: bool = Field(default=False, serialization_alias="readOnly")


class SaveAnswersRequest(BaseModel):
    """Partial answers to merge, guarded by the client's last-known version."""

    model_config = ConfigDict(populate_by_name=True)

    answers: dict[str, Any]
    client_version: int = Field(ge=0, alias="clientVersion")


class SaveAnswersSuccess(BaseModel):
    """Answers committed; the session moved to `new_version`."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    new_version: int = Field(serialization_alias="newVersion")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class LatestSessionState(BaseModel):
    """Authoritative session document returned on a version conflict."""

    id: str
    version: int
    updated_at: datetime
    answers: dict[str, Any]


class SaveAnswersConflict(BaseModel):
    """409 payload: nothing was written, re-merge against `latest`."""

    conflict: bool = True
    latest: LatestSessionState
