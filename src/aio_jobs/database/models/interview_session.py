"""Interview session ORM model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ...core.clock import utcnow
from ..base import Base


class InterviewSessionORM(Base):
    """ORM model for ai_interview_sessions table.

    `version` is bumped by exactly one on every successful answers save.
    """

    __tablename__ = "ai_interview_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    organization_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    content_type: Mapped[Optional[str]] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    # Answers document
    answers: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)
    deleted_at: Mapped[Optional[datetime]] = mapped_column()
