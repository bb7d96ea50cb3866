"""Translation and embedding job ORM models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from ...core.clock import utcnow
from ..base import Base

# Partial unique index predicate: one outstanding job per idempotency key
ACTIVE_KEY_PREDICATE = text("status IN ('pending', 'in_progress')")


class JobColumnsMixin:
    """Columns shared by both job tables."""

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Tenant and source reference
    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    source_table: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    source_id: Mapped[str] = mapped_column(String(36), nullable=False)
    source_field: Mapped[str] = mapped_column(String(50), nullable=False)

    # Frozen input snapshot
    source_text: Mapped[str] = mapped_column(Text, nullable=False)

    # Queue bookkeeping
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    idempotency_key: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    scheduled_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    started_at: Mapped[Optional[datetime]] = mapped_column()
    completed_at: Mapped[Optional[datetime]] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)


class TranslationJobORM(JobColumnsMixin, Base):
    """ORM model for translation_jobs table."""

    __tablename__ = "translation_jobs"
    __table_args__ = (
        Index(
            "uq_translation_jobs_active_key",
            "idempotency_key",
            unique=True,
            sqlite_where=ACTIVE_KEY_PREDICATE,
            postgresql_where=ACTIVE_KEY_PREDICATE,
        ),
        Index("ix_translation_jobs_drain", "status", "priority", "scheduled_at"),
    )

    source_lang: Mapped[str] = mapped_column(String(10), nullable=False)
    target_lang: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    translated_text: Mapped[Optional[str]] = mapped_column(Text)
    translation_service: Mapped[Optional[str]] = mapped_column(String(100))


class EmbeddingJobORM(JobColumnsMixin, Base):
    """ORM model for embedding_jobs table."""

    __tablename__ = "embedding_jobs"
    __table_args__ = (
        Index(
            "uq_embedding_jobs_active_key",
            "idempotency_key",
            unique=True,
            sqlite_where=ACTIVE_KEY_PREDICATE,
            postgresql_where=ACTIVE_KEY_PREDICATE,
        ),
        Index("ix_embedding_jobs_drain", "status", "priority", "scheduled_at"),
    )

    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    chunk_count: Mapped[int] = mapped_column(Integer, default=0)
    chunk_strategy: Mapped[str] = mapped_column(String(20), default="overlap")
    embedding_model: Mapped[str] = mapped_column(String(100), nullable=False)
