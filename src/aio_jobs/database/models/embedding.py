"""Embedding chunk ORM model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ...core.clock import utcnow
from ..base import Base


class EmbeddingORM(Base):
    """ORM model for embeddings table.

    One row per chunk of a source field. Re-embedding a field deactivates the
    previous rows instead of deleting them.
    """

    __tablename__ = "embeddings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Source reference
    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    source_table: Mapped[str] = mapped_column(String(50), nullable=False)
    source_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    source_field: Mapped[str] = mapped_column(String(50), nullable=False)
    job_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    # Chunk payload
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_text: Mapped[str] = mapped_column(Text, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    embedding_model: Mapped[str] = mapped_column(String(100), nullable=False)
    vector: Mapped[list] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)
