"""Embedding chunk models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .content import ContentType


class Embedding(BaseModel):
    """One stored chunk of an embedded source field."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    source_table: str
    source_id: str
    source_field: str
    job_id: Optional[str] = None
    chunk_index: int
    chunk_text: str
    content_hash: str
    embedding_model: str
    vector: Optional[list[float]] = None  # Only when requested
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EmbeddingFilter(BaseModel):
    """Filter for listing embedding chunks."""

    organization_id: Optional[str] = None
    source_table: Optional[ContentType] = None
    source_id: Optional[str] = None
    is_active: Optional[bool] = None
    include_vectors: bool = False
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class EmbeddingPage(BaseModel):
    """One page of embedding chunks, newest first, plus the unpaged total."""

    data: list[Embedding]
    total: int
