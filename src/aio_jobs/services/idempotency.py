"""Idempotency keys for the job tables."""

import hashlib
from typing import Optional

from ..models.job import JobKind

_KEY_PREFIX = {
    JobKind.TRANSLATION: "translate",
    JobKind.EMBEDDING: "embed",
}


def build_idempotency_key(
    kind: JobKind,
    organization_id: str,
    source_table: str,
    source_id: str,
    source_field: str,
    target_lang: Optional[str] = None,
) -> str:
    """
    Derive the idempotency key of one logical unit of work.

    Only identifying fields go into the key, not the source text, so an edit
    made while a job is still outstanding coalesces onto that job.

    Args:
        kind: Job kind
        organization_id: Owning organization
        source_table: Content table
        source_id: Content row ID
        source_field: Content field
        target_lang: Target language (translation only)

    Returns:
        Hex SHA-256 digest
    """
    parts = [
        _KEY_PREFIX[kind],
        organization_id,
        source_table,
        source_id,
        source_field,
        target_lang or "",
    ]
    return hashlib.sha256(":".join(parts).encode("utf-8")).hexdigest()


def content_hash(text: str) -> str:
    """SHA-256 hex digest of a text snapshot."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
