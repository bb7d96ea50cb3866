"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2026-10-19

This migration creates the job tables, embeddings, interview sessions and
the CMS content tables the bulk enqueue reads.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONTENT_TABLES = {
    "posts": [("title", sa.String(500)), ("content", sa.Text)],
    "services": [("name", sa.String(255)), ("description", sa.Text)],
    "faqs": [("question", sa.Text), ("answer", sa.Text)],
    "case_studies": [("title", sa.String(500)), ("problem", sa.Text), ("solution", sa.Text)],
    "products": [("name", sa.String(255)), ("description", sa.Text)],
}

ACTIVE_KEY_PREDICATE = sa.text("status IN ('pending', 'in_progress')")


def _job_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=False, index=True),
        sa.Column("source_table", sa.String(50), nullable=False, index=True),
        sa.Column("source_id", sa.String(36), nullable=False),
        sa.Column("source_field", sa.String(50), nullable=False),
        sa.Column("source_text", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("idempotency_key", sa.String(64), nullable=False, index=True),
        sa.Column("priority", sa.Integer, nullable=False, server_default="5"),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_retries", sa.Integer, nullable=False, server_default="3"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("scheduled_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime, nullable=True),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    ]


def _job_indexes(table: str) -> None:
    op.create_index(
        f"uq_{table}_active_key",
        table,
        ["idempotency_key"],
        unique=True,
        sqlite_where=ACTIVE_KEY_PREDICATE,
        postgresql_where=ACTIVE_KEY_PREDICATE,
    )
    op.create_index(f"ix_{table}_drain", table, ["status", "priority", "scheduled_at"])


def upgrade() -> None:
    # Create organizations table
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), unique=True, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Create content tables
    for table, fields in CONTENT_TABLES.items():
        op.create_table(
            table,
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("organization_id", sa.String(36), nullable=False, index=True),
            sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
            *[sa.Column(name, column_type, nullable=True) for name, column_type in fields],
        )

    # Create translation_jobs table
    op.create_table(
        "translation_jobs",
        *_job_columns(),
        sa.Column("source_lang", sa.String(10), nullable=False),
        sa.Column("target_lang", sa.String(10), nullable=False, index=True),
        sa.Column("translated_text", sa.Text, nullable=True),
        sa.Column("translation_service", sa.String(100), nullable=True),
    )
    _job_indexes("translation_jobs")

    # Create embedding_jobs table
    op.create_table(
        "embedding_jobs",
        *_job_columns(),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.Column("chunk_count", sa.Integer, server_default="0"),
        sa.Column("chunk_strategy", sa.String(20), server_default="overlap"),
        sa.Column("embedding_model", sa.String(100), nullable=False),
    )
    _job_indexes("embedding_jobs")

    # Create embeddings table
    op.create_table(
        "embeddings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=False, index=True),
        sa.Column("source_table", sa.String(50), nullable=False),
        sa.Column("source_id", sa.String(36), nullable=False, index=True),
        sa.Column("source_field", sa.String(50), nullable=False),
        sa.Column("job_id", sa.String(36), nullable=True, index=True),
        sa.Column("chunk_index", sa.Integer, nullable=False),
        sa.Column("chunk_text", sa.Text, nullable=False),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.Column("embedding_model", sa.String(100), nullable=False),
        sa.Column("vector", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.true(), index=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Create ai_interview_sessions table
    op.create_table(
        "ai_interview_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=True, index=True),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column("content_type", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("answers", sa.JSON, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime, nullable=True),
    )


def downgrade() -> None:
    op.drop_table("ai_interview_sessions")
    op.drop_table("embeddings")
    op.drop_index("ix_embedding_jobs_drain", table_name="embedding_jobs")
    op.drop_index("uq_embedding_jobs_active_key", table_name="embedding_jobs")
    op.drop_table("embedding_jobs")
    op.drop_index("ix_translation_jobs_drain", table_name="translation_jobs")
    op.drop_index("uq_translation_jobs_active_key", table_name="translation_jobs")
    op.drop_table("translation_jobs")
    for table in reversed(list(CONTENT_TABLES)):
        op.drop_table(table)
    op.drop_table("organizations")
