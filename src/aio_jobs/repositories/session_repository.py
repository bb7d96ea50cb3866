"""Interview session repository for database operations."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.models.interview_session import InterviewSessionORM
from ..models.session import InterviewSession, SessionStatus
from .base import BaseRepository


class InterviewSessionRepository(BaseRepository[InterviewSessionORM]):
    """Repository for interview session database operations."""

    def __init__(self, session: AsyncSession):
        """Initialize interview session repository."""
        super().__init__(InterviewSessionORM, session)

    def to_pydantic(self, session_orm: InterviewSessionORM) -> InterviewSession:
        """Convert ORM model to Pydantic model."""
        return InterviewSession(
            id=session_orm.id,
            organization_id=session_orm.organization_id,
            user_id=session_orm.user_id,
            content_type=session_orm.content_type,
            status=SessionStatus(session_orm.status),
            answers=dict(session_orm.answers or {}),
            version=session_orm.version,
            created_at=session_orm.created_at,
            updated_at=session_orm.updated_at,
        )

    async def get_live(self, session_id: str) -> Optional[InterviewSessionORM]:
        """
        Get a session that has not been soft-deleted.

        Args:
            session_id: Session ID

        Returns:
            ORM session instance or None
        """
        result = await self.session.execute(
            select(InterviewSessionORM)
            .where(InterviewSessionORM.id == session_id)
            .where(InterviewSessionORM.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def compare_and_swap_answers(
        self,
        session_id: str,
        expected_version: int,
        answers: dict[str, Any],
        now: datetime,
    ) -> bool:
        """
        Write answers and bump the version if the stored version still matches.

        The version check and the increment are one UPDATE statement.

        Args:
            session_id: Session ID
            expected_version: Version the caller last read
            answers: Full merged answers document
            now: Write time

        Returns:
            True if committed, False if the version moved or the session was deleted
        """
        return await self.update_where(
            session_id,
            InterviewSessionORM.version == expected_version,
            InterviewSessionORM.deleted_at.is_(None),
            answers=answers,
            version=InterviewSessionORM.version + 1,
            updated_at=now,
        )

    async def soft_delete(self, session_id: str, now: datetime) -> bool:
        """
        Mark a session deleted.

        Args:
            session_id: Session ID
            now: Deletion time

        Returns:
            True if deleted, False if missing or already deleted
        """
        return await self.update_where(
            session_id,
            InterviewSessionORM.deleted_at.is_(None),
            deleted_at=now,
            updated_at=now,
        )
