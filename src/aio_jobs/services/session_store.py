"""Interview session storage with optimistic concurrency on answer saves."""

import logging
from typing import Any
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.clock import utcnow
from ..core.errors import NotFoundError, VersionConflictError
from ..database.models.interview_session import InterviewSessionORM
from ..database.session import SessionLocal
from ..models.session import (
    InterviewSession,
    InterviewSessionCreate,
    LatestSessionState,
    SaveAnswersSuccess,
    SessionDetail,
    SessionStatus,
)
from ..repositories.session_repository import InterviewSessionRepository

logger = logging.getLogger(__name__)


class SessionStore:
    """Creates, reads, saves and soft-deletes interview sessions."""

    def __init__(self, session_factory: async_sessionmaker = SessionLocal):
        """
        Initialize session store.

        Args:
            session_factory: Session factory (defaults to the application database)
        """
        self._session_factory = session_factory

    async def _get_session(self) -> AsyncSession:
        """Get a new database session."""
        return self._session_factory()

    async def create_session(self, request: InterviewSessionCreate) -> InterviewSession:
        """Open a new draft session at version 0."""
        async with await self._get_session() as session:
            repo = InterviewSessionRepository(session)
            now = utcnow()
            session_orm = await repo.create(
                InterviewSessionORM(
                    id=str(uuid4()),
                    organization_id=request.organization_id,
                    user_id=request.user_id,
                    content_type=request.content_type,
                    status=SessionStatus.DRAFT.value,
                    answers=dict(request.answers),
                    version=0,
                    created_at=now,
                    updated_at=now,
                )
            )
            created = repo.to_pydantic(session_orm)
            await session.commit()

        logger.info(f"Interview session created: {created.id}")
        return created

    async def get_session(self, session_id: str) -> SessionDetail:
        """
        Get a live session.

        Raises:
            NotFoundError: Session missing or soft-deleted
        """
        async with await self._get_session() as session:
            repo = InterviewSessionRepository(session)
            session_orm = await repo.get_live(session_id)
            if session_orm is None:
                raise NotFoundError(f"Session not found: {session_id}")
            current = repo.to_pydantic(session_orm)

        return SessionDetail(
            data=current,
            read_only=current.status == SessionStatus.COMPLETED,
        )

    async def save_answers(
        self, session_id: str, answers: dict[str, Any], client_version: int
    ) -> SaveAnswersSuccess:
        """
        Merge partial answers into a session if the client is up to date.

        The merge is shallow: top-level keys in `answers` replace stored ones,
        other stored keys are kept. The write only lands if the stored version
        still equals `client_version`, checked in the same UPDATE that bumps it.

        Args:
            session_id: Session ID
            answers: Partial answers document
            client_version: Version the client last read

        Returns:
            New version and update time

        Raises:
            NotFoundError: Session missing or soft-deleted
            VersionConflictError: Stored version differs; carries the latest document
        """
        async with await self._get_session() as session:
            repo = InterviewSessionRepository(session)
            current = await repo.get_live(session_id)
            if current is None:
                raise NotFoundError(f"Session not found: {session_id}")

            if current.version != client_version:
                raise self._conflict(current, client_version)

            merged = {**(current.answers or {}), **answers}
            now = utcnow()
            if not await repo.compare_and_swap_answers(session_id, client_version, merged, now):
                # A concurrent writer committed between the read and the update
                await session.rollback()
                latest = await repo.get_live(session_id)
                if latest is None:
                    raise NotFoundError(f"Session not found: {session_id}")
                raise self._conflict(latest, client_version)

            await session.commit()

        logger.info(f"Session {session_id} saved at version {client_version + 1}")
        return SaveAnswersSuccess(new_version=client_version + 1, updated_at=now)

    async def delete_session(self, session_id: str) -> None:
        """
        Soft-delete a session.

        Raises:
            NotFoundError: Session missing or already deleted
        """
        async with await self._get_session() as session:
            repo = InterviewSessionRepository(session)
            if not await repo.soft_delete(session_id, utcnow()):
                raise NotFoundError(f"Session not found: {session_id}")
            await session.commit()

        logger.info(f"Interview session deleted: {session_id}")

    @staticmethod
    def _conflict(session_orm: InterviewSessionORM, client_version: int) -> VersionConflictError:
        latest = LatestSessionState(
            id=session_orm.id,
            version=session_orm.version,
            updated_at=session_orm.updated_at,
            answers=dict(session_orm.answers or {}),
        )
        logger.info(
            f"Session {session_orm.id} save conflict: client version {client_version}, "
            f"stored version {latest.version}"
        )
        return VersionConflictError(latest, client_version)
