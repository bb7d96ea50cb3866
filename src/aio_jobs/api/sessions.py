"""Interview session API endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from aio_jobs.api.deps import ApiKeyDep, SessionStoreDep, raise_http_error
from aio_jobs.core.errors import AioJobsError, VersionConflictError
from aio_jobs.models.session import (
    InterviewSession,
    InterviewSessionCreate,
    SaveAnswersConflict,
    SaveAnswersRequest,
    SaveAnswersSuccess,
    SessionDetail,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("", response_model=InterviewSession, status_code=201)
async def create_session(
    request: InterviewSessionCreate,
    session_store: SessionStoreDep,
    _: ApiKeyDep,
) -> InterviewSession:
    """Open a new interview session."""
    return await session_store.create_session(request)


@router.get("/{session_id}", response_model=SessionDetail)
async def get_session(
    session_id: str,
    session_store: SessionStoreDep,
) -> SessionDetail:
    """Get a session; completed sessions are flagged read-only."""
    try:
        return await session_store.get_session(session_id)
    except AioJobsError as e:
        raise_http_error(e)


@router.patch(
    "/{session_id}",
    response_model=SaveAnswersSuccess,
    responses={409: {"model": SaveAnswersConflict}},
)
async def save_answers(
    session_id: str,
    request: SaveAnswersRequest,
    session_store: SessionStoreDep,
    _: ApiKeyDep,
):
    """Save partial answers if the client's version is still current.

    On a version conflict nothing is written and the latest stored document
    is returned so the client can re-merge and retry.
    """
    try:
        return await session_store.save_answers(
            session_id, request.answers, request.client_version
        )
    except VersionConflictError as e:
        conflict = SaveAnswersConflict(latest=e.latest)
        return JSONResponse(status_code=409, content=conflict.model_dump(mode="json"))
    except AioJobsError as e:
        raise_http_error(e)


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    session_store: SessionStoreDep,
    _: ApiKeyDep,
) -> dict:
    """Soft-delete a session."""
    try:
        await session_store.delete_session(session_id)
    except AioJobsError as e:
        raise_http_error(e)
    return {"status": "ok", "session_id": session_id}
