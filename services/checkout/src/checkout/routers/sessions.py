"""
Checkout session API router for VoxPay.

Opens and closes sessions, returns snapshots, and accepts raw classifier
messages over HTTP.  HTTP messages join the same queue as the Redis
classifier stream, so ordering is shared.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from vp_common.models.session import SessionSnapshot

from checkout.dependencies import get_manager, require_session
from checkout.schemas import (
    EventSubmitRequest,
    EventSubmitResponse,
    SessionCreateRequest,
    SessionListResponse,
)
from checkout.session import SessionManager

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", status_code=201, response_model=SessionSnapshot)
async def create_session(
    body: SessionCreateRequest | None = None,
    manager: SessionManager = Depends(get_manager),
) -> SessionSnapshot:
    session_id = body.session_id if body is not None else None
    try:
        session = await manager.start_session(session_id)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return session.snapshot()


@router.get("", response_model=SessionListResponse)
async def list_sessions(manager: SessionManager = Depends(get_manager)) -> SessionListResponse:
    snapshots = [session.snapshot() for session in manager.sessions()]
    return SessionListResponse(sessions=snapshots, total=len(snapshots))


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_manager),
) -> SessionSnapshot:
    return require_session(manager, session_id).snapshot()


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_manager),
) -> None:
    if not await manager.stop_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/{session_id}/events", status_code=202, response_model=EventSubmitResponse)
async def submit_event(
    session_id: str,
    body: EventSubmitRequest,
    wait: bool = Query(default=True, description="Return once the message is applied."),
    manager: SessionManager = Depends(get_manager),
) -> EventSubmitResponse:
    session = require_session(manager, session_id)
    if not manager.is_running(session_id):
        raise HTTPException(status_code=409, detail="Session is not accepting events")

    session.submit(body.message)
    if wait:
        await session.drain()
    return EventSubmitResponse(queued=not wait, snapshot=session.snapshot())
