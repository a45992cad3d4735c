"""
FastAPI dependency providers for the VoxPay checkout service.

Shared objects are stored on ``app.state`` during startup; tests build
an app and set the same attributes directly.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request

from checkout.executors.table import ExecutorTable
from checkout.session import CheckoutSession, SessionManager


async def get_manager(request: Request) -> SessionManager:
    """Return the app-wide :class:`SessionManager`."""
    manager: SessionManager | None = getattr(request.app.state, "manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Session manager not ready")
    return manager


async def get_executors(request: Request) -> ExecutorTable | None:
    return getattr(request.app.state, "executors", None)


async def get_redis(request: Request) -> Any:
    """Return the shared Redis client from app state."""
    return getattr(request.app.state, "redis", None)


def require_session(manager: SessionManager, session_id: str) -> CheckoutSession:
    session = manager.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
