"""
Health check endpoint for the VoxPay checkout service.

Reports transfer executor readiness and the Redis connection used for
classifier streams and status snapshots.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from checkout.dependencies import get_executors, get_redis
from checkout.executors.table import ExecutorTable

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    executors: ExecutorTable | None = Depends(get_executors),
    redis: Any = Depends(get_redis),
) -> dict[str, Any]:
    """Return service health including executor readiness.

    Returns:
        Dict with ``status``, ``service``, ``executors`` and ``redis`` keys.
    """
    executor_status = await executors.health() if executors is not None else {}
    if redis is None:
        redis_status = "not_configured"
    else:
        redis_status = "healthy" if await redis.health_check() else "unhealthy"

    all_ok = (
        bool(executor_status)
        and all(executor_status.values())
        and redis_status != "unhealthy"
    )
    return {
        "status": "ok" if all_ok else "degraded",
        "service": "checkout",
        "executors": executor_status,
        "redis": redis_status,
    }
