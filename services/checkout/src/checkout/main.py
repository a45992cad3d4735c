"""
Checkout service entry point for VoxPay.

Builds the recipient directory and transfer executor table, connects
Redis for classifier streams and status snapshots, and exposes session,
inventory, health and metrics endpoints.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from vp_common.config import get_settings
from vp_common.logging import configure_logging
from vp_common.messaging.redis_client import RedisClient

from checkout.classifier import IntentSource, RedisIntentSource
from checkout.directory import default_directory
from checkout.executors import build_executor_table
from checkout.routers import health, inventory, sessions
from checkout.session import SessionManager

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: build shared tables, connect Redis, stop sessions."""
    settings = get_settings()
    configure_logging(settings.service_name, settings.log_level)

    # ── startup ──
    executors = build_executor_table(settings)

    redis_client = RedisClient(settings.redis_url)
    try:
        await redis_client.connect()
    except Exception:
        # Each session retries on open and fails on its own.
        logger.warning("redis_connect_failed", url=settings.redis_url, exc_info=True)

    def _source_factory(session_id: str) -> IntentSource | None:
        if not settings.classifier_stream_enabled:
            return None
        return RedisIntentSource(redis_client, session_id)

    publisher = redis_client if redis_client.connected else None
    manager = SessionManager(
        default_directory(),
        executors,
        source_factory=_source_factory,
        publisher=publisher,
        cooldown_s=settings.confirmation_cooldown_s,
        transfer_timeout_s=settings.transfer_timeout_s or None,
    )

    app.state.executors = executors
    app.state.redis = redis_client
    app.state.manager = manager

    logger.info(
        "checkout_startup",
        currencies=executors.symbols(),
        classifier_stream=settings.classifier_stream_enabled,
        cooldown_s=settings.confirmation_cooldown_s,
    )

    yield

    # ── shutdown ──
    logger.info("checkout_shutdown")
    await manager.stop_all()
    await executors.close_all()
    await redis_client.close()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(title="VoxPay Checkout Service", lifespan=lifespan)
    app.include_router(health.router)
    app.include_router(sessions.router, prefix="/api/v1")
    app.include_router(inventory.router, prefix="/api/v1")

    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)
    return app


app = create_app()


def main() -> None:
    """Run the checkout service with Uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "checkout.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
