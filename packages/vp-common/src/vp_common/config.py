"""
Environment-based configuration management for VoxPay.

Uses pydantic-settings to load configuration values from environment
variables and .env files. Every service module reads its settings
through :func:`get_settings` so configuration handling stays consistent.

All environment variables are prefixed with ``VP_`` to avoid collisions.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from ``VP_``-prefixed environment variables.

    Attributes:
        service_name: Name attached to every structured log line.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        redis_url: Redis connection URL (classifier streams, status pub/sub).
        classifier_stream_enabled: Read classifier events from Redis Streams;
            when off, sessions only take events over HTTP.
        api_host: Bind address for the checkout service.
        api_port: Bind port for the checkout service.
        confirmation_cooldown_s: Seconds a session stays ``confirmed``
            before returning to ``listening`` (0 disables the timer).
        transfer_timeout_s: Upper bound on a single executor call
            (0 disables the bound).
        pyusd_transfer_url: Transfer gateway for PYUSD on the EVM chain.
            Gateways take the resolved settlement address as ``recipient``;
            a route keyed by vendor name must sit behind an adapter.
        flow_transfer_url: Transfer gateway for FLOW on the Flow ledger.
        flow_mock_mode: Use the mock ledger executor for FLOW transfers.
        transfer_max_attempts: Connection attempts per transfer.
        transfer_http_timeout_s: Per-request HTTP timeout for gateways.
    """

    model_config = SettingsConfigDict(
        env_prefix="VP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Service ──
    service_name: str = Field(default="checkout", description="Service name for logs.")
    log_level: str = Field(default="INFO", description="Logging level.")

    # ── Redis ──
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL.",
    )
    classifier_stream_enabled: bool = Field(
        default=True,
        description="Consume classifier_events:{session_id} Redis streams.",
    )

    # ── API ──
    api_host: str = Field(default="0.0.0.0", description="Checkout service bind address.")
    api_port: int = Field(default=8010, ge=1, le=65535, description="Checkout service bind port.")

    # ── Controller ──
    confirmation_cooldown_s: float = Field(
        default=8.0,
        description="Seconds spent in 'confirmed' before listening again.",
    )
    transfer_timeout_s: float = Field(
        default=0.0,
        ge=0.0,
        description="Bound on a single transfer call in seconds (0 = unbounded).",
    )

    # ── Transfer gateways ──
    pyusd_transfer_url: str = Field(
        default="http://localhost:3000/api/transfer/pyusd",
        description="Transfer gateway URL for PYUSD (recipient is a settlement address).",
    )
    flow_transfer_url: str = Field(
        default="http://localhost:3000/api/transfer/flow",
        description="Transfer gateway URL for FLOW (recipient is a settlement address).",
    )
    flow_mock_mode: bool = Field(
        default=False,
        description="Settle FLOW transfers with the mock ledger executor.",
    )
    transfer_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Connection attempts per transfer; delivered requests are never resent.",
    )
    transfer_http_timeout_s: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-request HTTP timeout for transfer gateways.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Returns:
        The global ``Settings`` instance.
    """
    return Settings()
