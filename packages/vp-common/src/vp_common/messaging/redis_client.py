"""
Redis client wrapper for VoxPay.

Async access to the two Redis transports the checkout service uses:
Redis Streams carrying classifier events (``XADD``/``XREAD``) and
pub/sub channels carrying session status snapshots.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis

from vp_common.config import get_settings


class RedisClient:
    """Async Redis wrapper with stream and pub/sub helpers.

    Args:
        url: Redis connection URL.  Falls back to ``Settings.redis_url``.
    """

    def __init__(self, url: str | None = None) -> None:
        self._url = url or get_settings().redis_url
        self._redis: aioredis.Redis | None = None

    # ── lifecycle ──

    async def connect(self, *, verify: bool = True) -> None:
        """Open the connection pool (idempotent).

        Args:
            verify: Issue a ``PING`` so an unreachable server fails here
                rather than on first use.

        Raises:
            redis.exceptions.ConnectionError: If *verify* is set and the
                server does not answer.  The pool is closed first, so the
                client reports ``connected`` as ``False``.
        """
        if self._redis is None:
            self._redis = aioredis.from_url(self._url, decode_responses=True)
        if verify:
            try:
                await self._redis.ping()
            except Exception:
                await self.close()
                raise

    async def close(self) -> None:
        """Close the connection pool, if open."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @property
    def connected(self) -> bool:
        return self._redis is not None

    @property
    def redis(self) -> aioredis.Redis:
        """Return the underlying ``aioredis.Redis`` instance.

        Raises:
            RuntimeError: If ``connect()`` has not been called.
        """
        if self._redis is None:
            raise RuntimeError("RedisClient is not connected. Call connect() first.")
        return self._redis

    # ── pub/sub ──

    async def publish(self, channel: str, message: dict[str, Any] | str) -> int:
        """Publish *message* on *channel*; dicts are JSON-encoded.

        Returns:
            Number of subscribers that received the message.
        """
        payload = json.dumps(message) if isinstance(message, dict) else message
        receivers: int = await self.redis.publish(channel, payload)
        return receivers

    # ── streams ──

    async def xadd(
        self,
        stream: str,
        fields: dict[str, str],
        maxlen: int | None = None,
    ) -> str:
        """Append *fields* to *stream*, trimming approximately to *maxlen*.

        Returns:
            The generated entry ID.
        """
        entry_id: str = await self.redis.xadd(  # type: ignore[assignment]
            stream,
            fields,
            maxlen=maxlen,
            approximate=maxlen is not None,
        )
        return entry_id

    async def xread(
        self,
        streams: dict[str, str],
        count: int = 10,
        block: int | None = None,
    ) -> list[Any]:
        """Read entries newer than the given IDs from one or more streams.

        Args:
            streams: Mapping of stream key → last-seen entry ID.
            count: Maximum entries returned per stream.
            block: Milliseconds to wait for data (``None`` = return at once).

        Returns:
            ``[stream_key, [(entry_id, fields), ...]]`` pairs.
        """
        entries: list[Any] = await self.redis.xread(  # type: ignore[assignment]
            streams,
            count=count,
            block=block,
        )
        return entries

    async def latest_entry_id(self, stream: str) -> str | None:
        """Return the ID of the newest entry in *stream*, or ``None`` if empty."""
        entries: list[Any] = await self.redis.xrevrange(stream, count=1)  # type: ignore[assignment]
        if not entries:
            return None
        return str(entries[0][0])

    # ── health ──

    async def health_check(self) -> bool:
        """Return ``True`` when the server answers ``PING``."""
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except Exception:  # noqa: BLE001
            return False
