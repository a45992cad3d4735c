"""
Intent classifier transport for the VoxPay checkout service.

The conversational-AI front end writes each classified utterance to the
Redis stream ``classifier_events:{session_id}`` as an entry with a
single ``payload`` field (JSON or plain text).  :class:`RedisIntentSource`
reads that stream in arrival order and yields raw payloads; parsing into
typed intents happens in :mod:`checkout.intent_parser`.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

import structlog

from vp_common.messaging.redis_client import RedisClient

logger = structlog.get_logger()

STREAM_KEY_TEMPLATE = "classifier_events:{session_id}"


class IntentSource(ABC):
    """An ordered, single-producer stream of raw classifier messages."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the stream.

        Raises:
            Exception: Any failure means the classifier is unreachable.
        """
        ...  # pragma: no cover

    @abstractmethod
    def messages(self, stop_event: asyncio.Event) -> AsyncIterator[str]:
        """Yield raw messages in arrival order until *stop_event* is set."""
        ...  # pragma: no cover

    async def close(self) -> None:
        """Release the stream (override if needed)."""


class RedisIntentSource(IntentSource):
    """Read ``classifier_events:{session_id}`` with blocking ``XREAD``.

    Args:
        redis_client: Shared :class:`RedisClient`; not closed by this source.
        session_id: Session whose classifier stream is consumed.
        block_ms: ``XREAD`` block timeout in milliseconds.
        start_id: Entry ID to read after (``"$"`` = only new entries).
    """

    def __init__(
        self,
        redis_client: RedisClient,
        session_id: str,
        *,
        block_ms: int = 1000,
        start_id: str = "$",
    ) -> None:
        self._redis = redis_client
        self.stream_key = STREAM_KEY_TEMPLATE.format(session_id=session_id)
        self._block_ms = block_ms
        self._last_id = start_id

    async def connect(self) -> None:
        await self._redis.connect()
        if self._last_id == "$":
            # Resolve "$" once; later reads continue from a concrete ID.
            self._last_id = await self._redis.latest_entry_id(self.stream_key) or "0"

    async def messages(self, stop_event: asyncio.Event) -> AsyncIterator[str]:
        log = logger.bind(stream_key=self.stream_key)
        log.info("classifier_stream_opened", last_id=self._last_id)

        while not stop_event.is_set():
            try:
                entries: list[Any] = await self._redis.xread(
                    {self.stream_key: self._last_id},
                    count=10,
                    block=self._block_ms,
                )
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("classifier_stream_read_error")
                await asyncio.sleep(1.0)
                continue

            for _stream_name, stream_entries in entries or []:
                for entry_id, fields in stream_entries:
                    self._last_id = entry_id
                    payload = fields.get("payload")
                    if payload is None:
                        log.warning("classifier_entry_missing_payload", entry_id=entry_id)
                        continue
                    yield payload

        log.info("classifier_stream_closed")
