"""
Tests for vp-common Redis client.

Validates the ``RedisClient`` wrapper using a mocked ``redis.asyncio``
backend, covering connect, close, publish, xadd, xread and health_check.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from vp_common.messaging.redis_client import RedisClient


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_redis() -> AsyncMock:
    """Return a fully-mocked ``aioredis.Redis`` instance."""
    r = AsyncMock()
    r.publish = AsyncMock(return_value=1)
    r.ping = AsyncMock(return_value=True)
    r.xadd = AsyncMock(return_value="1700000000000-0")
    r.xread = AsyncMock(return_value=[])
    r.aclose = AsyncMock()
    return r


@pytest.fixture()
def client(mock_redis: AsyncMock) -> RedisClient:
    """Return a ``RedisClient`` with the internal connection pre-set."""
    c = RedisClient(url="redis://localhost:6379/0")
    c._redis = mock_redis
    return c


# ---------------------------------------------------------------------------
# Tests: lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:

    async def test_connect_creates_and_pings(self) -> None:
        with patch("vp_common.messaging.redis_client.aioredis.from_url") as mock_from:
            backend = AsyncMock()
            mock_from.return_value = backend
            c = RedisClient(url="redis://localhost:6379/0")
            await c.connect()
            mock_from.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
            backend.ping.assert_awaited_once()
            assert c.connected

    async def test_connect_idempotent(self) -> None:
        with patch("vp_common.messaging.redis_client.aioredis.from_url") as mock_from:
            mock_from.return_value = AsyncMock()
            c = RedisClient(url="redis://localhost:6379/0")
            await c.connect()
            await c.connect(verify=False)
            mock_from.assert_called_once()

    async def test_connect_propagates_ping_failure(self) -> None:
        with patch("vp_common.messaging.redis_client.aioredis.from_url") as mock_from:
            backend = AsyncMock()
            backend.ping.side_effect = ConnectionError("refused")
            mock_from.return_value = backend
            with pytest.raises(ConnectionError):
                await RedisClient(url="redis://localhost:6379/0").connect()

    async def test_failed_ping_leaves_client_disconnected(self) -> None:
        with patch("vp_common.messaging.redis_client.aioredis.from_url") as mock_from:
            backend = AsyncMock()
            backend.ping.side_effect = ConnectionError("refused")
            mock_from.return_value = backend
            c = RedisClient(url="redis://127.0.0.1:1/0")
            with pytest.raises(ConnectionError):
                await c.connect()
            backend.aclose.assert_awaited_once()
            assert not c.connected
            with pytest.raises(RuntimeError, match="not connected"):
                _ = c.redis

    async def test_close(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        await client.close()
        mock_redis.aclose.assert_awaited_once()
        assert not client.connected

    def test_redis_property_raises_when_not_connected(self) -> None:
        c = RedisClient(url="redis://localhost:6379/0")
        with pytest.raises(RuntimeError, match="not connected"):
            _ = c.redis


# ---------------------------------------------------------------------------
# Tests: pub/sub and streams
# ---------------------------------------------------------------------------


class TestPublish:

    async def test_publish_dict_is_json_encoded(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        receivers = await client.publish("checkout_status:s-1", {"state": "listening"})
        assert receivers == 1
        channel, payload = mock_redis.publish.await_args.args
        assert channel == "checkout_status:s-1"
        assert json.loads(payload) == {"state": "listening"}

    async def test_publish_string_passes_through(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        await client.publish("checkout_status:s-1", '{"state":"error"}')
        mock_redis.publish.assert_awaited_once_with("checkout_status:s-1", '{"state":"error"}')


class TestStreams:

    async def test_xadd(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        entry_id = await client.xadd("classifier_events:s-1", {"payload": "hello"}, maxlen=100)
        assert entry_id == "1700000000000-0"
        mock_redis.xadd.assert_awaited_once_with(
            "classifier_events:s-1", {"payload": "hello"}, maxlen=100, approximate=True
        )

    async def test_xread(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        mock_redis.xread.return_value = [["classifier_events:s-1", [("1-0", {"payload": "hi"})]]]
        entries = await client.xread({"classifier_events:s-1": "0"}, block=100)
        assert entries[0][1][0][1]["payload"] == "hi"
        mock_redis.xread.assert_awaited_once_with({"classifier_events:s-1": "0"}, count=10, block=100)


class TestLatestEntryId:

    async def test_newest_entry(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        mock_redis.xrevrange = AsyncMock(return_value=[("1700-9", {"payload": "x"})])
        assert await client.latest_entry_id("classifier_events:s-1") == "1700-9"
        mock_redis.xrevrange.assert_awaited_once_with("classifier_events:s-1", count=1)

    async def test_empty_stream(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        mock_redis.xrevrange = AsyncMock(return_value=[])
        assert await client.latest_entry_id("classifier_events:s-1") is None


class TestHealthCheck:

    async def test_healthy(self, client: RedisClient) -> None:
        assert await client.health_check() is True

    async def test_ping_failure_is_unhealthy(self, client: RedisClient, mock_redis: AsyncMock) -> None:
        mock_redis.ping.side_effect = ConnectionError("down")
        assert await client.health_check() is False

    async def test_not_connected_is_unhealthy(self) -> None:
        assert await RedisClient(url="redis://localhost:6379/0").health_check() is False
