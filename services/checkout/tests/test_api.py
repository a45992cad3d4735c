"""
Tests for the checkout HTTP surface.

Routers are mounted on a bare FastAPI app whose ``app.state`` is filled
by fixtures; the full application factory is exercised with Redis
patched out.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from vp_common.config import get_settings

from checkout.directory import RecipientDirectory
from checkout.executors.table import ExecutorTable
from checkout.main import create_app
from checkout.routers import health, inventory, sessions
from checkout.session import SessionManager

TRANSACTION = {"intent": "TRANSACTION", "amount": 10, "currency": "USD", "recipient": "ApprovedVendor"}
YES = {"intent": "CONFIRMATION", "decision": "yes"}


@pytest.fixture()
def app(directory: RecipientDirectory, executors: ExecutorTable) -> FastAPI:
    application = FastAPI()
    application.include_router(health.router)
    application.include_router(sessions.router, prefix="/api/v1")
    application.include_router(inventory.router, prefix="/api/v1")
    application.state.executors = executors
    application.state.manager = SessionManager(directory, executors, cooldown_s=0)
    return application


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c
        # Stop consumer tasks inside the client's event loop.
        c.portal.call(app.state.manager.stop_all)


# ── Health ───────────────────────────────────────────────────


class TestHealth:

    def test_ok_with_healthy_executors(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "checkout"
        assert data["executors"] == {"pyusd_stub": True, "flow_stub": True}
        assert data["redis"] == "not_configured"

    def test_degraded_when_redis_down(self, app: FastAPI, client: TestClient) -> None:
        redis = MagicMock()
        redis.health_check = AsyncMock(return_value=False)
        app.state.redis = redis
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["redis"] == "unhealthy"


# ── Sessions ─────────────────────────────────────────────────


class TestSessions:

    def test_create_session(self, client: TestClient) -> None:
        resp = client.post("/api/v1/sessions", json={"session_id": "s-1"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["session_id"] == "s-1"
        assert data["state"] == "listening"

    def test_create_without_body_generates_id(self, client: TestClient) -> None:
        resp = client.post("/api/v1/sessions")
        assert resp.status_code == 201
        assert resp.json()["session_id"]

    def test_duplicate_session_conflict(self, client: TestClient) -> None:
        client.post("/api/v1/sessions", json={"session_id": "dup"})
        resp = client.post("/api/v1/sessions", json={"session_id": "dup"})
        assert resp.status_code == 409

    def test_get_and_list(self, client: TestClient) -> None:
        client.post("/api/v1/sessions", json={"session_id": "s-2"})
        assert client.get("/api/v1/sessions/s-2").json()["state"] == "listening"
        listing = client.get("/api/v1/sessions").json()
        assert listing["total"] == 1
        assert listing["sessions"][0]["session_id"] == "s-2"

    def test_get_unknown_404(self, client: TestClient) -> None:
        assert client.get("/api/v1/sessions/nope").status_code == 404

    def test_delete(self, client: TestClient) -> None:
        client.post("/api/v1/sessions", json={"session_id": "s-3"})
        assert client.delete("/api/v1/sessions/s-3").status_code == 204
        assert client.get("/api/v1/sessions/s-3").status_code == 404
        assert client.delete("/api/v1/sessions/s-3").status_code == 404


# ── Events ───────────────────────────────────────────────────


class TestEvents:

    def test_confirmation_flow(self, client: TestClient, pyusd_executor) -> None:
        client.post("/api/v1/sessions", json={"session_id": "flow"})

        resp = client.post("/api/v1/sessions/flow/events", json={"message": TRANSACTION})
        assert resp.status_code == 202
        assert resp.json()["snapshot"]["state"] == "awaiting_confirmation"

        resp = client.post("/api/v1/sessions/flow/events", json={"message": YES})
        snap = resp.json()["snapshot"]
        assert snap["state"] == "confirmed"
        assert snap["transaction_id"] == "0xabc"
        assert len(pyusd_executor.requests) == 1

    def test_text_message_is_transcript(self, client: TestClient) -> None:
        client.post("/api/v1/sessions", json={"session_id": "talk"})
        resp = client.post("/api/v1/sessions/talk/events", json={"message": "hello there"})
        snap = resp.json()["snapshot"]
        assert snap["state"] == "listening"
        assert snap["transcript"] == "hello there"

    def test_unapproved_recipient_reports_error(self, client: TestClient) -> None:
        client.post("/api/v1/sessions", json={"session_id": "bad"})
        client.post(
            "/api/v1/sessions/bad/events",
            json={"message": {**TRANSACTION, "recipient": "sarah.find"}},
        )
        snap = client.post("/api/v1/sessions/bad/events", json={"message": YES}).json()["snapshot"]
        assert snap["state"] == "error"
        assert snap["error_kind"] == "recipient_not_approved"
        assert "not approved" in snap["error"]

    def test_events_for_unknown_session(self, client: TestClient) -> None:
        resp = client.post("/api/v1/sessions/ghost/events", json={"message": "hi"})
        assert resp.status_code == 404

    def test_missing_message_rejected(self, client: TestClient) -> None:
        client.post("/api/v1/sessions", json={"session_id": "empty"})
        assert client.post("/api/v1/sessions/empty/events", json={}).status_code == 422


# ── Inventory ────────────────────────────────────────────────


class TestInventory:

    def test_list(self, client: TestClient) -> None:
        data = client.get("/api/v1/inventory").json()
        assert data["total"] == len(data["items"]) == 11

    def test_search(self, client: TestClient) -> None:
        data = client.get("/api/v1/inventory/search", params={"q": "some soda"}).json()
        assert data["item"]["name"] == "Coca Cola Can"
        assert data["intent"] == {
            "intent": "TRANSACTION",
            "amount": 1.0,
            "currency": "PYUSD",
            "recipient": "Amazon",
        }

    def test_search_no_match(self, client: TestClient) -> None:
        assert client.get("/api/v1/inventory/search", params={"q": "pizza"}).status_code == 404


# ── Application factory ──────────────────────────────────────


class TestCreateApp:

    @pytest.fixture()
    def offline_app(self) -> Iterator[FastAPI]:
        """Full app with Redis unreachable and the classifier stream off."""
        redis = MagicMock()
        redis.connect = AsyncMock(side_effect=ConnectionError("refused"))
        redis.close = AsyncMock()
        redis.health_check = AsyncMock(return_value=False)
        redis.connected = False

        env = {"VP_CLASSIFIER_STREAM_ENABLED": "false", "VP_FLOW_MOCK_MODE": "true"}
        get_settings.cache_clear()
        with patch.dict(os.environ, env), patch("checkout.main.RedisClient", return_value=redis):
            yield create_app()
        get_settings.cache_clear()
        structlog.reset_defaults()

    def test_metrics_mounted(self) -> None:
        resp = TestClient(create_app()).get("/metrics/")
        assert resp.status_code == 200
        assert "checkout_active_sessions" in resp.text

    def test_lifespan_without_redis(self, offline_app: FastAPI) -> None:
        with TestClient(offline_app) as client:
            data = client.get("/health").json()
            assert data["redis"] == "unhealthy"
            assert data["executors"]["flow_mock"] is True

            created = client.post("/api/v1/sessions", json={"session_id": "dev"}).json()
            assert created["state"] == "listening"

            snap = client.post(
                "/api/v1/sessions/dev/events",
                json={"message": {"intent": "TRANSACTION", "amount": 5, "currency": "flow", "recipient": "FlowStore"}},
            ).json()["snapshot"]
            assert snap["state"] == "awaiting_confirmation"

            snap = client.post("/api/v1/sessions/dev/events", json={"message": YES}).json()["snapshot"]
            assert snap["state"] == "confirmed"
            assert snap["transaction_id"].startswith("0x")
        offline_app.state.redis.close.assert_awaited_once()

    def test_failed_redis_ping_disables_publishing(self) -> None:
        backend = AsyncMock()
        backend.ping.side_effect = ConnectionError("refused")
        env = {"VP_CLASSIFIER_STREAM_ENABLED": "false", "VP_FLOW_MOCK_MODE": "true"}
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, env), patch(
                "vp_common.messaging.redis_client.aioredis.from_url", return_value=backend
            ):
                with TestClient(create_app()) as client:
                    assert client.app.state.redis.connected is False
                    client.post("/api/v1/sessions", json={"session_id": "quiet"})
                    client.post(
                        "/api/v1/sessions/quiet/events",
                        json={"message": {"intent": "TRANSACTION", "amount": 5, "currency": "flow", "recipient": "FlowStore"}},
                    )
            backend.publish.assert_not_called()
        finally:
            get_settings.cache_clear()
            structlog.reset_defaults()
