"""
Checkout session lifecycle for VoxPay.

A :class:`CheckoutSession` owns one :class:`TransactionController` and
the classifier stream feeding it.  Raw messages from the stream (and
from :meth:`CheckoutSession.submit`) share one FIFO queue, and a single
consumer hands them to the controller one at a time, so events are
applied strictly in arrival order.

Every snapshot is published to ``checkout_status:{session_id}`` when a
Redis publisher is given.  :class:`SessionManager` runs each open
session as an asyncio task.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from typing import Any

import structlog
from prometheus_client import Gauge

from vp_common.messaging.redis_client import RedisClient
from vp_common.models.session import SessionSnapshot, SessionState

from checkout.classifier import IntentSource
from checkout.controller import DEFAULT_COOLDOWN_S, TransactionController
from checkout.errors import ClassifierConnectionFailure
from checkout.executors.table import ExecutorTable
from checkout.intent_parser import parse_event
from checkout.validation import RecipientLookup

logger = structlog.get_logger()

ACTIVE_SESSIONS = Gauge(
    "checkout_active_sessions",
    "Checkout sessions currently running.",
)

STATUS_CHANNEL_TEMPLATE = "checkout_status:{session_id}"


class CheckoutSession:
    """One voice checkout session with an explicit open/run/close lifecycle.

    Args:
        controller: The session's confirmation controller.
        source: Classifier stream, or ``None`` when messages only arrive
            through :meth:`submit`.
        publisher: Connected :class:`RedisClient`; when given, every
            snapshot is published to ``checkout_status:{session_id}``.
    """

    def __init__(
        self,
        controller: TransactionController,
        source: IntentSource | None = None,
        publisher: RedisClient | None = None,
    ) -> None:
        self.controller = controller
        self._source = source
        self._publisher = publisher
        self._queue: asyncio.Queue[str | dict[str, Any]] = asyncio.Queue()
        self._stop_event = asyncio.Event()
        self._log = logger.bind(session_id=controller.session_id)
        if publisher is not None:
            controller.add_listener(self._publish)

    @property
    def session_id(self) -> str:
        return self.controller.session_id

    def snapshot(self) -> SessionSnapshot:
        return self.controller.snapshot()

    # ── lifecycle ──

    async def open(self) -> bool:
        """Connect the classifier stream and start listening.

        Returns:
            ``True`` if the session is listening, ``False`` if the
            classifier connection failed and the session is in ``error``.
        """
        await self.controller.begin_initializing()
        if self._source is not None:
            try:
                await self._source.connect()
            except Exception as exc:  # noqa: BLE001
                self._log.error("classifier_connect_failed", error=str(exc))
                await self.controller.fail(
                    ClassifierConnectionFailure(f"Intent classifier connection failed: {exc}")
                )
                return False
        await self.controller.mark_listening()
        self._log.info("checkout_session_opened")
        return True

    def submit(self, raw: str | dict[str, Any]) -> None:
        """Queue a raw classifier message behind any already queued."""
        self._queue.put_nowait(raw)

    async def process(self, raw: str | dict[str, Any]) -> SessionState:
        """Parse and apply one raw message, bypassing the queue."""
        return await self.controller.handle(parse_event(raw))

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Consume queued messages until *stop_event* is set or :meth:`stop` is called."""
        if stop_event is not None:
            self._stop_event = stop_event
        pump: asyncio.Task[None] | None = None
        if self._source is not None:
            pump = asyncio.create_task(
                self._pump(self._source), name=f"checkout-pump-{self.session_id}"
            )
        try:
            while not self._stop_event.is_set():
                try:
                    raw = await asyncio.wait_for(self._queue.get(), timeout=0.5)
                except asyncio.TimeoutError:
                    continue
                try:
                    state = await self.process(raw)
                finally:
                    self._queue.task_done()
                self._log.debug("classifier_message_applied", state=state.value)
        finally:
            if pump is not None:
                pump.cancel()
                try:
                    await pump
                except asyncio.CancelledError:
                    pass

    async def drain(self) -> None:
        """Wait until every queued message has been applied."""
        await self._queue.join()

    def stop(self) -> None:
        self._stop_event.set()

    async def close(self) -> None:
        """Stop consuming and release the controller and the stream."""
        self.stop()
        await self.controller.close()
        if self._source is not None:
            await self._source.close()
        self._log.info("checkout_session_closed")

    # ── internal ──

    async def _pump(self, source: IntentSource) -> None:
        async for raw in source.messages(self._stop_event):
            await self._queue.put(raw)

    async def _publish(self, snapshot: SessionSnapshot) -> None:
        if self._publisher is None:
            raise RuntimeError("session has no status publisher")
        channel = STATUS_CHANNEL_TEMPLATE.format(session_id=snapshot.session_id)
        await self._publisher.publish(channel, snapshot.model_dump_json())


SourceFactory = Callable[[str], "IntentSource | None"]


class SessionManager:
    """Create, run and stop checkout sessions.

    Args:
        directory: Shared recipient allow-list.
        executors: Shared currency → executor table.
        source_factory: Builds the classifier stream for a session id;
            returning ``None`` means messages arrive via ``submit`` only.
        publisher: Connected :class:`RedisClient` for status snapshots,
            or ``None`` to skip publishing.
        cooldown_s: Controller cool-down after a confirmed transfer.
        transfer_timeout_s: Controller bound on executor calls.
    """

    def __init__(
        self,
        directory: RecipientLookup,
        executors: ExecutorTable,
        *,
        source_factory: SourceFactory | None = None,
        publisher: RedisClient | None = None,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        transfer_timeout_s: float | None = None,
    ) -> None:
        self._directory = directory
        self._executors = executors
        self._source_factory = source_factory
        self._publisher = publisher
        self._cooldown_s = cooldown_s
        self._transfer_timeout_s = transfer_timeout_s
        self._sessions: dict[str, CheckoutSession] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    # ── public API ──

    async def start_session(self, session_id: str | None = None) -> CheckoutSession:
        """Open a session and start its consumer task.

        A session whose classifier connection fails is kept (in ``error``)
        so its snapshot stays inspectable, but no consumer is started.

        Raises:
            ValueError: If *session_id* is already running.
        """
        sid = session_id or str(uuid.uuid4())
        if sid in self._sessions:
            raise ValueError(f"session '{sid}' already exists")

        controller = TransactionController(
            sid,
            self._directory,
            self._executors,
            cooldown_s=self._cooldown_s,
            transfer_timeout_s=self._transfer_timeout_s,
        )
        source = self._source_factory(sid) if self._source_factory is not None else None
        session = CheckoutSession(controller, source, self._publisher)
        self._sessions[sid] = session

        if await session.open():
            self._tasks[sid] = asyncio.create_task(session.run(), name=f"checkout-{sid}")
            ACTIVE_SESSIONS.inc()
        logger.info("checkout_session_started", session_id=sid, state=session.controller.state.value)
        return session

    def get(self, session_id: str) -> CheckoutSession | None:
        return self._sessions.get(session_id)

    def is_running(self, session_id: str) -> bool:
        """Whether *session_id* has a live consumer task."""
        task = self._tasks.get(session_id)
        return task is not None and not task.done()

    async def stop_session(self, session_id: str) -> bool:
        """Stop and forget *session_id*; return ``False`` if unknown."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()

        task = self._tasks.pop(session_id, None)
        if task is not None:
            ACTIVE_SESSIONS.dec()
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        logger.info("checkout_session_stopped", session_id=session_id)
        return True

    async def stop_all(self) -> None:
        for sid in list(self._sessions):
            await self.stop_session(sid)

    def sessions(self) -> list[CheckoutSession]:
        return list(self._sessions.values())
