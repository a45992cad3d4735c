"""
Transaction intent & confirmation controller for VoxPay.

Drives one checkout session through the voice confirmation protocol:
a transaction intent proposes a transfer, and only an explicit "yes"
confirmation for that same proposal moves funds.  Recipient approval
and currency support are checked at confirmation time.

States and transitions
----------------------
::

    idle ──► initializing ──► listening ──► awaiting_confirmation
                  │              ▲   ▲            │        │
                  ▼              │   └──── "no" ──┘        │ "yes"
                error ◄──────────┼─────────────────────────┤
                  ▲              │                         ▼
                  └──────────────┼────── failure ◄──── sending
                                 │                         │ success
                                 └──── cool-down ◄─── confirmed

``error`` is terminal.  Events are handled one at a time; an event is
fully settled (including any executor call) before :meth:`handle`
returns.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import structlog
from prometheus_client import Counter

from vp_common.models.intent import (
    ConfirmationIntent,
    IntentEvent,
    TransactionIntent,
    Transcript,
)
from vp_common.models.session import ErrorKind, SessionSnapshot, SessionState
from vp_common.models.transaction import PendingTransaction, TransferRequest, TransferResult

from checkout.errors import CheckoutError, TransferExecutionFailure
from checkout.executors.base import TransferExecutor
from checkout.executors.table import ExecutorTable
from checkout.validation import (
    RecipientLookup,
    check_recipient,
    is_valid_amount,
    settlement_address,
)

logger = structlog.get_logger()

# ── Prometheus metrics ──
INTENTS_RECEIVED = Counter(
    "checkout_intents_received_total",
    "Classifier events handled by the controller.",
    ["kind", "outcome"],
)
TRANSFERS = Counter(
    "checkout_transfers_total",
    "Transfer executor calls by currency and outcome.",
    ["currency", "outcome"],
)
STATE_TRANSITIONS = Counter(
    "checkout_state_transitions_total",
    "Controller state transitions by target state.",
    ["state"],
)

SnapshotListener = Callable[[SessionSnapshot], Awaitable[None]]

DEFAULT_COOLDOWN_S = 8.0


def _format_amount(amount: float) -> str:
    return f"{amount:g}"


class TransactionController:
    """State machine gating transfers behind explicit voice confirmation.

    Args:
        session_id: Identifier stamped on snapshots and log lines.
        directory: Recipient allow-list.
        executors: Currency → executor table.
        cooldown_s: Seconds in ``confirmed`` before returning to
            ``listening``; ``0`` or less keeps the session in
            ``confirmed`` until the next restart.
        transfer_timeout_s: Bound on one executor call; ``None`` or
            ``0`` waits indefinitely.
    """

    def __init__(
        self,
        session_id: str,
        directory: RecipientLookup,
        executors: ExecutorTable,
        *,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        transfer_timeout_s: float | None = None,
    ) -> None:
        self.session_id = session_id
        self._directory = directory
        self._executors = executors
        self._cooldown_s = cooldown_s
        self._transfer_timeout_s = transfer_timeout_s or None

        self._state = SessionState.IDLE
        self._status = "Idle"
        self._transcript = ""
        self._pending: PendingTransaction | None = None
        self._transaction_id: str | None = None
        self._error: str | None = None
        self._error_kind: ErrorKind | None = None
        self._updated_at = datetime.now(timezone.utc)

        self._listeners: list[SnapshotListener] = []
        self._cooldown_task: asyncio.Task[None] | None = None
        self._log = logger.bind(session_id=session_id)

    # ── inspection ──

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pending(self) -> PendingTransaction | None:
        return self._pending

    def snapshot(self) -> SessionSnapshot:
        """Return the user-visible fields as of the latest transition."""
        return SessionSnapshot(
            session_id=self.session_id,
            state=self._state,
            status=self._status,
            transcript=self._transcript,
            pending=self._pending,
            transaction_id=self._transaction_id,
            error=self._error,
            error_kind=self._error_kind,
            updated_at=self._updated_at,
        )

    def add_listener(self, listener: SnapshotListener) -> None:
        """Await *listener* with a fresh snapshot after every change."""
        self._listeners.append(listener)

    # ── lifecycle transitions ──

    async def begin_initializing(self) -> None:
        """``idle → initializing``, before the classifier connection opens."""
        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"cannot initialise from state '{self._state.value}'")
        await self._transition(SessionState.INITIALIZING, "Connecting to intent classifier...")

    async def mark_listening(self) -> None:
        """``initializing → listening``, once the classifier stream is open."""
        if self._state is not SessionState.INITIALIZING:
            raise RuntimeError(f"cannot start listening from state '{self._state.value}'")
        await self._transition(SessionState.LISTENING, "Listening...")

    async def fail(self, error: CheckoutError) -> None:
        """Move to the terminal ``error`` state with *error* as the cause."""
        self._cancel_cooldown()
        self._pending = None
        self._error = error.reason
        self._error_kind = error.kind
        self._log.warning(
            "checkout_session_failed",
            error=error.reason,
            error_kind=error.kind.value if error.kind else None,
        )
        await self._transition(SessionState.ERROR, f"Error: {error.reason}")

    async def close(self) -> None:
        """Cancel the cool-down timer, if running."""
        task = self._cancel_cooldown()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ── event handling ──

    async def handle(self, event: IntentEvent) -> SessionState:
        """Apply one classifier event and return the settled state."""
        if self._state is SessionState.ERROR:
            self._log.info("event_ignored_in_error", kind=type(event).__name__)
            return self._state

        if isinstance(event, Transcript):
            await self._on_transcript(event)
        elif isinstance(event, TransactionIntent):
            await self._on_transaction(event)
        elif isinstance(event, ConfirmationIntent):
            await self._on_confirmation(event)
        else:
            raise TypeError(f"unsupported event type {type(event).__name__}")
        return self._state

    async def _on_transcript(self, event: Transcript) -> None:
        INTENTS_RECEIVED.labels(kind="transcript", outcome="surfaced").inc()
        self._transcript = event.text
        await self._notify()

    async def _on_transaction(self, intent: TransactionIntent) -> None:
        if self._state is not SessionState.LISTENING:
            # A pending proposal is never replaced silently.
            INTENTS_RECEIVED.labels(kind="transaction", outcome="ignored").inc()
            self._log.info("transaction_intent_ignored", state=self._state.value)
            return
        if not is_valid_amount(intent.amount):
            INTENTS_RECEIVED.labels(kind="transaction", outcome="rejected").inc()
            self._log.info("transaction_intent_rejected", amount=intent.amount)
            return

        INTENTS_RECEIVED.labels(kind="transaction", outcome="accepted").inc()
        self._pending = PendingTransaction(
            amount=intent.amount,
            currency=intent.currency,
            recipient=intent.recipient,
        )
        self._transaction_id = None
        self._log.info(
            "transaction_proposed",
            amount=intent.amount,
            currency=intent.currency,
            recipient=intent.recipient,
        )
        await self._transition(
            SessionState.AWAITING_CONFIRMATION,
            f"Send {_format_amount(intent.amount)} {intent.currency} "
            f"to {intent.recipient}? Say yes or no.",
        )

    async def _on_confirmation(self, intent: ConfirmationIntent) -> None:
        if self._state is not SessionState.AWAITING_CONFIRMATION:
            INTENTS_RECEIVED.labels(kind="confirmation", outcome="ignored").inc()
            self._log.info("confirmation_ignored", state=self._state.value)
            return

        if not intent.decision.affirmative:
            INTENTS_RECEIVED.labels(kind="confirmation", outcome="declined").inc()
            self._log.info("transaction_cancelled")
            self._pending = None
            await self._transition(SessionState.LISTENING, "Transaction cancelled.")
            return

        INTENTS_RECEIVED.labels(kind="confirmation", outcome="confirmed").inc()
        await self._send()

    # ── sending ──

    async def _send(self) -> None:
        pending = self._pending
        if pending is None:
            raise RuntimeError("no pending transaction to send")

        try:
            record = check_recipient(pending.recipient, self._directory)
            currency = self._executors.canonical(pending.currency)
        except CheckoutError as exc:
            await self.fail(exc)
            return

        executor = self._executors.get(currency)
        request = TransferRequest(
            amount=pending.amount,
            recipient=settlement_address(record, currency),
            currency=currency,
        )
        await self._transition(
            SessionState.SENDING,
            f"Sending {_format_amount(pending.amount)} {currency} to {record.name}...",
        )
        self._log.info(
            "transfer_started",
            executor=executor.name,
            amount=request.amount,
            currency=currency,
            recipient=record.name,
        )

        try:
            result = await self._execute(executor, request)
        except TransferExecutionFailure as exc:
            TRANSFERS.labels(currency=currency, outcome="error").inc()
            await self.fail(exc)
            return

        if not result.success:
            TRANSFERS.labels(currency=currency, outcome="failed").inc()
            await self.fail(TransferExecutionFailure(result.error or "transfer failed"))
            return

        TRANSFERS.labels(currency=currency, outcome="confirmed").inc()
        self._pending = None
        self._transaction_id = result.transaction_id
        self._log.info("transfer_confirmed", transaction_id=result.transaction_id)
        await self._transition(
            SessionState.CONFIRMED,
            f"Sent {_format_amount(pending.amount)} {currency} to {record.name}. "
            f"Transaction {result.transaction_id}",
        )
        self._schedule_cooldown()

    async def _execute(self, executor: TransferExecutor, request: TransferRequest) -> TransferResult:
        """Call *executor*, converting exceptions and timeouts to failures."""
        try:
            if self._transfer_timeout_s is None:
                return await executor.execute(request)
            return await asyncio.wait_for(executor.execute(request), self._transfer_timeout_s)
        except asyncio.TimeoutError as exc:
            raise TransferExecutionFailure(
                f"Transfer timed out after {self._transfer_timeout_s:g}s"
            ) from exc
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._log.error("transfer_executor_raised", executor=executor.name, exc_info=True)
            raise TransferExecutionFailure(str(exc) or type(exc).__name__) from exc

    # ── cool-down ──

    def _schedule_cooldown(self) -> None:
        if self._cooldown_s <= 0:
            return
        self._cooldown_task = asyncio.create_task(
            self._cool_down(), name=f"checkout-cooldown-{self.session_id}"
        )

    def _cancel_cooldown(self) -> asyncio.Task[None] | None:
        task = self._cooldown_task
        self._cooldown_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            return task
        return None

    async def _cool_down(self) -> None:
        await asyncio.sleep(self._cooldown_s)
        if self._state is not SessionState.CONFIRMED:
            return
        self._cooldown_task = None
        self._transcript = ""
        self._pending = None
        await self._transition(SessionState.LISTENING, "Listening...")

    # ── internal ──

    async def _transition(self, state: SessionState, status: str) -> None:
        previous = self._state
        self._state = state
        self._status = status
        if state is not SessionState.ERROR:
            self._error = None
            self._error_kind = None
        STATE_TRANSITIONS.labels(state=state.value).inc()
        self._log.debug("checkout_state_changed", previous=previous.value, state=state.value)
        await self._notify()

    async def _notify(self) -> None:
        self._updated_at = datetime.now(timezone.utc)
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in self._listeners:
            try:
                await listener(snapshot)
            except Exception:  # noqa: BLE001
                self._log.warning("snapshot_listener_failed", exc_info=True)
