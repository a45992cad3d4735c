"""
Checkout session state models for VoxPay.

Defines the controller's state enumeration, the error kinds it can
surface, and the snapshot of user-visible fields published after every
state transition.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from vp_common.models.transaction import PendingTransaction


class SessionState(str, enum.Enum):
    """States of the confirmation controller."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    LISTENING = "listening"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SENDING = "sending"
    CONFIRMED = "confirmed"
    ERROR = "error"


class ErrorKind(str, enum.Enum):
    """Causes that move a session into :attr:`SessionState.ERROR`."""

    CLASSIFIER_CONNECTION_FAILURE = "classifier_connection_failure"
    RECIPIENT_NOT_APPROVED = "recipient_not_approved"
    UNSUPPORTED_CURRENCY = "unsupported_currency"
    TRANSFER_EXECUTION_FAILURE = "transfer_execution_failure"


def _utc_now() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


class SessionSnapshot(BaseModel):
    """User-visible state of a checkout session.

    Attributes:
        session_id: Session identifier.
        state: Current controller state.
        status: Human-readable status line for the latest transition.
        transcript: Latest transcript text shown to the user.
        pending: Transaction awaiting confirmation or being sent.
        transaction_id: Identifier of the last confirmed transfer.
        error: Causal reason when ``state`` is ``error``.
        error_kind: Category of ``error``.
        updated_at: Time of the latest transition (UTC).
    """

    session_id: str
    state: SessionState
    status: str = ""
    transcript: str = ""
    pending: PendingTransaction | None = None
    transaction_id: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    updated_at: datetime = Field(default_factory=_utc_now)
