"""
Transfer data models for VoxPay.

Defines the pending transaction held while a session awaits voice
confirmation, and the request/result pair exchanged with transfer
executors.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator


def _utc_now() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


class PendingTransaction(BaseModel):
    """The single transaction a session has proposed and not yet resolved.

    Attributes:
        pending_id: Unique identifier for this proposal.
        amount: Positive amount taken from the accepted intent.
        currency: Currency symbol exactly as proposed.
        recipient: Recipient name or address exactly as proposed.
        proposed_at: When the intent was accepted (UTC).
    """

    model_config = {"frozen": True}

    pending_id: UUID = Field(default_factory=uuid4, description="Proposal identifier.")
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    currency: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)
    proposed_at: datetime = Field(default_factory=_utc_now, description="Proposal timestamp (UTC).")


class TransferRequest(BaseModel):
    """What a transfer executor is asked to do.

    Attributes:
        amount: Amount to move.
        recipient: Settlement address, or a name the executor resolves.
        currency: Canonical currency symbol of the executor family.
    """

    model_config = {"frozen": True}

    amount: float = Field(..., gt=0, allow_inf_nan=False)
    recipient: str = Field(..., min_length=1)
    currency: str = Field(..., min_length=1)


class TransferResult(BaseModel):
    """Terminal outcome reported by a transfer executor.

    Exactly one of ``transaction_id`` (on success) or ``error`` (on
    failure) is populated.
    """

    model_config = {"frozen": True}

    success: bool
    transaction_id: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_outcome(self) -> TransferResult:
        if self.success and not self.transaction_id:
            raise ValueError("successful transfer requires a transaction_id")
        if not self.success and not self.error:
            raise ValueError("failed transfer requires an error")
        return self

    @classmethod
    def ok(cls, transaction_id: str) -> TransferResult:
        return cls(success=True, transaction_id=transaction_id)

    @classmethod
    def failed(cls, error: str) -> TransferResult:
        return cls(success=False, error=error)
