"""
Shared Pydantic data models for VoxPay.

This package contains the cross-service data models: classifier
intents, pending transactions, transfer requests and results,
allow-list recipients, catalogue items, and session snapshots.
"""

from vp_common.models.intent import (
    ConfirmationIntent,
    Decision,
    IntentEvent,
    IntentKind,
    StructuredIntent,
    TransactionIntent,
    Transcript,
)
from vp_common.models.recipient import RecipientRecord, StoreItem
from vp_common.models.session import ErrorKind, SessionSnapshot, SessionState
from vp_common.models.transaction import (
    PendingTransaction,
    TransferRequest,
    TransferResult,
)

__all__ = [
    "ConfirmationIntent",
    "Decision",
    "ErrorKind",
    "IntentEvent",
    "IntentKind",
    "PendingTransaction",
    "RecipientRecord",
    "SessionSnapshot",
    "SessionState",
    "StoreItem",
    "StructuredIntent",
    "TransactionIntent",
    "Transcript",
    "TransferRequest",
    "TransferResult",
]
