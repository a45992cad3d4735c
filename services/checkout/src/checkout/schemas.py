"""
Request/response schemas for the VoxPay checkout API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from vp_common.models.intent import TransactionIntent
from vp_common.models.recipient import StoreItem
from vp_common.models.session import SessionSnapshot


class SessionCreateRequest(BaseModel):
    session_id: str | None = Field(default=None, min_length=1, max_length=128)


class SessionListResponse(BaseModel):
    sessions: list[SessionSnapshot]
    total: int


class EventSubmitRequest(BaseModel):
    """One raw classifier message: JSON object or plain text."""

    message: dict[str, Any] | str = Field(
        ..., description="Structured intent object or transcript text."
    )


class EventSubmitResponse(BaseModel):
    queued: bool
    snapshot: SessionSnapshot


class InventoryResponse(BaseModel):
    items: list[StoreItem]
    total: int


class InventoryMatchResponse(BaseModel):
    item: StoreItem
    intent: TransactionIntent
