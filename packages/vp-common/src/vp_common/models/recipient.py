"""
Recipient and catalogue data models for VoxPay.

``RecipientRecord`` is an entry of the static allow-list: a vendor name,
its settlement address on each supported ledger, and whether transfers
to it are approved. ``StoreItem`` is an entry of the demo store
catalogue.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RecipientRecord(BaseModel):
    """An allow-list entry.

    Attributes:
        name: Human-friendly recipient name (matched case-insensitively).
        addresses: Settlement address keyed by canonical currency symbol.
        approved: Whether transfers to this recipient are allowed.
    """

    model_config = {"frozen": True}

    name: str = Field(..., min_length=1)
    addresses: dict[str, str] = Field(default_factory=dict)
    approved: bool = True

    def address_for(self, currency: str) -> str | None:
        """Return the settlement address for *currency*, if configured."""
        return self.addresses.get(currency.upper())


class StoreItem(BaseModel):
    """An item of the demo store catalogue."""

    model_config = {"frozen": True}

    vendor: str
    name: str
    price: float = Field(..., gt=0)
    currency: str
