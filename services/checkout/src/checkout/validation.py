"""
Pure validation rules for VoxPay transactions.

Nothing in this module performs I/O or mutates state.  The controller
calls these checks at two points: amount validity when an intent is
received, and recipient approval plus currency support when the user
confirms.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Protocol

from vp_common.models.recipient import RecipientRecord

from checkout.errors import RecipientNotApproved, UnsupportedCurrency

# Spoken/typed symbol → canonical symbol of the executor family.
SUPPORTED_CURRENCIES: Mapping[str, str] = {
    "PYUSD": "PYUSD",
    "USD": "PYUSD",
    "FLOW": "FLOW",
}


def is_valid_amount(value: Any) -> bool:
    """Return ``True`` if *value* is a finite real number greater than zero.

    Booleans and numeric strings are not amounts.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def normalize_currency(symbol: str) -> str:
    return symbol.strip().upper()


def resolve_currency(
    symbol: str,
    supported: Mapping[str, str] = SUPPORTED_CURRENCIES,
) -> str:
    """Map *symbol* to its canonical executor symbol, case-insensitively.

    Raises:
        UnsupportedCurrency: If *symbol* is not in *supported*.
    """
    key = normalize_currency(symbol)
    try:
        return supported[key]
    except KeyError:
        raise UnsupportedCurrency(symbol, sorted(supported)) from None


class RecipientLookup(Protocol):
    """Anything that resolves a recipient name to an allow-list record."""

    def lookup(self, name: str) -> RecipientRecord | None: ...


def check_recipient(name: str, directory: RecipientLookup) -> RecipientRecord:
    """Return the approved allow-list record for *name*.

    Matching is exact and case-insensitive; there is no fuzzy matching
    and no name-service resolution at this stage.

    Raises:
        RecipientNotApproved: If *name* is unknown or not approved.
    """
    record = directory.lookup(name)
    if record is None or not record.approved:
        raise RecipientNotApproved(name)
    return record


def settlement_address(record: RecipientRecord, currency: str) -> str:
    """Return *record*'s address on the *currency* ledger.

    Falls back to the record name when no address is configured, leaving
    name resolution to the transfer executor.
    """
    return record.address_for(currency) or record.name
