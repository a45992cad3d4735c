"""
Demo store catalogue for the VoxPay checkout service.

The catalogue is hardcoded.  :func:`find_item` maps a spoken item
description to a catalogue entry and :func:`quote` turns that entry
into the transaction intent the assistant proposes for it.

Matching order
--------------
1. Exact, case-insensitive item name.
2. Any description word contained in (or containing) any item-name word.
3. Synonym groups: a search term in the description plus a match term
   in the item name.

The first catalogue entry satisfying step 2 or 3 wins, so catalogue
order matters.
"""

from __future__ import annotations

from vp_common.models.intent import TransactionIntent
from vp_common.models.recipient import StoreItem

CATALOGUE: tuple[StoreItem, ...] = (
    StoreItem(vendor="Amazon", name="Coca Cola Can", price=1.00, currency="PYUSD"),
    StoreItem(vendor="Amazon", name="Coke Can", price=1.00, currency="PYUSD"),
    StoreItem(vendor="Amazon", name="Pepsi Can", price=1.00, currency="PYUSD"),
    StoreItem(vendor="Amazon", name="Sprite Can", price=1.00, currency="PYUSD"),
    StoreItem(vendor="BestBuy", name="USB-C Charger", price=5.00, currency="FLOW"),
    StoreItem(vendor="BestBuy", name="Phone Charger", price=2.00, currency="FLOW"),
    StoreItem(vendor="BestBuy", name="Laptop Charger", price=8.00, currency="PYUSD"),
    StoreItem(vendor="Walmart", name="Water Bottle", price=5.00, currency="PYUSD"),
    StoreItem(vendor="Walmart", name="Energy Drink", price=2.00, currency="PYUSD"),
    StoreItem(vendor="FlowStore", name="Flow NFT Pack", price=5.0, currency="FLOW"),
    StoreItem(vendor="FlowStore", name="Flow Collectible", price=5.0, currency="FLOW"),
)

# (search terms, match terms)
SYNONYM_GROUPS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("coke", "cola", "soda"), ("coke", "cola", "pepsi", "sprite")),
    (("charger", "cable"), ("charger",)),
    (("drink", "beverage"), ("drink", "cola", "pepsi", "sprite", "water")),
    (("water",), ("water", "bottle")),
    (("nft", "collectible"), ("nft", "collectible", "flow")),
)


def list_items() -> list[StoreItem]:
    return list(CATALOGUE)


def _words_overlap(description: str, item_name: str) -> bool:
    item_words = item_name.split()
    return any(
        item_word in word or word in item_word
        for word in description.split()
        for item_word in item_words
    )


def _synonym_match(description: str, item_name: str) -> bool:
    return any(
        any(term in description for term in search)
        and any(term in item_name for term in match)
        for search, match in SYNONYM_GROUPS
    )


def find_item(description: str) -> StoreItem | None:
    """Return the catalogue entry best matching *description*, or ``None``."""
    wanted = description.strip().lower()
    if not wanted:
        return None

    for item in CATALOGUE:
        if item.name.lower() == wanted:
            return item

    for item in CATALOGUE:
        name = item.name.lower()
        if _words_overlap(wanted, name) or _synonym_match(wanted, name):
            return item
    return None


def quote(description: str) -> TransactionIntent | None:
    """Build the purchase intent for the item matching *description*."""
    item = find_item(description)
    if item is None:
        return None
    return TransactionIntent(amount=item.price, currency=item.currency, recipient=item.vendor)
