"""
Static recipient allow-list for the VoxPay checkout service.

The directory is built once at startup and never mutated afterwards;
sessions share a single instance without locking.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from types import MappingProxyType

import structlog

from vp_common.models.recipient import RecipientRecord

logger = structlog.get_logger()

_DEMO_PYUSD_ADDRESS = "0xe3B24b93C18eD1B7eEa9e07b3B03D03259f3942e"
_DEMO_FLOW_ADDRESS = "0xecb8d6f1b3a8639f"

# Authorized store vendors and their settlement addresses.
DEFAULT_RECIPIENTS: tuple[RecipientRecord, ...] = tuple(
    RecipientRecord(
        name=vendor,
        addresses={"PYUSD": _DEMO_PYUSD_ADDRESS, "FLOW": _DEMO_FLOW_ADDRESS},
        approved=True,
    )
    for vendor in ("Amazon", "BestBuy", "Walmart", "FlowStore")
)


class RecipientDirectory:
    """Read-only lookup from recipient name to :class:`RecipientRecord`.

    Names are keyed case-insensitively.  A later record with the same
    name replaces an earlier one at construction time.

    Args:
        records: Allow-list entries.
    """

    def __init__(self, records: Iterable[RecipientRecord]) -> None:
        table: dict[str, RecipientRecord] = {}
        for record in records:
            key = self._key(record.name)
            if key in table:
                logger.warning("recipient_duplicate_name", name=record.name)
            table[key] = record
        self._records = MappingProxyType(table)

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().casefold()

    def lookup(self, name: str) -> RecipientRecord | None:
        """Return the record whose name equals *name* ignoring case."""
        return self._records.get(self._key(name))

    def names(self) -> list[str]:
        return [record.name for record in self._records.values()]

    def __iter__(self) -> Iterator[RecipientRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


def default_directory() -> RecipientDirectory:
    """Build the directory of the demo store's authorized vendors."""
    return RecipientDirectory(DEFAULT_RECIPIENTS)
