"""
Currency → transfer executor table for VoxPay.

Each supported currency symbol maps deterministically to exactly one
executor.  The table is frozen at construction; several symbols may
share one executor instance (``USD`` and ``PYUSD`` both settle through
the PYUSD gateway).
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

import structlog

from checkout.executors.base import TransferExecutor
from checkout.validation import SUPPORTED_CURRENCIES, normalize_currency, resolve_currency

logger = structlog.get_logger()


class ExecutorTable:
    """Immutable mapping from canonical currency symbol to executor.

    Args:
        executors: Canonical symbol (``"PYUSD"``, ``"FLOW"``) → executor.
        aliases: Spoken symbol → canonical symbol.  Defaults to
            :data:`checkout.validation.SUPPORTED_CURRENCIES`.

    Raises:
        TypeError: If a value is not a :class:`TransferExecutor`.
    """

    def __init__(
        self,
        executors: Mapping[str, TransferExecutor],
        *,
        aliases: Mapping[str, str] = SUPPORTED_CURRENCIES,
    ) -> None:
        table: dict[str, TransferExecutor] = {}
        for symbol, executor in executors.items():
            if not isinstance(executor, TransferExecutor):
                raise TypeError(f"{executor!r} is not a TransferExecutor")
            table[normalize_currency(symbol)] = executor
            logger.info("transfer_executor_registered", currency=symbol, executor=executor.name)

        # Only aliases whose target actually has an executor are supported.
        self._aliases = MappingProxyType(
            {
                normalize_currency(alias): normalize_currency(canonical)
                for alias, canonical in aliases.items()
                if normalize_currency(canonical) in table
            }
            | {symbol: symbol for symbol in table}
        )
        self._executors = MappingProxyType(table)

    @property
    def aliases(self) -> Mapping[str, str]:
        """Spoken symbol → canonical symbol, for every supported symbol."""
        return self._aliases

    def canonical(self, symbol: str) -> str:
        """Return the canonical symbol for *symbol* (case-insensitive).

        Raises:
            UnsupportedCurrency: If *symbol* has no executor.
        """
        return resolve_currency(symbol, self._aliases)

    def get(self, symbol: str) -> TransferExecutor:
        """Return the executor settling *symbol*.

        Raises:
            UnsupportedCurrency: If *symbol* has no executor.
        """
        return self._executors[self.canonical(symbol)]

    def symbols(self) -> list[str]:
        return sorted(self._aliases)

    def executors(self) -> list[TransferExecutor]:
        """Distinct executor instances, in registration order."""
        seen: dict[int, TransferExecutor] = {}
        for executor in self._executors.values():
            seen.setdefault(id(executor), executor)
        return list(seen.values())

    async def health(self) -> dict[str, bool]:
        """Readiness of every distinct executor, keyed by name."""
        status: dict[str, bool] = {}
        for executor in self.executors():
            try:
                status[executor.name] = await executor.health_check()
            except Exception:  # noqa: BLE001
                logger.warning("transfer_executor_health_failed", executor=executor.name, exc_info=True)
                status[executor.name] = False
        return status

    async def close_all(self) -> None:
        for executor in self.executors():
            await executor.close()
