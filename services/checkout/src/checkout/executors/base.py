"""
Abstract base class for transfer executors in VoxPay.

A transfer executor moves funds on one ledger family.  The checkout
controller treats it as a black box: retries, fee handling and
chain-specific signing all live behind :meth:`TransferExecutor.execute`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from vp_common.models.transaction import TransferRequest, TransferResult


class TransferExecutor(ABC):
    """Base class every ledger-specific executor implements.

    Subclasses provide :meth:`execute`; :meth:`health_check` and
    :meth:`close` have permissive defaults.  The :attr:`name` property
    identifies the executor in logs, metrics and health output.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the executor identifier (e.g. ``'pyusd_gateway'``)."""
        ...  # pragma: no cover

    @abstractmethod
    async def execute(self, request: TransferRequest) -> TransferResult:
        """Perform *request* and report its terminal outcome.

        Implementations should return a failed :class:`TransferResult`
        for ledger-level rejections.  Raised exceptions are also treated
        as failures by the controller.
        """
        ...  # pragma: no cover

    async def health_check(self) -> bool:
        """Return ``True`` if the executor can accept transfers."""
        return True

    async def close(self) -> None:
        """Release any resources held by the executor (override if needed)."""
