"""
Mock ledger executor for VoxPay demos.

Settles every transfer immediately with a synthetic ``0x``-prefixed
transaction id.  Used for FLOW when ``VP_FLOW_MOCK_MODE`` is set.
"""

from __future__ import annotations

import secrets

import structlog

from vp_common.models.transaction import TransferRequest, TransferResult

from checkout.executors.base import TransferExecutor

logger = structlog.get_logger()


class MockLedgerExecutor(TransferExecutor):
    """Pretend to settle transfers; record what was asked.

    Args:
        name: Executor identifier.
    """

    def __init__(self, name: str = "mock_ledger") -> None:
        self._name = name
        self.requests: list[TransferRequest] = []

    @property
    def name(self) -> str:
        return self._name

    async def execute(self, request: TransferRequest) -> TransferResult:
        self.requests.append(request)
        transaction_id = "0x" + secrets.token_hex(8)
        logger.info(
            "mock_transfer_settled",
            executor=self.name,
            amount=request.amount,
            currency=request.currency,
            recipient=request.recipient,
            transaction_id=transaction_id,
        )
        return TransferResult.ok(transaction_id)
