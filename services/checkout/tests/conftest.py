"""Shared fixtures for checkout service tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from vp_common.models.recipient import RecipientRecord
from vp_common.models.transaction import TransferRequest, TransferResult

from checkout.controller import TransactionController
from checkout.directory import RecipientDirectory
from checkout.executors.base import TransferExecutor
from checkout.executors.table import ExecutorTable

APPROVED_ADDRESS = "0x1111111111111111111111111111111111111111"
FLOW_ADDRESS = "0x2222222222222222"


class StubExecutor(TransferExecutor):
    """Executor returning a fixed result and recording every request."""

    def __init__(
        self,
        name: str = "stub",
        result: TransferResult | None = None,
        *,
        raises: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self._name = name
        self.result = result or TransferResult.ok("0xabc")
        self.raises = raises
        self.gate = gate
        self.requests: list[TransferRequest] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    async def execute(self, request: TransferRequest) -> TransferResult:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.raises is not None:
            raise self.raises
        return self.result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def make_executor() -> Callable[..., StubExecutor]:
    """Factory for :class:`StubExecutor` instances."""
    return StubExecutor


@pytest.fixture()
def directory() -> RecipientDirectory:
    return RecipientDirectory(
        [
            RecipientRecord(
                name="ApprovedVendor",
                addresses={"PYUSD": APPROVED_ADDRESS, "FLOW": FLOW_ADDRESS},
            ),
            RecipientRecord(name="NoAddressVendor"),
            RecipientRecord(name="SuspendedVendor", approved=False),
        ]
    )


@pytest.fixture()
def pyusd_executor() -> StubExecutor:
    return StubExecutor("pyusd_stub")


@pytest.fixture()
def flow_executor() -> StubExecutor:
    return StubExecutor("flow_stub", TransferResult.ok("0xf10w"))


@pytest.fixture()
def executors(pyusd_executor: StubExecutor, flow_executor: StubExecutor) -> ExecutorTable:
    return ExecutorTable({"PYUSD": pyusd_executor, "FLOW": flow_executor})


@pytest.fixture()
def make_controller(
    directory: RecipientDirectory,
    executors: ExecutorTable,
) -> Callable[..., TransactionController]:
    """Factory for controllers sharing the test directory and executors."""

    def _make(
        session_id: str = "test-session",
        *,
        cooldown_s: float = 0.0,
        transfer_timeout_s: float | None = None,
        table: ExecutorTable | None = None,
    ) -> TransactionController:
        return TransactionController(
            session_id,
            directory,
            table or executors,
            cooldown_s=cooldown_s,
            transfer_timeout_s=transfer_timeout_s,
        )

    return _make


@pytest.fixture()
async def listening_controller(
    make_controller: Callable[..., TransactionController],
) -> TransactionController:
    """Controller already moved to ``listening``."""
    controller = make_controller()
    await controller.begin_initializing()
    await controller.mark_listening()
    return controller
