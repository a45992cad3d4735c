"""Transfer executors and the currency table that selects them."""

from __future__ import annotations

from vp_common.config import Settings

from checkout.executors.base import TransferExecutor
from checkout.executors.http_gateway import HttpTransferExecutor
from checkout.executors.mock_ledger import MockLedgerExecutor
from checkout.executors.table import ExecutorTable

__all__ = [
    "ExecutorTable",
    "HttpTransferExecutor",
    "MockLedgerExecutor",
    "TransferExecutor",
    "build_executor_table",
]


def build_executor_table(settings: Settings) -> ExecutorTable:
    """Create one executor per ledger family from *settings*."""
    pyusd = HttpTransferExecutor(
        "pyusd_gateway",
        settings.pyusd_transfer_url,
        max_attempts=settings.transfer_max_attempts,
        timeout=settings.transfer_http_timeout_s,
    )
    flow: TransferExecutor
    if settings.flow_mock_mode:
        flow = MockLedgerExecutor("flow_mock")
    else:
        flow = HttpTransferExecutor(
            "flow_gateway",
            settings.flow_transfer_url,
            max_attempts=settings.transfer_max_attempts,
            timeout=settings.transfer_http_timeout_s,
        )
    return ExecutorTable({"PYUSD": pyusd, "FLOW": flow})
