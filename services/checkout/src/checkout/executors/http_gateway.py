"""
HTTP transfer-gateway executor for VoxPay.

Delegates a transfer to an HTTP endpoint that owns the chain client
(the EVM/PYUSD and Flow transfer routes of the storefront).  Requests
are JSON ``POST``s of ``{amount, recipient, currency}`` where
``recipient`` is the resolved settlement address, never a vendor name.
Each transfer carries one ``Idempotency-Key`` header shared by all of
its attempts.

Only failures that prove the request never reached the gateway
(``httpx.ConnectError`` and ``httpx.ConnectTimeout``) are retried.  Read
timeouts, dropped connections and 5xx responses may follow a transfer
the gateway already submitted, so they end the transfer as failed.

Gateway response contract
-------------------------
* success: ``{"success": true, "transactionId": "..."}``; the id may
  also arrive as ``transactionHash`` or ``txHash``.
* failure: any non-2xx status, or ``"success": false``, with
  ``{"error": "...", "details": "..."}``.
"""

from __future__ import annotations

import uuid
from typing import Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vp_common.models.transaction import TransferRequest, TransferResult

from checkout.executors.base import TransferExecutor

logger = structlog.get_logger()

_DEFAULT_MAX_ATTEMPTS = 3
_DEFAULT_TIMEOUT_S = 30.0
_TRANSACTION_ID_KEYS = ("transactionId", "transactionHash", "txHash")

# Raised before any request bytes reach the gateway.
_NOT_DELIVERED = (httpx.ConnectError, httpx.ConnectTimeout)

IDEMPOTENCY_HEADER = "Idempotency-Key"


def _error_from_body(body: dict[str, Any], status_code: int) -> str:
    error = body.get("error") or f"Transfer gateway returned HTTP {status_code}"
    details = body.get("details")
    if details:
        return f"{error}: {details}"
    return str(error)


class HttpTransferExecutor(TransferExecutor):
    """Settle transfers through an HTTP transfer gateway.

    Uses :mod:`httpx` for async HTTP and :mod:`tenacity` for retry with
    exponential back-off on connection failures.

    Args:
        name: Executor identifier for logs and health output.
        url: Gateway endpoint receiving the ``POST``.
        max_attempts: Connection attempts per transfer.
        timeout: Per-request timeout in seconds.
        headers: Extra headers sent with every request.
        transport: Optional custom ``httpx`` transport (used in tests).
    """

    def __init__(
        self,
        name: str,
        url: str,
        *,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
        timeout: float = _DEFAULT_TIMEOUT_S,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._name = name
        self.url = url
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return self._name

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (and lazily create) the shared ``httpx.AsyncClient``."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    # ── delivery ──

    async def _post_with_retry(self, payload: dict[str, Any], idempotency_key: str) -> httpx.Response:
        """POST *payload*, retrying only connection failures.

        The retry decorator is built per call so ``max_attempts`` can be
        set at construction time.
        """

        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(_NOT_DELIVERED),
            reraise=True,
        )
        async def _inner() -> httpx.Response:
            client = await self._get_client()
            return await client.post(
                self.url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    IDEMPOTENCY_HEADER: idempotency_key,
                    **self.headers,
                },
            )

        return await _inner()

    async def execute(self, request: TransferRequest) -> TransferResult:
        """Send *request* to the gateway and map its response.

        Returns:
            A successful result carrying the gateway's transaction id, or
            a failed result carrying the gateway's error text.
        """
        payload = request.model_dump(mode="json")
        idempotency_key = str(uuid.uuid4())
        log = logger.bind(executor=self.name, currency=request.currency, idempotency_key=idempotency_key)
        try:
            resp = await self._post_with_retry(payload, idempotency_key)
        except _NOT_DELIVERED as exc:
            log.error("transfer_gateway_unreachable", url=self.url, error=str(exc))
            return TransferResult.failed(f"Transfer gateway unreachable: {exc}")
        except httpx.TransportError as exc:
            log.error("transfer_gateway_outcome_unknown", url=self.url, error=str(exc))
            return TransferResult.failed(f"Transfer gateway did not answer; outcome unknown: {exc}")

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if resp.is_success and body.get("success", True) is not False:
            for key in _TRANSACTION_ID_KEYS:
                if body.get(key):
                    log.info("transfer_gateway_settled", status=resp.status_code)
                    return TransferResult.ok(str(body[key]))
            log.error("transfer_gateway_missing_transaction_id", status=resp.status_code)
            return TransferResult.failed("Transfer gateway response carried no transaction id")

        error = _error_from_body(body, resp.status_code)
        log.warning("transfer_gateway_rejected", status=resp.status_code, error=error)
        return TransferResult.failed(error)

    async def health_check(self) -> bool:
        return bool(self.url)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
