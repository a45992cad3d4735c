"""
Error types for the VoxPay checkout service.

Every failure the confirmation controller can surface derives from
:class:`CheckoutError` and carries the :class:`ErrorKind` recorded on the
session snapshot.  ``UnparsableIntent`` is the one non-fatal kind: the
offending message is downgraded to a transcript.
"""

from __future__ import annotations

from vp_common.models.session import ErrorKind


class CheckoutError(Exception):
    """Base class for checkout failures."""

    kind: ErrorKind | None = None

    @property
    def reason(self) -> str:
        return str(self)


class ClassifierConnectionFailure(CheckoutError):
    """The intent classifier stream could not be opened."""

    kind = ErrorKind.CLASSIFIER_CONNECTION_FAILURE


class UnparsableIntent(CheckoutError):
    """A classifier message matched neither structured intent shape."""


class RecipientNotApproved(CheckoutError):
    """The recipient is absent from the allow-list or not approved."""

    kind = ErrorKind.RECIPIENT_NOT_APPROVED

    def __init__(self, recipient: str) -> None:
        super().__init__(f"Recipient '{recipient}' is not approved for transfers")
        self.recipient = recipient


class UnsupportedCurrency(CheckoutError):
    """No transfer executor is configured for the currency."""

    kind = ErrorKind.UNSUPPORTED_CURRENCY

    def __init__(self, currency: str, supported: list[str] | None = None) -> None:
        message = f"Unsupported currency '{currency}'"
        if supported:
            message += f". Supported: {', '.join(supported)}"
        super().__init__(message)
        self.currency = currency


class TransferExecutionFailure(CheckoutError):
    """The transfer executor reported (or raised) a failure."""

    kind = ErrorKind.TRANSFER_EXECUTION_FAILURE
