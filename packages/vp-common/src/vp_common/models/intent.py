"""
Classifier intent models for VoxPay.

The external conversational-AI service turns speech into one of three
event kinds: a transaction intent, a confirmation intent, or a plain
transcript. The two structured kinds form a tagged union discriminated
on the ``intent`` field; anything that fits neither shape is carried as
a :class:`Transcript`.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator


class IntentKind(str, enum.Enum):
    """Discriminator values emitted by the classifier."""

    TRANSACTION = "TRANSACTION"
    CONFIRMATION = "CONFIRMATION"


class Decision(str, enum.Enum):
    """Answer carried by a confirmation intent."""

    YES = "yes"
    NO = "no"

    @property
    def affirmative(self) -> bool:
        return self is Decision.YES


class TransactionIntent(BaseModel):
    """A request to move *amount* of *currency* to *recipient*.

    Attributes:
        intent: Always ``"TRANSACTION"``.
        amount: Positive, finite amount. Booleans and numeric strings
            are rejected.
        currency: Currency symbol as spoken (matched case-insensitively
            later, at send time).
        recipient: Human-readable recipient name or address.
    """

    model_config = {"frozen": True}

    intent: Literal["TRANSACTION"] = "TRANSACTION"
    amount: float = Field(..., gt=0, allow_inf_nan=False, strict=True)
    currency: str = Field(..., min_length=1, description="Currency symbol.")
    recipient: str = Field(..., min_length=1, description="Recipient name or address.")

    @field_validator("currency", "recipient", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class ConfirmationIntent(BaseModel):
    """A yes/no answer to the transaction currently awaiting confirmation."""

    model_config = {"frozen": True}

    intent: Literal["CONFIRMATION"] = "CONFIRMATION"
    decision: Decision

    @field_validator("decision", mode="before")
    @classmethod
    def _lower(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class Transcript(BaseModel):
    """Plain text with no recognised intent."""

    model_config = {"frozen": True}

    text: str = ""


StructuredIntent = Annotated[
    Union[TransactionIntent, ConfirmationIntent],
    Field(discriminator="intent"),
]

IntentEvent = Union[TransactionIntent, ConfirmationIntent, Transcript]
