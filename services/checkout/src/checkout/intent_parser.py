"""
Classifier message parsing for the VoxPay checkout service.

Turns one raw message from the intent classifier into exactly one of
:class:`TransactionIntent`, :class:`ConfirmationIntent` or
:class:`Transcript`.  Accepted inputs:

* a ``dict`` already decoded by the transport;
* a JSON object string;
* model text with one JSON object embedded in it, optionally inside a
  fenced code block.

Messages that look structured but fit neither intent shape (unknown
``intent`` value, missing fields, non-positive or non-numeric amount)
are downgraded to a transcript of the raw text and logged.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from vp_common.models.intent import IntentEvent, IntentKind, StructuredIntent, Transcript

from checkout.errors import UnparsableIntent

logger = structlog.get_logger()

_STRUCTURED: TypeAdapter[Any] = TypeAdapter(StructuredIntent)
_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


def _extract_object(text: str) -> dict[str, Any] | None:
    """Find a JSON object in *text*; return ``None`` if there is none."""
    candidates = [text.strip()]
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    bare = _BARE_JSON.search(text)
    if bare:
        candidates.append(bare.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def parse_structured(data: dict[str, Any]) -> IntentEvent:
    """Validate *data* against the two structured intent shapes.

    The ``intent`` discriminator is matched case-insensitively.

    Raises:
        UnparsableIntent: If *data* fits neither shape.
    """
    payload = dict(data)
    kind = payload.get("intent")
    if isinstance(kind, str):
        payload["intent"] = kind.strip().upper()
    try:
        IntentKind(payload.get("intent"))
    except ValueError:
        raise UnparsableIntent(f"unknown intent {kind!r}") from None
    try:
        return _STRUCTURED.validate_python(payload)
    except ValidationError as exc:
        raise UnparsableIntent(
            f"classifier message fits no intent shape ({exc.error_count()} errors)"
        ) from exc


def parse_event(raw: str | dict[str, Any]) -> IntentEvent:
    """Parse one classifier message into a typed intent event.

    Never raises: unstructured or malformed input becomes a
    :class:`Transcript` of the raw text.
    """
    if isinstance(raw, dict):
        data: dict[str, Any] | None = raw
        text = json.dumps(raw)
    else:
        text = raw
        data = _extract_object(raw) if "{" in raw else None

    if data is None or "intent" not in data:
        return Transcript(text=text.strip())

    try:
        return parse_structured(data)
    except UnparsableIntent as exc:
        logger.info("classifier_message_unparsable", reason=str(exc), intent=data.get("intent"))
        return Transcript(text=text.strip())
