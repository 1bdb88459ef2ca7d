from __future__ import annotations

import json
from typing import Any

from .errors import EmptyPayloadError, ParseError

# Envelope keys tried in order; only one level is unwrapped, so
# {"data": {"payload": {...}}} yields {"payload": {...}}.
UNWRAP_KEYS = ("submission", "data", "payload")


def parse_body(raw: bytes | str | None) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(str(exc)) from exc
    if not raw.strip():
        return {}

    try:
        body = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(str(exc)) from exc

    if not isinstance(body, dict):
        raise ParseError(f"expected a JSON object, got {type(body).__name__}")
    return body


def unwrap_envelope(body: dict[str, Any], keys: tuple[str, ...] = UNWRAP_KEYS) -> dict[str, Any]:
    for key in keys:
        nested = body.get(key)
        if isinstance(nested, dict):
            return nested
    return body


def normalize_submission(raw: bytes | str | None) -> dict[str, Any]:
    fields = unwrap_envelope(parse_body(raw))
    if not fields:
        raise EmptyPayloadError("No form data received")
    return fields
