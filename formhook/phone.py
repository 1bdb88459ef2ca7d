from __future__ import annotations

from typing import Any


def normalize_phone(raw: Any, country_code: str = "44", trunk_prefix: str = "0") -> str | None:
    """Reshape a phone string into +<country><number> form.

    Best effort only: numbers are never rejected, just rewritten.
    """
    if raw is None:
        return None
    cleaned = str(raw).strip().replace(" ", "").replace("-", "")
    if not cleaned:
        return None

    country_code = country_code.lstrip("+")
    if trunk_prefix and cleaned.startswith(trunk_prefix):
        return f"+{country_code}{cleaned[len(trunk_prefix):]}"
    if not cleaned.startswith("+"):
        if cleaned.startswith(country_code):
            cleaned = cleaned[len(country_code):]
        return f"+{country_code}{cleaned}"
    return cleaned
