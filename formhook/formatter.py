from __future__ import annotations

import json
from typing import Any, Mapping

SubmissionFields = Mapping[str, Any]

HEADER_LINE = "New form submission"
RESERVED_PREFIX = "_"
ORIGIN_KEYS = ("websiteUrl", "website", "siteUrl")

# (label, keys) in render order; the first present key wins.
RECOGNIZED_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Email", ("email",)),
    ("Phone", ("phone",)),
    ("Service", ("service", "field", "type")),
    ("Message", ("message", "comment", "details")),
    ("Website", ORIGIN_KEYS),
)
NAME_KEYS = ("name", "firstName", "lastName")


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def format_value(value: Any) -> str:
    # JSON scalars keep their JSON spelling: true, false, null.
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, ensure_ascii=False, default=str)


def first_present(fields: SubmissionFields, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if is_present(fields.get(key)):
            return fields[key]
    return None


def compose_name(fields: SubmissionFields) -> str | None:
    if is_present(fields.get("name")):
        return format_value(fields["name"])
    parts = [format_value(fields[key]) for key in ("firstName", "lastName") if is_present(fields.get(key))]
    return " ".join(parts) or None


def resolve_origin_key(fields: SubmissionFields) -> str | None:
    value = first_present(fields, ORIGIN_KEYS)
    if value is None:
        return None
    return format_value(value)


def capitalize_key(key: str) -> str:
    return key[:1].upper() + key[1:]


def format_message(fields: SubmissionFields) -> str:
    lines = [HEADER_LINE, ""]

    name = compose_name(fields)
    if name:
        lines.append(f"Name: {name}")

    consumed = set(NAME_KEYS)
    for label, keys in RECOGNIZED_FIELDS:
        consumed.update(keys)
        value = first_present(fields, keys)
        if value is not None:
            lines.append(f"{label}: {format_value(value)}")

    for key, value in fields.items():
        if key in consumed or key.startswith(RESERVED_PREFIX) or not is_present(value):
            continue
        lines.append(f"{capitalize_key(key)}: {format_value(value)}")

    return "\n".join(lines)
