from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import MappingLoadError

logger = logging.getLogger("formhook.mapping")


@dataclass(frozen=True)
class MappingEntry:
    origin_key: str
    destination_number: str
    sender_override: str | None = None


def parse_mapping_table(text: str) -> dict[str, MappingEntry]:
    """Parse `originKey,destinationNumber,senderOverride` rows.

    The first line is always a header. Short rows and rows missing a key or
    destination are dropped; a repeated key keeps the last row.
    """
    entries: dict[str, MappingEntry] = {}
    for line in text.splitlines()[1:]:
        if not line.strip():
            continue
        fields = [field.strip() for field in line.split(",")]
        if len(fields) < 3:
            continue
        origin_key, destination, sender = fields[0], fields[1], fields[2]
        if not origin_key or not destination:
            continue
        entries[origin_key] = MappingEntry(
            origin_key=origin_key,
            destination_number=destination,
            sender_override=sender or None,
        )
    return entries


def read_mapping_text(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MappingLoadError(f"cannot read mapping table {path}: {exc}") from exc


def load_mapping_table(path: str | Path) -> dict[str, MappingEntry]:
    try:
        return parse_mapping_table(read_mapping_text(path))
    except MappingLoadError as exc:
        logger.warning("mapping table unavailable, using empty mapping", extra={"error": str(exc)})
        return {}


def lookup_mapping(path: str | Path, origin_key: str) -> MappingEntry | None:
    # Reloaded per call so table edits apply without a restart.
    return load_mapping_table(path).get(origin_key)
