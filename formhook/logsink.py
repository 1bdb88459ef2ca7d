from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Any, Mapping

import httpx

from .notifiers import utc_now_iso

logger = logging.getLogger("formhook.logsink")

FORWARDED_HEADERS = ("user-agent", "content-type", "x-formspree-email", "x-formspree-site")


def pick_headers(headers: Mapping[str, str]) -> dict[str, str | None]:
    return {name: headers.get(name) for name in FORWARDED_HEADERS}


class LogSink:
    """Process-scoped, non-durable list of received submissions.

    `append` is the only mutation besides `clear`; entries are never compacted.
    """

    def __init__(self) -> None:
        self._entries: list[dict[str, Any]] = []

    def append(self, entry: Mapping[str, Any]) -> dict[str, Any]:
        stored = {
            "id": f"{int(time.time() * 1000)}{secrets.token_hex(4)}",
            "timestamp": utc_now_iso(),
            **entry,
        }
        self._entries.append(stored)
        return stored

    def list(self, limit: int = 50) -> list[dict[str, Any]]:
        if limit <= 0:
            return []
        return list(reversed(self._entries[-limit:]))

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)


class LogForwarder:
    """Fire-and-forget POST of submission entries to a log endpoint."""

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self.timeout_seconds = timeout_seconds
        self._pending: set[asyncio.Task[None]] = set()

    async def _post(self, url: str, entry: dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, json=entry)
                response.raise_for_status()
        except Exception as exc:
            logger.info("log storage failed (non-blocking)", extra={"url": url, "error": str(exc)})

    def forward(self, url: str, entry: dict[str, Any]) -> asyncio.Task[None]:
        task = asyncio.create_task(self._post(url, entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
