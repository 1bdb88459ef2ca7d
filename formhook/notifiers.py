from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

import apprise
import httpx

from .errors import ChannelDeliveryError
from .formatter import format_value

logger = logging.getLogger("formhook.notifiers")


class ChatNotifier(Protocol):
    enabled: bool

    async def notify(self, fields: Mapping[str, Any]) -> str: ...


class SmsSender(Protocol):
    async def send(
        self,
        body: str,
        recipient: str,
        sender: str | None = None,
        *,
        channel: str = "sms",
    ) -> str: ...


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SlackNotifier:
    def __init__(self, webhook_url: str, timeout_seconds: float = 10.0) -> None:
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    @staticmethod
    def build_payload(fields: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "text": "New form submission",
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "New Form Submission"},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*{key}:*\n{format_value(value)}"}
                        for key, value in fields.items()
                    ],
                },
                {
                    "type": "context",
                    "elements": [{"type": "mrkdwn", "text": f"Received at: {utc_now_iso()}"}],
                },
            ],
        }

    async def notify(self, fields: Mapping[str, Any]) -> str:
        if not self.enabled:
            raise ChannelDeliveryError("slack", "slack webhook url is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(self.webhook_url, json=self.build_payload(fields))
        except httpx.HTTPError as exc:
            raise ChannelDeliveryError("slack", f"slack request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise ChannelDeliveryError(
                "slack",
                f"slack api error: {response.status_code} {response.text[:300]}",
            )
        return response.text or "ok"


class TwilioSmsSender:
    """Deliver SMS through an apprise twilio:// target per message."""

    def __init__(self, account_sid: str, auth_token: str, default_sender: str) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.default_sender = default_sender

    def build_url(self, recipient: str, sender: str) -> str:
        return (
            f"twilio://{self.account_sid}:{self.auth_token}"
            f"@{sender.lstrip('+')}/{recipient.lstrip('+')}"
        )

    def _send_blocking(self, body: str, recipient: str, sender: str, channel: str) -> str:
        apobj = apprise.Apprise()
        if not apobj.add(self.build_url(recipient, sender)):
            raise ChannelDeliveryError(channel, "failed to load twilio target")

        result = apobj.notify(body=body, body_format=apprise.NotifyFormat.TEXT)
        if not result:
            raise ChannelDeliveryError(channel, "apprise notify failed for twilio target")
        return uuid.uuid4().hex

    async def send(
        self,
        body: str,
        recipient: str,
        sender: str | None = None,
        *,
        channel: str = "sms",
    ) -> str:
        if not self.account_sid or not self.auth_token:
            raise ChannelDeliveryError(channel, "twilio credentials are not configured")
        sender = sender or self.default_sender
        if not sender:
            raise ChannelDeliveryError(channel, "no sender number configured")

        delivery_id = await asyncio.to_thread(self._send_blocking, body, recipient, sender, channel)
        logger.info("sms delivered", extra={"channel": channel, "deliveryId": delivery_id})
        return delivery_id
