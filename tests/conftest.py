"""Shared fakes for the notification channels."""

from __future__ import annotations

from typing import Any, Mapping

import pytest

from formhook.config import AppConfig
from formhook.errors import ChannelDeliveryError


class FakeChat:
    def __init__(self, enabled: bool = True, fail: bool = False) -> None:
        self.enabled = enabled
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    async def notify(self, fields: Mapping[str, Any]) -> str:
        self.calls.append(dict(fields))
        if self.fail:
            raise ChannelDeliveryError("slack", "slack api error: 500")
        return "ok"


class FakeSms:
    def __init__(self, failing_recipients: set[str] | None = None) -> None:
        self.failing_recipients = failing_recipients or set()
        self.sent: list[dict[str, Any]] = []
        self.channels: dict[str, str] = {}

    async def send(
        self,
        body: str,
        recipient: str,
        sender: str | None = None,
        *,
        channel: str = "sms",
    ) -> str:
        self.channels[recipient] = channel
        if recipient in self.failing_recipients:
            raise ChannelDeliveryError(channel, f"delivery to {recipient} failed")
        self.sent.append({"body": body, "recipient": recipient, "sender": sender})
        return f"SM{len(self.sent)}"

    def to(self, recipient: str) -> list[dict[str, Any]]:
        return [item for item in self.sent if item["recipient"] == recipient]


@pytest.fixture
def mapping_file(tmp_path):
    path = tmp_path / "site-mappings.csv"
    path.write_text(
        "originKey,destinationNumber,senderOverride\n"
        "https://x.com,+441,+442\n"
        "https://plain.com,07700900123,\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config(mapping_file) -> AppConfig:
    return AppConfig(
        twilio_account_sid="AC123",
        twilio_auth_token="token",
        default_sender="+447700900000",
        operator_phone="+447700900999",
        mapping_path=str(mapping_file),
        confirmation_text="Thanks, we got your message.",
    )


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def sms() -> FakeSms:
    return FakeSms()
