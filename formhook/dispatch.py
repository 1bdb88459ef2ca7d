from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from .config import AppConfig
from .formatter import SubmissionFields, resolve_origin_key
from .mapping import MappingEntry, lookup_mapping
from .notifiers import ChatNotifier, SmsSender
from .phone import normalize_phone

logger = logging.getLogger("formhook.dispatch")

SLACK = "slack"
BUSINESS_SMS = "business_sms"
ADDITIONAL_SMS = "additional_sms"
CUSTOMER_SMS = "customer_sms"

FLAG_NAMES = {
    SLACK: "slackSent",
    BUSINESS_SMS: "businessSmsSent",
    ADDITIONAL_SMS: "additionalSmsSent",
    CUSTOMER_SMS: "customerSmsSent",
}

MappingLookup = Callable[[str, str], "MappingEntry | None"]


@dataclass(frozen=True)
class ChannelOutcome:
    channel: str
    status: str
    detail: str | None = None

    @classmethod
    def sent(cls, channel: str, delivery_id: str | None = None) -> "ChannelOutcome":
        return cls(channel, "sent", delivery_id)

    @classmethod
    def skipped(cls, channel: str, reason: str) -> "ChannelOutcome":
        return cls(channel, "skipped", reason)

    @classmethod
    def failed(cls, channel: str, error: str) -> "ChannelOutcome":
        return cls(channel, "failed", error)

    @property
    def is_sent(self) -> bool:
        return self.status == "sent"


@dataclass
class DispatchResult:
    outcomes: dict[str, ChannelOutcome] = field(default_factory=dict)

    def flags(self) -> dict[str, bool]:
        return {
            flag: bool(self.outcomes.get(channel) and self.outcomes[channel].is_sent)
            for channel, flag in FLAG_NAMES.items()
        }

    def counters(self) -> dict[str, int]:
        counters = {"sent": 0, "skipped": 0, "failed": 0}
        for outcome in self.outcomes.values():
            counters[outcome.status] += 1
        return counters


class Dispatcher:
    """Fan a normalized submission out to every notification channel."""

    def __init__(
        self,
        config: AppConfig,
        chat: ChatNotifier,
        sms: SmsSender,
        mapping_lookup: MappingLookup = lookup_mapping,
    ) -> None:
        self.config = config
        self.chat = chat
        self.sms = sms
        self.mapping_lookup = mapping_lookup

    def canonical(self, number: Any) -> str | None:
        return normalize_phone(
            number,
            country_code=self.config.default_country_code,
            trunk_prefix=self.config.national_trunk_prefix,
        )

    async def send_slack(self, fields: SubmissionFields, message: str) -> ChannelOutcome:
        if not self.chat.enabled:
            return ChannelOutcome.skipped(SLACK, "slack not configured")
        result = await self.chat.notify(fields)
        return ChannelOutcome.sent(SLACK, result)

    async def send_business_sms(self, fields: SubmissionFields, message: str) -> ChannelOutcome:
        origin_key = resolve_origin_key(fields)
        if not origin_key:
            return ChannelOutcome.skipped(BUSINESS_SMS, "no origin in payload")

        entry = await asyncio.to_thread(self.mapping_lookup, self.config.mapping_path, origin_key)
        if entry is None:
            logger.info("no mapping for origin", extra={"origin": origin_key})
            return ChannelOutcome.skipped(BUSINESS_SMS, "no mapping")

        destination = entry.destination_number
        if not destination.startswith("+"):
            destination = self.canonical(destination) or destination

        sender = entry.sender_override or self.config.default_sender or None
        delivery_id = await self.sms.send(message, destination, sender, channel=BUSINESS_SMS)
        return ChannelOutcome.sent(BUSINESS_SMS, delivery_id)

    async def send_additional_sms(self, fields: SubmissionFields, message: str) -> ChannelOutcome:
        delivery_id = await self.sms.send(
            message,
            self.config.operator_phone,
            self.config.default_sender or None,
            channel=ADDITIONAL_SMS,
        )
        return ChannelOutcome.sent(ADDITIONAL_SMS, delivery_id)

    async def send_customer_sms(self, fields: SubmissionFields, message: str) -> ChannelOutcome:
        phone = self.canonical(fields.get("phone"))
        if not phone:
            return ChannelOutcome.skipped(CUSTOMER_SMS, "no phone")
        delivery_id = await self.sms.send(
            self.config.confirmation_text,
            phone,
            self.config.default_sender or None,
            channel=CUSTOMER_SMS,
        )
        return ChannelOutcome.sent(CUSTOMER_SMS, delivery_id)

    async def _capture(self, channel: str, task: Awaitable[ChannelOutcome]) -> ChannelOutcome:
        try:
            return await task
        except Exception as exc:
            logger.error(
                "channel delivery failed",
                extra={"channel": channel, "error": str(exc)},
            )
            return ChannelOutcome.failed(channel, str(exc))

    async def dispatch(self, fields: SubmissionFields, message: str) -> DispatchResult:
        channels: list[tuple[str, Callable[[SubmissionFields, str], Awaitable[ChannelOutcome]]]] = [
            (SLACK, self.send_slack),
            (BUSINESS_SMS, self.send_business_sms),
            (ADDITIONAL_SMS, self.send_additional_sms),
            (CUSTOMER_SMS, self.send_customer_sms),
        ]
        outcomes = await asyncio.gather(
            *(self._capture(name, send(fields, message)) for name, send in channels)
        )

        result = DispatchResult({outcome.channel: outcome for outcome in outcomes})
        for outcome in outcomes:
            if outcome.status == "skipped":
                logger.info("channel skipped", extra={"channel": outcome.channel, "reason": outcome.detail})
        logger.info("submission dispatched", extra=result.counters())
        return result
