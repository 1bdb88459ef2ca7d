from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_OPERATOR_PHONE = "+447700900461"
DEFAULT_CONFIRMATION_TEXT = (
    "Thanks for getting in touch! We've received your enquiry and will get back to you shortly."
)
SLACK_PLACEHOLDER = "YOUR/WEBHOOK/URL"


class ConfigError(RuntimeError):
    pass


def parse_positive_int(raw: Any, fallback: int) -> int:
    try:
        value = int(str(raw).strip())
    except Exception:
        return fallback
    if value <= 0:
        return fallback
    return value


def parse_positive_float(raw: Any, fallback: float) -> float:
    try:
        value = float(str(raw).strip())
    except Exception:
        return fallback
    if value <= 0:
        return fallback
    return value


def parse_country_code(raw: Any) -> str:
    value = str(raw or "44").strip().lstrip("+") or "44"
    if not value.isdigit():
        raise ConfigError(f"DEFAULT_COUNTRY_CODE must be digits: {raw}")
    return value


def parse_trunk_prefix(raw: Any) -> str:
    if raw is None:
        return "0"
    value = str(raw).strip()
    if not value or not value.isdigit():
        raise ConfigError(f"NATIONAL_TRUNK_PREFIX must be digits: {raw!r}")
    return value


def parse_slack_url(raw: Any) -> str:
    value = str(raw or "").strip()
    if SLACK_PLACEHOLDER in value:
        return ""
    return value


def clean(raw: Any, fallback: str = "") -> str:
    return str(raw or "").strip() or fallback


@dataclass(frozen=True)
class AppConfig:
    port: int = 8080
    slack_webhook_url: str = ""
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    default_sender: str = ""
    operator_phone: str = DEFAULT_OPERATOR_PHONE
    mapping_path: str = "site-mappings.csv"
    default_country_code: str = "44"
    national_trunk_prefix: str = "0"
    hook_secret_header: str = "X-Hook-Secret"
    confirmation_text: str = DEFAULT_CONFIRMATION_TEXT
    log_forward_url: str = ""
    http_timeout_seconds: float = 10.0


def load_config_from_env(env: Mapping[str, str]) -> AppConfig:
    return AppConfig(
        port=parse_positive_int(env.get("PORT"), 8080),
        slack_webhook_url=parse_slack_url(env.get("SLACK_WEBHOOK_URL")),
        twilio_account_sid=clean(env.get("TWILIO_ACCOUNT_SID")),
        twilio_auth_token=clean(env.get("TWILIO_AUTH_TOKEN")),
        default_sender=clean(env.get("TWILIO_FROM_PHONE")),
        operator_phone=clean(env.get("OPERATOR_PHONE"), DEFAULT_OPERATOR_PHONE),
        mapping_path=clean(env.get("SITE_MAPPING_PATH"), "site-mappings.csv"),
        default_country_code=parse_country_code(env.get("DEFAULT_COUNTRY_CODE")),
        national_trunk_prefix=parse_trunk_prefix(env.get("NATIONAL_TRUNK_PREFIX")),
        hook_secret_header=clean(env.get("HOOK_SECRET_HEADER"), "X-Hook-Secret"),
        confirmation_text=clean(env.get("CONFIRMATION_SMS_TEXT"), DEFAULT_CONFIRMATION_TEXT),
        log_forward_url=clean(env.get("LOG_FORWARD_URL")),
        http_timeout_seconds=parse_positive_float(env.get("HTTP_TIMEOUT_SECONDS"), 10.0),
    )
