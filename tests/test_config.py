from __future__ import annotations

import pytest

from formhook.config import DEFAULT_OPERATOR_PHONE, ConfigError, load_config_from_env


def test_defaults_from_empty_env() -> None:
    config = load_config_from_env({})

    assert config.port == 8080
    assert config.slack_webhook_url == ""
    assert config.operator_phone == DEFAULT_OPERATOR_PHONE
    assert config.default_country_code == "44"
    assert config.national_trunk_prefix == "0"
    assert config.hook_secret_header == "X-Hook-Secret"
    assert config.mapping_path == "site-mappings.csv"


def test_placeholder_slack_url_counts_as_unset() -> None:
    config = load_config_from_env(
        {"SLACK_WEBHOOK_URL": "https://hooks.slack.com/services/YOUR/WEBHOOK/URL"}
    )

    assert config.slack_webhook_url == ""


def test_values_are_read_and_trimmed() -> None:
    config = load_config_from_env(
        {
            "PORT": "9000",
            "TWILIO_FROM_PHONE": " +447700900000 ",
            "DEFAULT_COUNTRY_CODE": "+1",
            "HTTP_TIMEOUT_SECONDS": "2.5",
            "OPERATOR_PHONE": "+15550001111",
        }
    )

    assert config.port == 9000
    assert config.default_sender == "+447700900000"
    assert config.default_country_code == "1"
    assert config.http_timeout_seconds == 2.5
    assert config.operator_phone == "+15550001111"


def test_invalid_numbers_fall_back() -> None:
    config = load_config_from_env({"PORT": "-1", "HTTP_TIMEOUT_SECONDS": "soon"})

    assert config.port == 8080
    assert config.http_timeout_seconds == 10.0


@pytest.mark.parametrize(
    "env",
    [{"DEFAULT_COUNTRY_CODE": "UK"}, {"NATIONAL_TRUNK_PREFIX": ""}, {"NATIONAL_TRUNK_PREFIX": "x"}],
)
def test_invalid_dialing_settings_raise(env) -> None:
    with pytest.raises(ConfigError):
        load_config_from_env(env)
