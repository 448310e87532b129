"""Unit tests for settings and the pure helpers around repository calls."""

import uuid

import pytest

from momoapi.core.constants import DEFAULT_BASE_URL, ProductType
from momoapi.core.exceptions import ConfigurationError
from momoapi.core.settings import (
    MomoSettings,
    format_phone_number,
    generate_request_id,
    is_notification_message_valid,
    resolve_subscription_key,
)


# ---------------------------------------------------------------------------
# MomoSettings.from_env
# ---------------------------------------------------------------------------


class TestFromEnv:
    def test_defaults(self, monkeypatch):
        for name in ("MOMO_BASE_URL", "MOMO_ENVIRONMENT", "MOMO_HTTP_LOGGING",
                     "MOMO_TIMEOUT", "MOMO_API_VERSION"):
            monkeypatch.delenv(name, raising=False)
        settings = MomoSettings.from_env()
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.target_environment == "sandbox"
        assert settings.api_version == "v1_0"
        assert settings.http_logging is True
        assert settings.timeout == 60

    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("MOMO_BASE_URL", "http://localhost:8080")
        monkeypatch.setenv("MOMO_ENVIRONMENT", "mtnuganda")
        monkeypatch.setenv("MOMO_COLLECTION_PRIMARY_KEY", "col-primary")
        monkeypatch.setenv("MOMO_TIMEOUT", "15")
        monkeypatch.setenv("MOMO_HTTP_LOGGING", "off")
        settings = MomoSettings.from_env()
        assert settings.base_url == "http://localhost:8080"
        assert settings.target_environment == "mtnuganda"
        assert settings.collection_primary_key == "col-primary"
        assert settings.timeout == 15.0
        assert settings.http_logging is False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_generate_request_id_is_uuid4():
    value = generate_request_id()
    assert uuid.UUID(value).version == 4
    assert generate_request_id() != value


class TestFormatPhoneNumber:
    def test_local_number_gets_country_code(self):
        assert format_phone_number("0772123456", "256") == "256772123456"

    def test_plus_prefix_is_stripped(self):
        assert format_phone_number("+256772123456", "256") == "256772123456"

    def test_international_number_unchanged(self):
        assert format_phone_number("256772123456", "256") == "256772123456"

    @pytest.mark.parametrize("number", [None, "", "   "])
    def test_blank_returns_none(self, number):
        assert format_phone_number(number, "256") is None


class TestResolveSubscriptionKey:
    def test_primary_wins(self):
        settings = MomoSettings(
            collection_primary_key="p", collection_secondary_key="s"
        )
        assert resolve_subscription_key(ProductType.COLLECTION, settings) == "p"

    def test_blank_primary_falls_back_to_secondary(self):
        settings = MomoSettings(
            disbursement_primary_key="  ", disbursement_secondary_key="s"
        )
        assert resolve_subscription_key("disbursement", settings) == "s"

    def test_remittance(self):
        settings = MomoSettings(remittance_primary_key="r")
        assert resolve_subscription_key("remittance", settings) == "r"

    def test_unknown_product(self):
        with pytest.raises(ConfigurationError):
            resolve_subscription_key("lending", MomoSettings())

    def test_reads_environment_when_settings_omitted(self, monkeypatch):
        monkeypatch.setenv("MOMO_COLLECTION_PRIMARY_KEY", "")
        monkeypatch.setenv("MOMO_COLLECTION_SECONDARY_KEY", "env-secondary")
        assert resolve_subscription_key("collection") == "env-secondary"


class TestNotificationMessage:
    def test_valid(self):
        assert is_notification_message_valid("Your order is ready")

    def test_exact_limit(self):
        assert is_notification_message_valid("x" * 160)

    def test_too_long(self):
        assert not is_notification_message_valid("x" * 161)

    @pytest.mark.parametrize("message", [None, "", "  "])
    def test_blank(self, message):
        assert not is_notification_message_valid(message)
