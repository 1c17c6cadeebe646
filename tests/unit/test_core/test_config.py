"""Unit tests for configuration loading and validation."""

import pytest

from paywatch.core.config import Config, Environment, get_config, reload_config


@pytest.mark.unit
class TestConfig:
    def test_defaults_from_environment(self):
        config = Config.from_environment()

        assert config.environment == Environment.TEST
        assert config.mail.api_key == "test-key"
        assert config.mail.namespace == "test-namespace"
        assert config.mail.tag is None
        assert config.watcher.poll_interval == 300
        assert config.watcher.retry_delay == 180
        assert config.exporter.large_category == "0"
        assert config.validate() == []

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("POLL_INTERVAL_SECONDS", "60")
        monkeypatch.setenv("RETRY_DELAY_SECONDS", "5")
        monkeypatch.setenv("TESTMAIL_TAG", "rakuten")
        monkeypatch.setenv("PAYMENT_SOURCE", "card-1")

        config = Config.from_environment()

        assert config.watcher.poll_interval == 60
        assert config.watcher.retry_delay == 5
        assert config.mail.tag == "rakuten"
        assert config.exporter.source == "card-1"

    def test_production_requires_credentials(self, monkeypatch):
        monkeypatch.setenv("PAYWATCH_ENV", "production")
        monkeypatch.delenv("TESTMAIL_API_KEY")

        errors = Config.from_environment().validate()

        assert "TESTMAIL_API_KEY is required in production" in errors
        assert "MONEY_FORWARD_EMAIL is required in production" in errors

    def test_password_required_with_email(self, monkeypatch):
        monkeypatch.setenv("MONEY_FORWARD_EMAIL", "me@example.com")

        errors = Config.from_environment().validate()

        assert "MONEY_FORWARD_PW is required when MONEY_FORWARD_EMAIL is provided" in errors

    def test_get_config_raises_on_invalid(self, monkeypatch):
        monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0")

        with pytest.raises(ValueError, match="Poll interval must be positive"):
            get_config()

    def test_get_config_is_cached(self):
        assert get_config() is get_config()
        assert reload_config() is not None

    def test_to_dict_redacts_secrets(self, monkeypatch):
        monkeypatch.setenv("MONEY_FORWARD_EMAIL", "me@example.com")
        monkeypatch.setenv("MONEY_FORWARD_PW", "hunter2")

        data = Config.from_environment().to_dict()

        assert data["environment"] == "test"
        assert data["mail"]["api_key"] == "***REDACTED***"
        assert data["exporter"]["password"] == "***REDACTED***"
        assert data["exporter"]["large_category"] == "0"
        assert "hunter2" not in str(data)
