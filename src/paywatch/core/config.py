#!/usr/bin/env python3
"""
Configuration Management for paywatch

Handles environment-based configuration with secure defaults and validation.
All values are read once at process start and stay fixed for the lifetime
of the process.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass(frozen=True)
class MailSourceConfig:
    """Testmail inbox configuration."""

    api_key: str | None = None
    namespace: str | None = None
    tag: str | None = None
    base_url: str = "https://api.testmail.app/api/json"
    timeout: int = 30
    limit: int = 100


@dataclass(frozen=True)
class ExporterConfig:
    """Money Forward ME credentials and manual-entry defaults."""

    email: str | None = None
    password: str | None = None
    headless: bool = True
    large_category: str = "0"
    middle_category: str = "0"
    source: str = "0"


@dataclass(frozen=True)
class WatcherConfig:
    """Polling and retry timing, in seconds."""

    poll_interval: float = 5 * 60
    retry_delay: float = 3 * 60


@dataclass(frozen=True)
class Config:
    """
    Main configuration class for paywatch.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment

    # Component configurations
    mail: MailSourceConfig
    exporter: ExporterConfig
    watcher: WatcherConfig

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("PAYWATCH_ENV", "development"))

        mail = MailSourceConfig(
            api_key=os.getenv("TESTMAIL_API_KEY"),
            namespace=os.getenv("TESTMAIL_NAMESPACE"),
            tag=os.getenv("TESTMAIL_TAG") or None,
            timeout=int(os.getenv("TESTMAIL_TIMEOUT", "30")),
        )

        exporter = ExporterConfig(
            email=os.getenv("MONEY_FORWARD_EMAIL"),
            password=os.getenv("MONEY_FORWARD_PW"),
            headless=os.getenv("MONEY_FORWARD_HEADLESS", "true").lower() == "true",
            large_category=os.getenv("PAYMENT_LARGE_CATEGORY", "0"),
            middle_category=os.getenv("PAYMENT_MIDDLE_CATEGORY", "0"),
            source=os.getenv("PAYMENT_SOURCE", "0"),
        )

        watcher = WatcherConfig(
            poll_interval=float(os.getenv("POLL_INTERVAL_SECONDS", "300")),
            retry_delay=float(os.getenv("RETRY_DELAY_SECONDS", "180")),
        )

        return cls(
            environment=env,
            mail=mail,
            exporter=exporter,
            watcher=watcher,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        # Credentials are mandatory in production
        if self.environment == Environment.PRODUCTION:
            if not self.mail.api_key:
                errors.append("TESTMAIL_API_KEY is required in production")
            if not self.mail.namespace:
                errors.append("TESTMAIL_NAMESPACE is required in production")
            if not self.exporter.email:
                errors.append("MONEY_FORWARD_EMAIL is required in production")

        if self.exporter.email and not self.exporter.password:
            errors.append("MONEY_FORWARD_PW is required when MONEY_FORWARD_EMAIL is provided")

        if self.watcher.poll_interval <= 0:
            errors.append("Poll interval must be positive")
        if self.watcher.retry_delay < 0:
            errors.append("Retry delay must be non-negative")
        if self.mail.timeout <= 0:
            errors.append("Testmail timeout must be positive")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        # Configure format based on environment
        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # Reduce noise from external libraries in production
        if self.environment == Environment.PRODUCTION:
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("requests").setLevel(logging.WARNING)

    def get_sensitive_fields(self) -> list[str]:
        """Get list of field names that contain sensitive data."""
        return [
            "mail.api_key",
            "exporter.email",
            "exporter.password",
        ]

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary, optionally excluding sensitive data."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, Enum):
                # Nested dataclass
                nested_dict: dict[str, Any] = {}
                for nested_name, nested_value in field_value.__dict__.items():
                    full_field_name = f"{field_name}.{nested_name}"

                    if not include_sensitive and full_field_name in self.get_sensitive_fields():
                        nested_dict[nested_name] = "***REDACTED***" if nested_value else None
                    else:
                        nested_dict[nested_name] = nested_value

                result[field_name] = nested_dict
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        config = Config.from_environment()

        # Validate configuration
        errors = config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        # Setup logging
        config.setup_logging()
        _config = config

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()

