"""
Core Utilities Package

Shared data models, validation rules and configuration used by the mail,
watcher and export packages.

This package provides:
- Yen amount parsing with integer arithmetic
- Date normalisation to the `YYYY/MM/DD` form
- Transaction record and payment entry models with validation
- Configuration management for environment-specific settings
"""

from .config import (
    Config,
    Environment,
    ExporterConfig,
    MailSourceConfig,
    WatcherConfig,
    get_config,
    reload_config,
)
from .currency import format_yen, parse_yen_amount, strip_thousands_separators
from .dates import normalize_date
from .models import (
    PaymentDefaults,
    PaymentEntry,
    RawMessage,
    TransactionRecord,
    build_payment_entries,
    is_consistent_record,
    is_valid_record,
    validate_record,
)

__all__ = [
    # Configuration
    "Config",
    "Environment",
    "ExporterConfig",
    "MailSourceConfig",
    # Data models
    "PaymentDefaults",
    "PaymentEntry",
    "RawMessage",
    "TransactionRecord",
    "WatcherConfig",
    "build_payment_entries",
    "format_yen",
    "get_config",
    "is_consistent_record",
    "is_valid_record",
    "normalize_date",
    # Currency utilities
    "parse_yen_amount",
    "reload_config",
    "strip_thousands_separators",
    "validate_record",
]
