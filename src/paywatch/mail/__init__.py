"""
Mail Package

Pulls Rakuten Pay notification emails from a testmail.app inbox and turns
their HTML bodies into TransactionRecords.

Key Components:
- client: testmail.app JSON API client with distinct transport-failure signalling
- parser: two-template field extractor (payment notice, order confirmation)
"""

from .client import MailSourceError, TestmailClient
from .parser import (
    ORDER_CONFIRMATION,
    PAYMENT_NOTICE,
    RakutenPayParser,
    TemplateFamily,
    extract,
)

__all__ = [
    "MailSourceError",
    "ORDER_CONFIRMATION",
    "PAYMENT_NOTICE",
    "RakutenPayParser",
    "TemplateFamily",
    "TestmailClient",
    "extract",
]
