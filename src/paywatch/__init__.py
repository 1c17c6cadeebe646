"""
paywatch - Rakuten Pay to Money Forward ME bridge

Watches a testmail.app inbox for Rakuten Pay notification emails, extracts a
canonical transaction from either email template, and registers the point
and cash funded portions in Money Forward ME.

Domain Packages:
- core: configuration, data models, validation, amount and date parsing
- mail: inbox client and template extractor
- watcher: cursor, poller, scheduler and dispatcher
- export: retry wrapper, batch subscriber and Money Forward ME exporter
- cli: command-line interface

Example Usage:
    from paywatch.mail import extract
    from paywatch.core import is_valid_record

    record = extract(html)
    if is_valid_record(record):
        ...
"""

__version__ = "0.3.0"

from .core.models import PaymentEntry, TransactionRecord, is_valid_record
from .mail.parser import extract

__all__ = [
    "PaymentEntry",
    "TransactionRecord",
    "extract",
    "is_valid_record",
]
