#!/usr/bin/env python3
"""
Core Data Models for paywatch

Canonical data structures shared by the extractor, the watcher and the
exporter, together with the record validation rules.
"""

from dataclasses import dataclass, field
from typing import Any

from .currency import format_yen, validate_sum_equals_total

POINT_CONTENT_SUFFIX = "楽天ポイント利用"
CASH_CONTENT_SUFFIX = "楽天キャッシュ利用"


@dataclass(frozen=True)
class RawMessage:
    """A single message as returned by the mail source. Never mutated."""

    id: str
    html: str | None
    reference_url: str = ""
    subject: str | None = None
    timestamp: int | None = None  # milliseconds since epoch


@dataclass
class TransactionRecord:
    """
    Canonical transaction extracted from a notification email.

    Amounts are whole yen. `template`, `message_id` and `reference_url` are
    diagnostic metadata and take no part in validation.
    """

    date: str = ""
    merchant: str = ""
    total_amount: int = 0
    points_used: int = 0
    cash_used: int = 0
    card_used: int = 0

    template: str | None = None
    message_id: str | None = None
    reference_url: str | None = None

    @property
    def funding_parts(self) -> list[int]:
        return [self.points_used, self.cash_used, self.card_used]

    def describe(self) -> str:
        """Short human-readable identity for log lines."""
        return f"{self.date} {self.merchant} {format_yen(self.total_amount)}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date,
            "merchant": self.merchant,
            "total_amount": self.total_amount,
            "points_used": self.points_used,
            "cash_used": self.cash_used,
            "card_used": self.card_used,
            "template": self.template,
            "message_id": self.message_id,
            "reference_url": self.reference_url,
        }


@dataclass(frozen=True)
class PaymentDefaults:
    """Fixed Money Forward ME codes applied to every derived entry."""

    large_category: str = "0"
    middle_category: str = "0"
    source: str = "0"


@dataclass(frozen=True)
class PaymentEntry:
    """One line item for the Money Forward ME manual entry form."""

    large_category: str
    middle_category: str
    date: str
    amount: int
    source: str
    content: str | None = None
    record: TransactionRecord | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "large_category": self.large_category,
            "middle_category": self.middle_category,
            "date": self.date,
            "amount": self.amount,
            "source": self.source,
            "content": self.content,
        }


def is_consistent_record(record: TransactionRecord) -> bool:
    """
    Check structural completeness and the conservation equation.

    A pure card payment is consistent but is not forwarded; see `is_valid_record`.
    """
    return bool(
        record.date
        and record.merchant
        and record.total_amount != 0
        and validate_sum_equals_total(record.funding_parts, record.total_amount)
    )


def validate_record(record: TransactionRecord) -> list[str]:
    """Validate a record and return the list of violated rules."""
    errors = []

    if not record.date:
        errors.append("date is empty")
    if not record.merchant:
        errors.append("merchant is empty")
    if record.total_amount == 0:
        errors.append("total amount is zero")
    if any(part < 0 for part in [record.total_amount, *record.funding_parts]):
        errors.append("amounts must be non-negative")
    if not validate_sum_equals_total(record.funding_parts, record.total_amount):
        errors.append(
            f"total {record.total_amount} != points {record.points_used} "
            f"+ cash {record.cash_used} + card {record.card_used}"
        )
    if record.points_used <= 0 and record.cash_used <= 0:
        errors.append("no point or cash usage")

    return errors


def is_valid_record(record: TransactionRecord) -> bool:
    """Whether a record is trustworthy enough to forward downstream."""
    return not validate_record(record)


def build_payment_entries(
    record: TransactionRecord, defaults: PaymentDefaults | None = None
) -> list[PaymentEntry]:
    """
    Derive the exportable entries for a record's point and cash portions.

    Each positive portion becomes its own entry; card usage is never exported.
    """
    defaults = defaults or PaymentDefaults()

    portions = [
        (record.points_used, POINT_CONTENT_SUFFIX),
        (record.cash_used, CASH_CONTENT_SUFFIX),
    ]

    return [
        PaymentEntry(
            large_category=defaults.large_category,
            middle_category=defaults.middle_category,
            date=record.date,
            amount=amount,
            source=defaults.source,
            content=f"{record.merchant} {suffix}",
            record=record,
        )
        for amount, suffix in portions
        if amount > 0
    ]
