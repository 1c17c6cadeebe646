#!/usr/bin/env python3
"""
Export Subscriber

Dispatcher subscriber that turns each record of a batch into Payment Entries
and sends all of them concurrently through the retry wrapper. One entry's
failure never cancels another's export.
"""

import asyncio
import logging

from ..core.currency import format_yen
from ..core.models import PaymentDefaults, TransactionRecord, build_payment_entries
from .retry import ExportResult, ExportRetryWrapper

logger = logging.getLogger(__name__)


class ExportSubscriber:
    """Exports the point and cash portions of every record in a batch."""

    def __init__(self, wrapper: ExportRetryWrapper, defaults: PaymentDefaults | None = None):
        self.wrapper = wrapper
        self.defaults = defaults or PaymentDefaults()

    async def __call__(self, batch: list[TransactionRecord]) -> list[ExportResult]:
        entries = [entry for record in batch for entry in build_payment_entries(record, self.defaults)]
        if not entries:
            return []

        logger.info(f"Exporting {len(entries)} payment entries from {len(batch)} transactions")
        results = await asyncio.gather(*(self.wrapper.send(entry) for entry in entries))

        for result in results:
            if not result.succeeded:
                record = result.entry.record
                logger.error(
                    f"Export to Money Forward ME failed after {result.attempts} attempts: "
                    f"'{result.entry.content}' {result.entry.date} {format_yen(result.entry.amount)} "
                    f"(message {record.message_id if record else '-'}, "
                    f"{record.reference_url if record else '-'}): {result.error}"
                )

        return list(results)


def log_batch(batch: list[TransactionRecord]) -> None:
    """Subscriber that only logs the batch; used for dry runs."""
    for record in batch:
        logger.info(
            f"New transaction: {record.describe()} "
            f"(points {format_yen(record.points_used)}, cash {format_yen(record.cash_used)}, "
            f"card {format_yen(record.card_used)})"
        )
