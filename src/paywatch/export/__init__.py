"""
Export Package

Delivers validated transactions to Money Forward ME.

Key Components:
- retry: two-attempt export state machine with a fixed delay
- subscriber: batch subscriber that exports each entry concurrently
- moneyforward: Playwright-driven manual-entry exporter
"""

from .moneyforward import MoneyForwardExporter, find_verification_code
from .retry import (
    ExportError,
    Exporter,
    ExportResult,
    ExportRetryWrapper,
    ExportState,
    next_state,
)
from .subscriber import ExportSubscriber, log_batch

__all__ = [
    "ExportError",
    "ExportResult",
    "ExportRetryWrapper",
    "ExportState",
    "ExportSubscriber",
    "Exporter",
    "MoneyForwardExporter",
    "find_verification_code",
    "log_batch",
    "next_state",
]
