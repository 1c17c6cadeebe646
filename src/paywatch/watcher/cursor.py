#!/usr/bin/env python3
"""
Source Cursor

Watermark of the last point in time up to which the mail source has been
scanned successfully. Owned by the Poller; only advances after a cycle that
saw no transport failure.
"""

import logging
from datetime import datetime

logger = logging.getLogger(__name__)


class SourceCursor:
    """Single-timestamp watermark. `None` means the beginning of time."""

    def __init__(self, value: datetime | None = None):
        self._value = value

    @property
    def value(self) -> datetime | None:
        return self._value

    def advance(self, to: datetime) -> None:
        """Move the watermark forward. Never moves backwards."""
        if self._value is not None and to < self._value:
            logger.warning(f"Ignoring cursor move backwards: {self._value.isoformat()} -> {to.isoformat()}")
            return
        self._value = to

    def __repr__(self) -> str:
        return f"SourceCursor({self._value.isoformat() if self._value else None})"
