#!/usr/bin/env python3
"""
Export Retry Wrapper

Runs an export with a retry budget of exactly one. The external UI is rate
limited, so a failed export waits a fixed delay, tries once more and then
reports failure to the caller.

States:
    PENDING -> ATTEMPT_1 -> SUCCEEDED
                         -> ATTEMPT_2 -> SUCCEEDED
                                      -> FAILED
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.currency import format_yen
from ..core.models import PaymentEntry

logger = logging.getLogger(__name__)

Exporter = Callable[[PaymentEntry], Awaitable[Any]]


class ExportError(Exception):
    """Raised by an exporter when an entry could not be registered."""


class ExportState(Enum):
    """States of a single entry's export."""

    PENDING = "pending"
    ATTEMPT_1 = "attempt_1"
    ATTEMPT_2 = "attempt_2"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExportState.SUCCEEDED, ExportState.FAILED)


# (state, attempt succeeded) -> next state
_TRANSITIONS: dict[tuple[ExportState, bool], ExportState] = {
    (ExportState.ATTEMPT_1, True): ExportState.SUCCEEDED,
    (ExportState.ATTEMPT_1, False): ExportState.ATTEMPT_2,
    (ExportState.ATTEMPT_2, True): ExportState.SUCCEEDED,
    (ExportState.ATTEMPT_2, False): ExportState.FAILED,
}


def next_state(state: ExportState, succeeded: bool) -> ExportState:
    """Transition after an attempt in `state` finished."""
    return _TRANSITIONS[(state, succeeded)]


@dataclass
class ExportResult:
    """Final outcome of sending one entry."""

    entry: PaymentEntry
    state: ExportState
    attempts: int
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is ExportState.SUCCEEDED


class ExportRetryWrapper:
    """
    Wraps an async exporter with a single delayed retry.

    Args:
        exporter: Async callable registering one PaymentEntry; raises on failure
        retry_delay: Seconds to wait before the second attempt
        sleep: Awaitable sleep, replaceable in tests
    """

    def __init__(
        self,
        exporter: Exporter,
        retry_delay: float = 3 * 60,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.exporter = exporter
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def send(self, entry: PaymentEntry) -> ExportResult:
        """Export one entry, retrying once after `retry_delay` on failure."""
        state = ExportState.PENDING
        attempts = 0
        error: Exception | None = None
        logger.debug(f"Exporting '{entry.content}' ({state.value})")

        state = ExportState.ATTEMPT_1
        while not state.is_terminal:
            attempts += 1
            try:
                await self.exporter(entry)
            except Exception as e:
                error = e
                state = next_state(state, succeeded=False)
                if state is ExportState.ATTEMPT_2:
                    logger.warning(
                        f"Export of '{entry.content}' failed ({e}), retrying in {self.retry_delay:g}s"
                    )
                    await self._sleep(self.retry_delay)
            else:
                error = None
                state = next_state(state, succeeded=True)

        if state is ExportState.SUCCEEDED:
            logger.info(f"Export of '{entry.content}' ({entry.date} {format_yen(entry.amount)}) succeeded")
        return ExportResult(entry=entry, state=state, attempts=attempts, error=error)
