#!/usr/bin/env python3
"""
Mail Poller and Scheduler

The Poller runs one fetch+process cycle: ask the mail source for everything
between the cursor and the cycle start, extract and validate each message, advance the cursor and
hand the batch to the Dispatcher. The Scheduler drives the Poller at a fixed
interval on a single asyncio timeline, so cycles never overlap.

Cycle states:
    IDLE -> FETCHING -> IDLE

A transport failure aborts the cycle and leaves the cursor untouched, so the
next tick re-scans the same window.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from ..core.models import RawMessage, TransactionRecord, validate_record
from ..mail.client import MailSourceError
from ..mail.parser import RakutenPayParser
from .cursor import SourceCursor
from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class MailSource(Protocol):
    """Pull interface over the inbox."""

    def fetch(self, since: datetime | None = None, until: datetime | None = None) -> list[RawMessage]: ...


class PollerState(Enum):
    """Poller cycle states."""

    IDLE = "idle"
    FETCHING = "fetching"


@dataclass
class PollResult:
    """Outcome of one successful cycle."""

    batch: list[TransactionRecord] = field(default_factory=list)
    fetched: int = 0
    skipped: int = 0
    invalid: int = 0
    deferred: int = 0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Poller:
    """
    Incremental mail poller.

    Owns the SourceCursor. Extraction and validation are pure, so messages
    are processed in arrival order without affecting the resulting batch.
    """

    def __init__(
        self,
        source: MailSource,
        dispatcher: Dispatcher,
        parser: RakutenPayParser | None = None,
        cursor: SourceCursor | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.source = source
        self.dispatcher = dispatcher
        self.parser = parser or RakutenPayParser()
        self.cursor = cursor or SourceCursor()
        self.state = PollerState.IDLE
        self._clock = clock

    async def poll_once(self) -> PollResult | None:
        """
        Run one fetch+process cycle.

        Returns:
            PollResult on success; None if a cycle was already running or the
            mail source failed
        """
        if self.state is PollerState.FETCHING:
            logger.info("Previous cycle still running, skipping tick")
            return None

        self.state = PollerState.FETCHING
        try:
            return await self._run_cycle()
        finally:
            self.state = PollerState.IDLE

    async def _run_cycle(self) -> PollResult | None:
        started_at = self._clock()
        logger.info(f"Ping {started_at.astimezone().strftime('%Y-%m-%d %H:%M:%S %Z')}")

        since = self.cursor.value
        try:
            messages = await asyncio.to_thread(self.source.fetch, since, started_at)
        except MailSourceError as e:
            logger.error(f"Ping failed, cursor stays at {since.isoformat() if since else 'beginning'}: {e}")
            return None

        window_end = int(started_at.timestamp() * 1000)
        result = PollResult(fetched=len(messages))
        for message in messages:
            # Belongs to the next cycle's window
            if message.timestamp is not None and message.timestamp >= window_end:
                result.deferred += 1
                continue

            record = self.process_message(message)
            if record is None:
                result.skipped += 1
            elif record.template is None:
                result.invalid += 1
            else:
                errors = validate_record(record)
                if errors:
                    result.invalid += 1
                    logger.warning(f"Dropping {record.describe()} ({message.reference_url}): {'; '.join(errors)}")
                else:
                    result.batch.append(record)

        self.cursor.advance(started_at)
        logger.info(
            f"Fetched {result.fetched} emails: {len(result.batch)} valid, "
            f"{result.invalid} invalid, {result.skipped} without body, {result.deferred} deferred"
        )

        await self.dispatcher.publish(result.batch)
        return result

    def process_message(self, message: RawMessage) -> TransactionRecord | None:
        """Extract a record from one message. Messages without a body yield None."""
        if not message.html:
            logger.debug(f"Skipping message {message.id} without body")
            return None
        return self.parser.parse_html_content(message.html, message.id, message.reference_url)


class Scheduler:
    """
    Drives a Poller at a fixed interval.

    The first cycle starts immediately. The interval is measured from the
    start of a cycle; a cycle slower than the interval delays the next one
    instead of overlapping it. Stopping never interrupts a running cycle.
    """

    def __init__(
        self,
        poller: Poller,
        interval: float = 5 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self.poller = poller
        self.interval = interval
        self.cycles = 0
        self._clock = clock
        self._stopping = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self, max_cycles: int | None = None) -> None:
        """Run cycles until stopped or until `max_cycles` cycles have completed."""
        logger.info(f"Watching mail every {self.interval:g}s")
        completed = 0

        while not self._stopping.is_set():
            started = self._clock()
            try:
                await self.poller.poll_once()
            except Exception as e:
                logger.error(f"Poll cycle crashed: {e}", exc_info=True)
            self.cycles += 1
            completed += 1

            if max_cycles is not None and completed >= max_cycles:
                break

            delay = max(0.0, self.interval - (self._clock() - started))
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info(f"Scheduler stopped after {self.cycles} cycles")

    def start(self) -> asyncio.Task:
        """Start the scheduler as a background task on the running loop."""
        if self.running:
            raise RuntimeError("Scheduler already running")
        self._stopping.clear()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Request a stop and wait for the in-flight cycle to finish."""
        self._stopping.set()
        if self._task is not None:
            await self._task
            self._task = None
