#!/usr/bin/env python3
"""
Batch Dispatcher

Fans a validated batch out to every registered subscriber in registration
order. A failing subscriber is logged and does not stop the others.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..core.models import TransactionRecord

logger = logging.getLogger(__name__)

Subscriber = Callable[[list[TransactionRecord]], Awaitable[Any] | Any]


class Dispatcher:
    """Ordered list of subscribers notified with each batch."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber. Unknown subscribers are ignored."""
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def clear(self) -> None:
        self._subscribers.clear()

    @property
    def subscribers(self) -> list[Subscriber]:
        return list(self._subscribers)

    async def publish(self, batch: list[TransactionRecord]) -> int:
        """
        Invoke every subscriber with the full batch.

        The subscriber list is snapshotted first, so subscribe/unsubscribe
        calls made while dispatching only affect later publishes.

        Args:
            batch: Validated records from one poll cycle

        Returns:
            Number of subscribers that completed without raising
        """
        snapshot = list(self._subscribers)
        completed = 0

        for subscriber in snapshot:
            name = getattr(subscriber, "__name__", type(subscriber).__name__)
            try:
                result = subscriber(batch)
                if inspect.isawaitable(result):
                    await result
                completed += 1
            except Exception as e:
                logger.error(f"Subscriber {name} failed on batch of {len(batch)}: {e}", exc_info=True)

        return completed
