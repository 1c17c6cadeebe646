"""
Watcher Package

Incremental polling of the mail source and fan-out of validated batches.

Key Components:
- cursor: watermark that only advances after a clean cycle
- poller: one fetch+process cycle, and the Scheduler that repeats it
- dispatcher: ordered subscriber list with per-subscriber failure isolation
"""

from .cursor import SourceCursor
from .dispatcher import Dispatcher, Subscriber
from .poller import MailSource, Poller, PollerState, PollResult, Scheduler

__all__ = [
    "Dispatcher",
    "MailSource",
    "PollResult",
    "Poller",
    "PollerState",
    "Scheduler",
    "SourceCursor",
    "Subscriber",
]
