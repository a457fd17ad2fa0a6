"""Clock abstraction.

The controller never reads the wall clock directly; it asks an injected
``Clock`` once per operation. ``ManualClock`` gives tests (and dry runs)
synthetic time.
"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of the current time in whole UNIX seconds."""

    @abstractmethod
    def now(self) -> int:
        ...


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """Clock that only moves when told to.

    Parameters
    ----------
    start : int
        Initial timestamp.
    """

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        """Jump to an absolute timestamp."""
        if timestamp < self._now:
            raise ValueError("Clock cannot move backwards")
        self._now = timestamp
