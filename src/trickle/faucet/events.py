"""Records emitted by the distribution controller.

One record per completed operation (one per recipient for batches), in
the order the operations committed. Failed operations emit nothing.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaucetEvent:
    """Base class for controller records."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"event": self.name, **asdict(self)}


@dataclass(frozen=True)
class TokensRequested(FaucetEvent):
    user: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class TokensDeposited(FaucetEvent):
    depositor: str
    amount: int


@dataclass(frozen=True)
class TokensWithdrawn(FaucetEvent):
    recipient: str
    amount: int


@dataclass(frozen=True)
class FaucetConfigured(FaucetEvent):
    tokens_per_request: int
    cooldown: int
    max_per_address: int
    daily_limit: int


@dataclass(frozen=True)
class UserBlacklisted(FaucetEvent):
    user: str
    flag: bool


@dataclass(frozen=True)
class DailyLimitReset(FaucetEvent):
    timestamp: int
    previous_total: int


@dataclass(frozen=True)
class EmergencyWithdraw(FaucetEvent):
    asset: str
    amount: int


@dataclass(frozen=True)
class FaucetPaused(FaucetEvent):
    account: str


@dataclass(frozen=True)
class FaucetUnpaused(FaucetEvent):
    account: str


@dataclass(frozen=True)
class OwnershipTransferred(FaucetEvent):
    previous_owner: str
    new_owner: str


E = TypeVar("E", bound=FaucetEvent)

Subscriber = Callable[[FaucetEvent], None]


class EventLog:
    """Ordered record of the most recent committed controller events.

    Only the last ``history`` records are kept; subscribers see every one.
    Subscribers are called synchronously for every published record. A
    failing subscriber is logged and does not affect the others or the
    operation that produced the record.
    """

    def __init__(self, history: int = 1024):
        if history <= 0:
            raise ValueError("history must be positive")
        self._events: deque[FaucetEvent] = deque(maxlen=history)
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, events: Iterable[FaucetEvent]) -> None:
        events = list(events)
        with self._lock:
            self._events.extend(events)
        for event in events:
            for subscriber in self._subscribers:
                try:
                    subscriber(event)
                except Exception:
                    logger.exception("Event subscriber failed", extra={"event": event.name})

    def filter(self, event_type: type[E]) -> list[E]:
        """All recorded events of one type, oldest first."""
        with self._lock:
            return [e for e in self._events if isinstance(e, event_type)]

    def __iter__(self):
        with self._lock:
            return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)
