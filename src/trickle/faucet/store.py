"""State stores for the distribution controller.

A store owns the ``FaucetState`` aggregate and serialises access to it:

- ``transaction()`` acquires the store's exclusive lock, yields a private
  working copy, and commits it only if the block exits normally. An
  exception discards every change made inside the block.
- ``snapshot()`` returns a consistent copy for read-only queries.

``MemoryStateStore`` serialises threads of one process. ``RedisStateStore``
serialises every process sharing the Redis instance (service and CLI).
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from redis import Redis
from redis.exceptions import LockError

from .errors import StateStoreBusy
from .models import FaucetState

logger = logging.getLogger(__name__)


class StateNotInitialized(RuntimeError):
    """The store has no faucet state yet."""


class StateStoreUnavailable(RuntimeError):
    """The persistent store is configured but cannot be reached."""


class StateStore(ABC):
    """Exclusive-access container for the faucet aggregate."""

    @abstractmethod
    def initialize(self, state: FaucetState) -> FaucetState:
        """Store ``state`` unless a state already exists.

        Returns
        -------
        FaucetState
            The state now held by the store (the existing one if any).
        """
        ...

    @abstractmethod
    def transaction(self) -> Iterator[FaucetState]:
        """Context manager yielding a working copy committed on success."""
        ...

    @abstractmethod
    def snapshot(self) -> FaucetState:
        """Consistent copy of the current state."""
        ...

    def extend_lock(self) -> None:
        """Push back expiry of the lock held by the current transaction.

        Called before each ledger call; a no-op where locks do not expire.
        """

    def ping(self) -> bool:
        """Check that the backing storage is reachable."""
        return True


class MemoryStateStore(StateStore):
    """Process-local store guarded by a single lock."""

    def __init__(self):
        self._state: FaucetState | None = None
        self._lock = threading.Lock()

    def initialize(self, state: FaucetState) -> FaucetState:
        with self._lock:
            if self._state is None:
                self._state = state.model_copy(deep=True)
            return self._state.model_copy(deep=True)

    @contextmanager
    def transaction(self) -> Iterator[FaucetState]:
        with self._lock:
            working = self._require().model_copy(deep=True)
            yield working
            self._state = working

    def snapshot(self) -> FaucetState:
        with self._lock:
            return self._require().model_copy(deep=True)

    def _require(self) -> FaucetState:
        if self._state is None:
            raise StateNotInitialized("Faucet state has not been initialized")
        return self._state


class RedisStateStore(StateStore):
    """Store keeping the aggregate as one JSON document in Redis.

    Parameters
    ----------
    redis : Redis
        Client created with ``decode_responses=True``.
    prefix : str
        Key prefix; the state lives at ``<prefix>:state``.
    lock_timeout : float
        Seconds after which a crashed holder's lock expires. The holder
        pushes the expiry back before each ledger call, so this must exceed
        the longest single ledger transaction (receipt wait included).
    blocking_timeout : float
        Seconds to wait for the lock before giving up.
    """

    def __init__(
        self,
        redis: Redis,
        prefix: str = "trickle",
        lock_timeout: float = 180.0,
        blocking_timeout: float = 30.0,
    ):
        self._redis = redis
        self._state_key = f"{prefix}:state"
        self._lock_key = f"{prefix}:lock"
        self._lock_timeout = lock_timeout
        self._blocking_timeout = blocking_timeout
        self._held = threading.local()

    @contextmanager
    def _locked(self):
        lock = self._redis.lock(
            self._lock_key,
            timeout=self._lock_timeout,
            blocking_timeout=self._blocking_timeout,
        )
        if not lock.acquire():
            raise StateStoreBusy("faucet state is locked by another operation")
        self._held.lock = lock
        try:
            yield lock
        finally:
            self._held.lock = None
            if lock.owned():
                lock.release()
            else:
                logger.error("Faucet state lock expired while held", extra={"key": self._lock_key})

    def initialize(self, state: FaucetState) -> FaucetState:
        with self._locked():
            raw = self._redis.get(self._state_key)
            if raw:
                logger.info("Resuming persisted faucet state", extra={"key": self._state_key})
                return FaucetState.model_validate_json(raw)
            self._redis.set(self._state_key, state.model_dump_json())
            return state.model_copy(deep=True)

    @contextmanager
    def transaction(self) -> Iterator[FaucetState]:
        with self._locked() as lock:
            working = self._load()
            yield working
            if not lock.owned():
                raise StateStoreBusy("faucet state lock expired before commit")
            self._redis.set(self._state_key, working.model_dump_json())

    def extend_lock(self) -> None:
        lock = getattr(self._held, "lock", None)
        if lock is None:
            return
        try:
            lock.extend(self._lock_timeout, replace_ttl=True)
        except LockError as e:
            raise StateStoreBusy(f"faucet state lock lost: {e}") from None

    def snapshot(self) -> FaucetState:
        # A single GET of the whole document is already consistent
        return self._load()

    def ping(self) -> bool:
        return bool(self._redis.ping())

    def _load(self) -> FaucetState:
        raw = self._redis.get(self._state_key)
        if not raw:
            raise StateNotInitialized(f"No faucet state at {self._state_key}")
        return FaucetState.model_validate_json(raw)


def create_state_store(
    redis_url: str | None, prefix: str = "trickle", required: bool = False
) -> StateStore:
    """Build a Redis store, or a memory store when no URL is given.

    Parameters
    ----------
    redis_url : str | None
        Redis connection URL. If None, uses in-memory storage.
    prefix : str
        Redis key prefix.
    required : bool
        Fail instead of falling back to memory when Redis is unreachable.

    Raises
    ------
    StateStoreUnavailable
        If ``required`` and Redis cannot be reached.
    """
    if not redis_url:
        return MemoryStateStore()
    try:
        client = Redis.from_url(redis_url, decode_responses=True)
        client.ping()
    except Exception as e:
        if required:
            raise StateStoreUnavailable(f"Redis at {redis_url} is unreachable: {e}") from e
        logger.warning(
            "Redis connection failed, using in-memory faucet state",
            extra={"error": str(e)},
        )
        return MemoryStateStore()
    logger.info("Redis connected for faucet state", extra={"url": redis_url})
    return RedisStateStore(client, prefix=prefix)
