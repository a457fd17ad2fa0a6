"""Faucet components for trickle."""

from .controller import DistributionController, build_config
from .errors import ErrorKind, FaucetError
from .events import EventLog, FaucetEvent
from .models import EPOCH_SECONDS, FaucetSnapshot, FaucetState, UserInfo
from .service import FaucetResult, FaucetService, FaucetStatus
from .store import MemoryStateStore, RedisStateStore, StateStore, create_state_store

__all__ = [
    "DistributionController",
    "EPOCH_SECONDS",
    "ErrorKind",
    "EventLog",
    "FaucetError",
    "FaucetEvent",
    "FaucetResult",
    "FaucetService",
    "FaucetSnapshot",
    "FaucetState",
    "FaucetStatus",
    "MemoryStateStore",
    "RedisStateStore",
    "StateStore",
    "UserInfo",
    "build_config",
    "create_state_store",
]
