"""Observability module for the trickle faucet."""

from .health import CheckResult, HealthCheck, HealthServer, HealthStatus
from .logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)
from .metrics import (
    DISTRIBUTED_TODAY,
    EVENTS,
    FAUCET_BALANCE,
    FAUCET_PAUSED,
    REQUEST_DURATION,
    REQUESTS,
    TOKENS_DISTRIBUTED,
    TRANSACTION_DURATION,
    record_event,
)

__all__ = [
    # Health
    "CheckResult",
    "HealthCheck",
    "HealthServer",
    "HealthStatus",
    # Logging
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "set_request_context",
    # Metrics
    "DISTRIBUTED_TODAY",
    "EVENTS",
    "FAUCET_BALANCE",
    "FAUCET_PAUSED",
    "REQUEST_DURATION",
    "REQUESTS",
    "TOKENS_DISTRIBUTED",
    "TRANSACTION_DURATION",
    "record_event",
]
