"""Prometheus metrics for the trickle faucet.

Metrics:
- trickle_requests_total: Counter of faucet requests by outcome
- trickle_tokens_distributed_total: Counter of base units paid out through
  the rate-limited request path
- trickle_events_total: Counter of committed controller records
- trickle_faucet_balance: Gauge of the custody balance
- trickle_distributed_today: Gauge of the current epoch's total
- trickle_faucet_paused: Gauge, 1 while the faucet is paused
- trickle_request_duration_seconds: Histogram of request duration
- trickle_transaction_duration_seconds: Histogram of ledger transaction duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
REQUESTS = Counter(
    "trickle_requests_total",
    "Total number of faucet requests",
    ["status"],
)

TOKENS_DISTRIBUTED = Counter(
    "trickle_tokens_distributed_total",
    "Total base units paid out to requesters",
)

EVENTS = Counter(
    "trickle_events_total",
    "Committed controller records",
    ["event"],
)

# Gauges
FAUCET_BALANCE = Gauge(
    "trickle_faucet_balance",
    "Current custody balance in base units",
)

DISTRIBUTED_TODAY = Gauge(
    "trickle_distributed_today",
    "Base units distributed in the current epoch",
)

FAUCET_PAUSED = Gauge(
    "trickle_faucet_paused",
    "1 while the faucet is paused",
)

# Histograms
REQUEST_DURATION = Histogram(
    "trickle_request_duration_seconds",
    "Request processing duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TRANSACTION_DURATION = Histogram(
    "trickle_transaction_duration_seconds",
    "Ledger transaction duration",
    ["operation"],
    buckets=(1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)


def record_event(event) -> None:
    """Event log subscriber keeping the counters in step with the controller."""
    EVENTS.labels(event=event.name).inc()
    if event.name == "FaucetPaused":
        FAUCET_PAUSED.set(1)
    elif event.name == "FaucetUnpaused":
        FAUCET_PAUSED.set(0)
