"""Pytest configuration and fixtures for trickle tests."""

import os

import pytest

from trickle.core.clock import ManualClock
from trickle.faucet.controller import DistributionController
from trickle.faucet.events import EventLog
from trickle.faucet.store import MemoryStateStore
from trickle.ledger.memory import MemoryToken

# Digit-only addresses are their own checksum form
OWNER = "0x1111111111111111111111111111111111111111"
FAUCET = "0x2222222222222222222222222222222222222222"
ALICE = "0x3333333333333333333333333333333333333333"
BOB = "0x4444444444444444444444444444444444444444"
CAROL = "0x5555555555555555555555555555555555555555"
ZERO = "0x0000000000000000000000000000000000000000"

TOKENS_PER_REQUEST = 10
COOLDOWN = 3600
MAX_PER_ADDRESS = 100
DAILY_LIMIT = 1000
FAUCET_SUPPLY = 5000


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear trickle-related environment variables before each test."""
    env_prefixes = ("TRICKLE_", "REDIS_")
    for key in list(os.environ.keys()):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock():
    """Synthetic clock starting at t=0."""
    return ManualClock(0)


@pytest.fixture
def token():
    """In-memory token with the faucet funded from the owner."""
    token = MemoryToken(
        name="Test Token",
        symbol="TEST",
        initial_supply=10_000,
        cap=100_000,
        owner=OWNER,
        decimals=0,
    )
    token.transfer(OWNER, FAUCET, FAUCET_SUPPLY)
    return token


@pytest.fixture
def ledger(token):
    """Ledger handle acting as the faucet's custody account."""
    return token.connect(FAUCET)


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def controller(ledger, clock, events):
    """Controller with the reference configuration."""
    return DistributionController(
        ledger,
        tokens_per_request=TOKENS_PER_REQUEST,
        cooldown_seconds=COOLDOWN,
        max_tokens_per_address=MAX_PER_ADDRESS,
        daily_limit=DAILY_LIMIT,
        owner=OWNER,
        clock=clock,
        store=MemoryStateStore(),
        events=events,
    )
