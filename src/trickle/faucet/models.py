"""Faucet state and query result types.

``FaucetState`` is the single aggregate the controller owns; the store
persists it as JSON, so its parts are pydantic models.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field

# Length of one daily accounting window
EPOCH_SECONDS = 24 * 60 * 60


class FaucetConfig(BaseModel):
    """Payout and limit parameters, all amounts in base units."""

    tokens_per_request: int
    cooldown_seconds: int
    max_tokens_per_address: int
    daily_limit: int


class DailyEpoch(BaseModel):
    """Rolling daily distribution counter."""

    total_distributed_today: int = 0
    epoch_start: int

    def expired(self, now: int) -> bool:
        return now >= self.epoch_start + EPOCH_SECONDS


class UserAccount(BaseModel):
    """Per-address accounting. ``last_request_time`` is None until the first payout."""

    last_request_time: int | None = None
    total_received: int = 0
    is_blacklisted: bool = False


class FaucetState(BaseModel):
    """Everything the controller mutates."""

    owner: str
    paused: bool = False
    config: FaucetConfig
    epoch: DailyEpoch
    accounts: dict[str, UserAccount] = Field(default_factory=dict)

    def account(self, address: str) -> UserAccount:
        """Read-only lookup; unknown addresses get a default account."""
        return self.accounts.get(address) or UserAccount()

    def account_for_update(self, address: str) -> UserAccount:
        """Lookup that creates the account on first use."""
        return self.accounts.setdefault(address, UserAccount())


@dataclass(frozen=True)
class UserInfo:
    """Eligibility view of one address."""

    total_received: int
    last_request_time: int
    can_request: bool
    seconds_until_next_request: int


@dataclass(frozen=True)
class FaucetSnapshot:
    """Configuration plus live counters."""

    tokens_per_request: int
    cooldown_seconds: int
    max_tokens_per_address: int
    daily_limit: int
    total_distributed_today: int
    paused: bool
    epoch_start: int
    owner: str
