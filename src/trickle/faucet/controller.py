"""Distribution Controller.

Pays a fixed amount of one token to callers, subject to:
- a per-address cooldown between successful requests
- a per-address lifetime cap
- a global cap per rolling 24 hour epoch

and exposes the administrator's controls: reconfiguration, pause,
blacklist, batch distribution and custody of the faucet's funds.

Every public operation reads the clock once and runs as a single
transaction on the state store: the checks, the counter updates and the
ledger transfer either all take effect or none do. A transfer that was
broadcast but not confirmed is the exception: it counts as sent, the
operation commits and ``LedgerTransferPending`` is raised afterwards.
Records are published only after the transaction commits.
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from functools import partial

from pydantic import ValidationError

from trickle.core.addresses import checksum_address, is_zero_address
from trickle.core.clock import Clock, SystemClock
from trickle.ledger.base import TokenLedger, TransferUnconfirmed

from .errors import (
    Blacklisted,
    CallerNotOriginator,
    CooldownActive,
    DailyCapExceeded,
    EmptyInput,
    FaucetError,
    InsufficientFaucetBalance,
    InvalidAddress,
    InvalidAmount,
    InvalidConfig,
    InvalidRecipient,
    LedgerTransferFailed,
    LedgerTransferPending,
    LengthMismatch,
    NotPaused,
    Paused,
    PerAddressCapExceeded,
    Unauthorized,
)
from .events import (
    DailyLimitReset,
    EmergencyWithdraw,
    EventLog,
    FaucetConfigured,
    FaucetEvent,
    FaucetPaused,
    FaucetUnpaused,
    OwnershipTransferred,
    TokensDeposited,
    TokensRequested,
    TokensWithdrawn,
    UserBlacklisted,
)
from .models import (
    DailyEpoch,
    FaucetConfig,
    FaucetSnapshot,
    FaucetState,
    UserAccount,
    UserInfo,
)
from .store import MemoryStateStore, StateStore

logger = logging.getLogger(__name__)


def build_config(
    tokens_per_request: int,
    cooldown_seconds: int,
    max_tokens_per_address: int,
    daily_limit: int,
) -> FaucetConfig:
    """Build and validate a faucet configuration.

    Raises
    ------
    InvalidConfig
        If any limit is inconsistent.
    """
    try:
        config = FaucetConfig(
            tokens_per_request=tokens_per_request,
            cooldown_seconds=cooldown_seconds,
            max_tokens_per_address=max_tokens_per_address,
            daily_limit=daily_limit,
        )
    except ValidationError as e:
        raise InvalidConfig(f"Invalid faucet configuration: {e}") from None

    if config.tokens_per_request <= 0:
        raise InvalidConfig("tokens per request must be > 0")
    if config.cooldown_seconds < 0:
        raise InvalidConfig("cooldown must be >= 0")
    if config.max_tokens_per_address < config.tokens_per_request:
        raise InvalidConfig("max tokens must be >= tokens per request")
    if config.daily_limit < config.tokens_per_request:
        raise InvalidConfig("daily limit must be >= tokens per request")
    return config


def _address(address: str | None, error: type[FaucetError] = InvalidAddress) -> str:
    try:
        return checksum_address(address)
    except ValueError as e:
        raise error(str(e)) from None


def _require_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(f"amount must be a positive integer, got {amount!r}")


def _cooldown_remaining(account: UserAccount, config: FaucetConfig, now: int) -> int:
    if account.last_request_time is None:
        return 0
    return max(0, account.last_request_time + config.cooldown_seconds - now)


class DistributionController:
    """Rate-limited token distribution with administrative controls.

    Parameters
    ----------
    ledger : TokenLedger
        Ledger handle bound to the faucet's custody account.
    tokens_per_request : int
        Payout per successful request, in base units.
    cooldown_seconds : int
        Minimum delay between two payouts to the same address.
    max_tokens_per_address : int
        Lifetime cap per address via ``request_tokens``.
    daily_limit : int
        Cap on ``request_tokens`` payouts per 24 hour epoch.
    owner : str
        Administrator address, normally the account constructing the
        faucet. Must differ from the custody account, which pays it.
    clock : Clock | None
        Time source; defaults to the wall clock.
    store : StateStore | None
        State store; defaults to a fresh in-memory store. A store that
        already holds state is resumed as-is.
    events : EventLog | None
        Where committed records are published.

    Raises
    ------
    InvalidConfig
        If the ledger or owner is missing, the owner is the custody
        account, or the limits are inconsistent.
    """

    def __init__(
        self,
        ledger: TokenLedger,
        tokens_per_request: int,
        cooldown_seconds: int,
        max_tokens_per_address: int,
        daily_limit: int,
        owner: str,
        clock: Clock | None = None,
        store: StateStore | None = None,
        events: EventLog | None = None,
    ):
        if ledger is None:
            raise InvalidConfig("ledger is required")
        config = build_config(
            tokens_per_request, cooldown_seconds, max_tokens_per_address, daily_limit
        )

        self._ledger = ledger
        self._clock = clock or SystemClock()
        self._store = store or MemoryStateStore()
        self.events = events if events is not None else EventLog()

        owner = _address(owner, InvalidConfig)
        if owner == _address(ledger.holder, InvalidConfig):
            raise InvalidConfig(f"administrator {owner} must not be the custody account")

        initial = FaucetState(
            owner=owner,
            config=config,
            epoch=DailyEpoch(epoch_start=self._clock.now()),
        )
        state = self._store.initialize(initial)
        logger.info(
            "Distribution controller ready",
            extra={
                "token": ledger.address,
                "custody": ledger.holder,
                "owner": state.owner,
                "tokens_per_request": state.config.tokens_per_request,
                "cooldown_seconds": state.config.cooldown_seconds,
                "max_tokens_per_address": state.config.max_tokens_per_address,
                "daily_limit": state.config.daily_limit,
            },
        )

    @property
    def ledger(self) -> TokenLedger:
        return self._ledger

    @property
    def token(self) -> str:
        """Address of the distributed token."""
        return self._ledger.address

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def owner(self) -> str:
        return self._store.snapshot().owner

    @property
    def paused(self) -> bool:
        return self._store.snapshot().paused

    @contextmanager
    def _operation(self) -> Iterator[tuple[FaucetState, list[FaucetEvent]]]:
        """Run one atomic operation; publish its records after commit."""
        pending: list[FaucetEvent] = []
        with self._store.transaction() as state:
            yield state, pending
        self.events.publish(pending)

    def _require_owner(self, state: FaucetState, caller: str) -> None:
        if caller != state.owner:
            raise Unauthorized(f"{caller} is not the faucet administrator")

    def _send(self, transfer: Callable[[], bool], failure: str) -> str | None:
        """Run one ledger transfer inside the current transaction.

        Returns None once the transfer is confirmed, or the transaction hash
        when it was broadcast without a final outcome. The caller keeps its
        state changes in both cases. A transfer that certainly did not happen
        raises ``LedgerTransferFailed`` and rolls the operation back.
        """
        self._store.extend_lock()
        try:
            sent = transfer()
        except TransferUnconfirmed as e:
            return e.tx_hash
        if not sent:
            raise LedgerTransferFailed(failure)
        return None

    def _pending(self, tx_hash: str, description: str) -> LedgerTransferPending:
        logger.warning(
            "Ledger transfer unconfirmed, committed as sent",
            extra={"tx_hash": tx_hash, "operation": description},
        )
        return LedgerTransferPending(f"{description} is pending in {tx_hash}", tx_hash)

    def _custody_balance(self, ledger: TokenLedger | None = None) -> int:
        ledger = ledger or self._ledger
        return ledger.balance_of(ledger.holder)

    def _reset_epoch(self, state: FaucetState, now: int) -> DailyLimitReset:
        previous = state.epoch.total_distributed_today
        state.epoch = DailyEpoch(total_distributed_today=0, epoch_start=now)
        logger.info("Daily limit reset", extra={"timestamp": now, "previous_total": previous})
        return DailyLimitReset(timestamp=now, previous_total=previous)

    # Rate-limited path

    def request_tokens(self, caller: str, origin: str | None = None) -> TokensRequested:
        """Pay ``tokens_per_request`` to ``caller`` if every limit allows it.

        Parameters
        ----------
        caller : str
            Address asking for tokens; the payout goes here.
        origin : str | None
            Account that initiated the call when it arrives through a relay.
            Must equal ``caller`` when given.

        Returns
        -------
        TokensRequested
            The distribution record.

        Raises
        ------
        Paused, CallerNotOriginator, Blacklisted, CooldownActive,
        PerAddressCapExceeded, DailyCapExceeded, InsufficientFaucetBalance,
        LedgerTransferFailed
            Checked in this order; the first unmet condition aborts.
        LedgerTransferPending
            The transfer was broadcast but not confirmed. The request is
            committed and counts against every limit.
        """
        now = self._clock.now()
        caller = _address(caller)
        if origin is not None:
            origin = _address(origin)

        with self._operation() as (state, pending):
            config = state.config
            amount = config.tokens_per_request

            if state.paused:
                raise Paused("faucet is paused")
            if origin is not None and origin != caller:
                raise CallerNotOriginator(f"{caller} is not the originator of this call")

            account = state.account_for_update(caller)
            if account.is_blacklisted:
                raise Blacklisted(f"{caller} is blacklisted")
            remaining = _cooldown_remaining(account, config, now)
            if remaining > 0:
                raise CooldownActive(remaining)
            if account.total_received + amount > config.max_tokens_per_address:
                raise PerAddressCapExceeded("max tokens per address exceeded")

            if state.epoch.expired(now):
                pending.append(self._reset_epoch(state, now))
            if state.epoch.total_distributed_today + amount > config.daily_limit:
                raise DailyCapExceeded("daily limit exceeded")
            if self._custody_balance() < amount:
                raise InsufficientFaucetBalance("insufficient faucet balance")

            account.last_request_time = now
            account.total_received += amount
            state.epoch.total_distributed_today += amount

            tx_hash = self._send(
                partial(self._ledger.transfer, caller, amount),
                f"transfer of {amount} to {caller} failed",
            )

            record = TokensRequested(user=caller, amount=amount, timestamp=now)
            pending.append(record)

        if tx_hash is not None:
            raise self._pending(tx_hash, f"transfer of {amount} to {caller}")
        logger.info(
            "Tokens requested",
            extra={"user": caller, "amount": amount, "timestamp": now},
        )
        return record

    # Administrator paths

    def batch_distribute(
        self,
        caller: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
    ) -> list[TokensRequested]:
        """Send arbitrary amounts to several addresses (administrator only).

        Bypasses pause, blacklist, cooldown and every cap, and leaves user
        accounts and the daily total untouched. Stops at the first
        unconfirmed transfer and commits the records made so far.
        """
        now = self._clock.now()
        caller = _address(caller)
        recipients = list(recipients)
        amounts = list(amounts)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            if len(recipients) != len(amounts):
                raise LengthMismatch("recipients and amounts length mismatch")
            if not recipients:
                raise EmptyInput("no recipients given")

            targets = [_address(r, InvalidRecipient) for r in recipients]
            for target in targets:
                if is_zero_address(target):
                    raise InvalidRecipient("cannot distribute to the zero address")
            for amount in amounts:
                _require_amount(amount)

            total = sum(amounts)
            if self._custody_balance() < total:
                raise InsufficientFaucetBalance("insufficient faucet balance")

            tx_hash = None
            for index, (target, amount) in enumerate(zip(targets, amounts)):
                try:
                    tx_hash = self._send(
                        partial(self._ledger.transfer, target, amount),
                        f"transfer of {amount} to {target} failed",
                    )
                except LedgerTransferFailed:
                    if index:
                        logger.error(
                            "Batch distribution interrupted after partial payout",
                            extra={"completed": index, "total": len(targets)},
                        )
                    raise
                pending.append(TokensRequested(user=target, amount=amount, timestamp=now))
                # Later transfers could reuse the unconfirmed one's funds
                if tx_hash is not None:
                    break

        if tx_hash is not None:
            raise self._pending(
                tx_hash, f"batch transfer {len(pending)} of {len(targets)}"
            )
        logger.info(
            "Batch distributed",
            extra={"recipients": len(targets), "total": total},
        )
        return pending

    def deposit_tokens(self, caller: str, amount: int) -> TokensDeposited:
        """Pull pre-approved tokens from ``caller`` into the faucet."""
        caller = _address(caller)
        _require_amount(amount)
        holder = self._ledger.holder
        if caller == _address(holder):
            raise InvalidAddress("the custody account cannot deposit into itself")

        with self._operation() as (_state, pending):
            tx_hash = self._send(
                partial(self._ledger.transfer_from, caller, holder, amount),
                f"deposit of {amount} from {caller} failed",
            )
            record = TokensDeposited(depositor=caller, amount=amount)
            pending.append(record)

        if tx_hash is not None:
            raise self._pending(tx_hash, f"deposit of {amount} from {caller}")
        logger.info("Tokens deposited", extra={"depositor": caller, "amount": amount})
        return record

    def withdraw_tokens(self, caller: str, amount: int) -> TokensWithdrawn:
        """Move faucet funds out of custody to the administrator."""
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            _require_amount(amount)
            if self._custody_balance() < amount:
                raise InsufficientFaucetBalance("insufficient faucet balance")
            tx_hash = self._send(
                partial(self._ledger.transfer, state.owner, amount),
                f"withdrawal of {amount} failed",
            )
            record = TokensWithdrawn(recipient=state.owner, amount=amount)
            pending.append(record)

        if tx_hash is not None:
            raise self._pending(tx_hash, f"withdrawal of {amount}")
        logger.info("Tokens withdrawn", extra={"recipient": record.recipient, "amount": amount})
        return record

    def emergency_withdraw(
        self, caller: str, ledger: TokenLedger, amount: int
    ) -> EmergencyWithdraw:
        """Recover any token held by the custody account to the administrator.

        ``ledger`` may be any token, not just the one being distributed.
        """
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            if ledger is None:
                raise InvalidAddress("token ledger is required")
            _require_amount(amount)
            if self._custody_balance(ledger) < amount:
                raise InsufficientFaucetBalance("insufficient balance of recovered token")
            tx_hash = self._send(
                partial(ledger.transfer, state.owner, amount),
                f"emergency withdrawal of {amount} failed",
            )
            record = EmergencyWithdraw(asset=ledger.address, amount=amount)
            pending.append(record)

        if tx_hash is not None:
            raise self._pending(tx_hash, f"emergency withdrawal of {amount}")
        logger.warning("Emergency withdraw", extra={"asset": record.asset, "amount": amount})
        return record

    def configure_faucet(
        self,
        caller: str,
        tokens_per_request: int,
        cooldown_seconds: int,
        max_tokens_per_address: int,
        daily_limit: int,
    ) -> FaucetConfigured:
        """Replace the whole configuration."""
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            state.config = build_config(
                tokens_per_request, cooldown_seconds, max_tokens_per_address, daily_limit
            )
            record = FaucetConfigured(
                tokens_per_request=state.config.tokens_per_request,
                cooldown=state.config.cooldown_seconds,
                max_per_address=state.config.max_tokens_per_address,
                daily_limit=state.config.daily_limit,
            )
            pending.append(record)

        logger.info("Faucet configured", extra=record.to_dict())
        return record

    def set_blacklisted(self, caller: str, address: str, flag: bool) -> UserBlacklisted:
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            user = _address(address)
            if is_zero_address(user):
                raise InvalidAddress("cannot blacklist the zero address")
            state.account_for_update(user).is_blacklisted = bool(flag)
            record = UserBlacklisted(user=user, flag=bool(flag))
            pending.append(record)

        logger.info("Blacklist updated", extra={"user": user, "flag": record.flag})
        return record

    def pause(self, caller: str) -> FaucetPaused:
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            if state.paused:
                raise Paused("faucet is already paused")
            state.paused = True
            record = FaucetPaused(account=caller)
            pending.append(record)

        logger.warning("Faucet paused", extra={"account": caller})
        return record

    def unpause(self, caller: str) -> FaucetUnpaused:
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            if not state.paused:
                raise NotPaused("faucet is not paused")
            state.paused = False
            record = FaucetUnpaused(account=caller)
            pending.append(record)

        logger.info("Faucet unpaused", extra={"account": caller})
        return record

    def reset_daily_limit(self, caller: str) -> DailyLimitReset:
        """Start a new epoch now, whether or not 24 hours have passed."""
        now = self._clock.now()
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            record = self._reset_epoch(state, now)
            pending.append(record)

        return record

    def transfer_ownership(self, caller: str, new_owner: str) -> OwnershipTransferred:
        caller = _address(caller)

        with self._operation() as (state, pending):
            self._require_owner(state, caller)
            new_owner = _address(new_owner)
            if is_zero_address(new_owner):
                raise InvalidAddress("new owner is the zero address")
            if new_owner == _address(self._ledger.holder):
                raise InvalidAddress("new owner is the custody account")
            record = OwnershipTransferred(previous_owner=state.owner, new_owner=new_owner)
            state.owner = new_owner
            pending.append(record)

        logger.warning("Ownership transferred", extra=record.to_dict())
        return record

    # Queries

    def get_user_info(self, address: str) -> UserInfo:
        """Eligibility of ``address`` right now, without changing anything.

        ``can_request`` applies the same checks as ``request_tokens`` except
        the originator check, and compares against the current daily total
        without rolling the epoch over.
        """
        now = self._clock.now()
        user = _address(address)
        state = self._store.snapshot()
        config = state.config
        account = state.account(user)

        remaining = _cooldown_remaining(account, config, now)
        amount = config.tokens_per_request
        can_request = (
            not state.paused
            and not account.is_blacklisted
            and remaining == 0
            and account.total_received + amount <= config.max_tokens_per_address
            and state.epoch.total_distributed_today + amount <= config.daily_limit
            and self._custody_balance() >= amount
        )
        return UserInfo(
            total_received=account.total_received,
            last_request_time=account.last_request_time or 0,
            can_request=can_request,
            seconds_until_next_request=remaining,
        )

    def get_faucet_balance(self) -> int:
        return self._custody_balance()

    def get_faucet_config(self) -> FaucetSnapshot:
        state = self._store.snapshot()
        return FaucetSnapshot(
            tokens_per_request=state.config.tokens_per_request,
            cooldown_seconds=state.config.cooldown_seconds,
            max_tokens_per_address=state.config.max_tokens_per_address,
            daily_limit=state.config.daily_limit,
            total_distributed_today=state.epoch.total_distributed_today,
            paused=state.paused,
            epoch_start=state.epoch.epoch_start,
            owner=state.owner,
        )
