"""Faucet error taxonomy.

Every rejection raised by the distribution controller is a named
``FaucetError`` subclass. Callers can branch on the class or on ``kind``
(a stable string used by the HTTP API and the CLI).
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable identifiers for faucet failures."""

    INVALID_CONFIG = "invalid_config"
    UNAUTHORIZED = "unauthorized"
    PAUSED = "paused"
    NOT_PAUSED = "not_paused"
    CALLER_NOT_ORIGINATOR = "caller_not_originator"
    BLACKLISTED = "blacklisted"
    COOLDOWN_ACTIVE = "cooldown_active"
    PER_ADDRESS_CAP_EXCEEDED = "per_address_cap_exceeded"
    DAILY_CAP_EXCEEDED = "daily_cap_exceeded"
    INSUFFICIENT_FAUCET_BALANCE = "insufficient_faucet_balance"
    LEDGER_TRANSFER_FAILED = "ledger_transfer_failed"
    LEDGER_TRANSFER_PENDING = "ledger_transfer_pending"
    STATE_STORE_BUSY = "state_store_busy"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_ADDRESS = "invalid_address"
    INVALID_RECIPIENT = "invalid_recipient"
    LENGTH_MISMATCH = "length_mismatch"
    EMPTY_INPUT = "empty_input"


class FaucetError(Exception):
    """Base class for all faucet failures."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidConfig(FaucetError):
    kind = ErrorKind.INVALID_CONFIG


class Unauthorized(FaucetError):
    kind = ErrorKind.UNAUTHORIZED


class Paused(FaucetError):
    kind = ErrorKind.PAUSED


class NotPaused(FaucetError):
    kind = ErrorKind.NOT_PAUSED


class CallerNotOriginator(FaucetError):
    kind = ErrorKind.CALLER_NOT_ORIGINATOR


class Blacklisted(FaucetError):
    kind = ErrorKind.BLACKLISTED


class CooldownActive(FaucetError):
    """Raised when the caller's cooldown has not elapsed.

    Parameters
    ----------
    remaining_seconds : int
        Seconds until the caller may request again.
    """

    kind = ErrorKind.COOLDOWN_ACTIVE

    def __init__(self, remaining_seconds: int):
        super().__init__(f"Cooldown active: {remaining_seconds}s remaining")
        self.remaining_seconds = remaining_seconds


class PerAddressCapExceeded(FaucetError):
    kind = ErrorKind.PER_ADDRESS_CAP_EXCEEDED


class DailyCapExceeded(FaucetError):
    kind = ErrorKind.DAILY_CAP_EXCEEDED


class InsufficientFaucetBalance(FaucetError):
    kind = ErrorKind.INSUFFICIENT_FAUCET_BALANCE


class LedgerTransferFailed(FaucetError):
    kind = ErrorKind.LEDGER_TRANSFER_FAILED


class LedgerTransferPending(FaucetError):
    """Raised when a transfer was broadcast but not confirmed.

    The operation is committed: counters and records account for the
    transfer as sent. ``tx_hash`` identifies it for reconciliation.
    """

    kind = ErrorKind.LEDGER_TRANSFER_PENDING

    def __init__(self, message: str, tx_hash: str):
        super().__init__(message)
        self.tx_hash = tx_hash


class StateStoreBusy(FaucetError):
    kind = ErrorKind.STATE_STORE_BUSY


class InvalidAmount(FaucetError):
    kind = ErrorKind.INVALID_AMOUNT


class InvalidAddress(FaucetError):
    kind = ErrorKind.INVALID_ADDRESS


class InvalidRecipient(FaucetError):
    kind = ErrorKind.INVALID_RECIPIENT


class LengthMismatch(FaucetError):
    kind = ErrorKind.LENGTH_MISMATCH


class EmptyInput(FaucetError):
    kind = ErrorKind.EMPTY_INPUT
