"""Token ledgers the faucet pays out of."""

from .base import LedgerError, TokenLedger, TransferUnconfirmed
from .erc20 import Erc20Ledger
from .memory import MemoryLedger, MemoryToken

__all__ = [
    "Erc20Ledger",
    "LedgerError",
    "MemoryLedger",
    "MemoryToken",
    "TokenLedger",
    "TransferUnconfirmed",
]
