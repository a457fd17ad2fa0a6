"""Token ledger interface consumed by the distribution controller."""

from abc import ABC, abstractmethod


class LedgerError(Exception):
    """A ledger rejected an operation (balance, allowance, cap...)."""


class TransferUnconfirmed(LedgerError):
    """A transfer was broadcast but its outcome is not known.

    The funds may still move; callers must account for it as sent.
    """

    def __init__(self, tx_hash: str, reason: str):
        super().__init__(f"transaction {tx_hash} unconfirmed: {reason}")
        self.tx_hash = tx_hash


class TokenLedger(ABC):
    """Fungible-token balance store as seen from one custody account.

    The controller moves funds out of ``holder`` with ``transfer`` and pulls
    pre-approved funds into it with ``transfer_from``. Both report a transfer
    that certainly did not happen by returning False, and raise
    ``TransferUnconfirmed`` when it left the process without a final outcome.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Identity of the token (contract address)."""
        ...

    @property
    @abstractmethod
    def holder(self) -> str:
        """Account this ledger handle transfers from."""
        ...

    @property
    @abstractmethod
    def decimals(self) -> int:
        """Number of decimals of the token."""
        ...

    @abstractmethod
    def balance_of(self, address: str) -> int:
        """Balance of ``address`` in base units."""
        ...

    @abstractmethod
    def transfer(self, to: str, amount: int) -> bool:
        """Move ``amount`` from ``holder`` to ``to``."""
        ...

    @abstractmethod
    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``to`` using ``holder``'s allowance."""
        ...
