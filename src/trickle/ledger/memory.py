"""In-process capped token for development and tests.

``MemoryToken`` behaves like a capped ERC-20 whose whole initial supply is
minted to its deployer. ``MemoryToken.connect(holder)`` returns a
``MemoryLedger``, the ``TokenLedger`` view the faucet uses.
"""

import logging
import threading

from trickle.core.addresses import checksum_address, is_zero_address

from .base import LedgerError, TokenLedger

logger = logging.getLogger(__name__)


def _normalize(address: str) -> str:
    try:
        return checksum_address(address)
    except ValueError as e:
        raise LedgerError(str(e)) from None


class MemoryToken:
    """Capped token held entirely in memory.

    Parameters
    ----------
    name : str
        Token name.
    symbol : str
        Token symbol.
    initial_supply : int
        Base units minted to ``owner`` at creation.
    cap : int
        Hard limit on total supply.
    owner : str
        Deployer receiving the initial supply.
    address : str
        Identity of the token.
    decimals : int
        Token decimals.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        initial_supply: int,
        cap: int,
        owner: str,
        address: str = "0x00000000000000000000000000000000000070C3",
        decimals: int = 18,
    ):
        if cap <= 0:
            raise LedgerError("cap must be greater than 0")
        if initial_supply > cap:
            raise LedgerError("initial supply exceeds cap")

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.cap = cap
        self.address = _normalize(address)
        self.owner = _normalize(owner)
        self.total_supply = initial_supply
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()

        if initial_supply > 0:
            self._balances[self.owner] = initial_supply

    def connect(self, holder: str) -> "MemoryLedger":
        """Get a ledger handle acting as ``holder``."""
        return MemoryLedger(self, holder)

    def balance_of(self, address: str) -> int:
        return self._balances.get(_normalize(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((_normalize(owner), _normalize(spender)), 0)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        with self._lock:
            self._transfer(_normalize(sender), _normalize(to), amount)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise LedgerError("negative allowance")
        with self._lock:
            self._allowances[(_normalize(owner), _normalize(spender))] = amount

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        with self._lock:
            key = (_normalize(owner), _normalize(spender))
            allowed = self._allowances.get(key, 0)
            if allowed < amount:
                raise LedgerError("insufficient allowance")
            self._transfer(key[0], _normalize(to), amount)
            self._allowances[key] = allowed - amount

    def _transfer(self, sender: str, to: str, amount: int) -> None:
        if is_zero_address(to):
            raise LedgerError("transfer to zero address")
        if amount < 0:
            raise LedgerError("negative amount")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise LedgerError("insufficient balance")
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount


class MemoryLedger(TokenLedger):
    """``TokenLedger`` view of a ``MemoryToken`` acting as one account."""

    def __init__(self, token: MemoryToken, holder: str):
        self._token = token
        self._holder = _normalize(holder)

    @property
    def token(self) -> MemoryToken:
        return self._token

    @property
    def address(self) -> str:
        return self._token.address

    @property
    def holder(self) -> str:
        return self._holder

    @property
    def decimals(self) -> int:
        return self._token.decimals

    def balance_of(self, address: str) -> int:
        return self._token.balance_of(address)

    def transfer(self, to: str, amount: int) -> bool:
        try:
            self._token.transfer(self._holder, to, amount)
        except LedgerError as e:
            logger.warning(
                "Memory ledger transfer rejected",
                extra={"token": self.address, "to": to, "amount": amount, "error": str(e)},
            )
            return False
        return True

    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        try:
            self._token.transfer_from(self._holder, owner, to, amount)
        except LedgerError as e:
            logger.warning(
                "Memory ledger transfer_from rejected",
                extra={"token": self.address, "owner": owner, "amount": amount, "error": str(e)},
            )
            return False
        return True
