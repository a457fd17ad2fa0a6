"""Operator wallet used to sign ledger transactions.

The operator wallet is the faucet's custody account on the token ledger
and, unless configured otherwise, the faucet administrator.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class WalletProvider(ABC):
    """Abstract source of the operator's signing account."""

    @abstractmethod
    def get_account(self) -> LocalAccount:
        """Get the account used for signing ledger transactions."""
        ...

    @property
    def address(self) -> str:
        """Checksummed address of the operator account."""
        return self.get_account().address


class EnvironmentWallet(WalletProvider):
    """Operator key loaded from a secret value or a key file.

    Parameters
    ----------
    private_key : SecretStr, optional
        The private key (typically from ``TRICKLE_WALLET_PRIVATE_KEY``).
    private_key_file : str, optional
        Path to a file containing the private key.

    Raises
    ------
    ValueError
        If neither source is provided.
    FileNotFoundError
        If private_key_file does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
    ):
        if private_key is not None:
            self._account = Account.from_key(private_key.get_secret_value())
        elif private_key_file is not None:
            key_path = Path(private_key_file).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {private_key_file}")
            self._account = Account.from_key(key_path.read_text().strip())
        else:
            raise ValueError("Either private_key or private_key_file must be provided")

    def get_account(self) -> LocalAccount:
        return self._account


class EphemeralWallet(WalletProvider):
    """Throwaway account for the in-memory ledger in development."""

    def __init__(self):
        self._account = Account.create()

    def get_account(self) -> LocalAccount:
        return self._account


def load_wallet(
    private_key: SecretStr | None,
    private_key_file: str | None,
) -> EnvironmentWallet:
    """Build the operator wallet from configuration.

    The inline key wins when both sources are set.

    Raises
    ------
    ValueError
        If no key source is configured.
    """
    if private_key is not None:
        if private_key_file:
            logger.warning(
                "Both TRICKLE_WALLET_PRIVATE_KEY and TRICKLE_WALLET_PRIVATE_KEY_FILE set; "
                "using TRICKLE_WALLET_PRIVATE_KEY"
            )
        return EnvironmentWallet(private_key=private_key)
    if private_key_file:
        return EnvironmentWallet(private_key_file=private_key_file)
    raise ValueError(
        "No wallet configured. Set TRICKLE_WALLET_PRIVATE_KEY or TRICKLE_WALLET_PRIVATE_KEY_FILE"
    )
