"""Address helpers shared by the ledgers and the faucet."""

import re

from web3 import Web3

# Ethereum address pattern: 0x followed by 40 hex characters
ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def validate_address(address: str | None) -> bool:
    """Validate Ethereum address format.

    Parameters
    ----------
    address : str | None
        Address to validate.

    Returns
    -------
    bool
        True if valid Ethereum address format.
    """
    return isinstance(address, str) and bool(ADDRESS_PATTERN.match(address))


def is_zero_address(address: str) -> bool:
    """Return True for the null address."""
    return int(address, 16) == 0


def checksum_address(address: str | None) -> str:
    """Normalise an address to its EIP-55 checksum form.

    Raises
    ------
    ValueError
        If the address is missing or malformed.
    """
    if not validate_address(address):
        raise ValueError(f"Invalid address format: {address}")
    return Web3.to_checksum_address(address)
