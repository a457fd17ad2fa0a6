"""Core TRICKLE components."""

from .addresses import ZERO_ADDRESS, checksum_address, is_zero_address, validate_address
from .clock import Clock, ManualClock, SystemClock
from .units import from_base_units, to_base_units
from .wallet import EnvironmentWallet, EphemeralWallet, WalletProvider, load_wallet

__all__ = [
    "ZERO_ADDRESS",
    "Clock",
    "EnvironmentWallet",
    "EphemeralWallet",
    "ManualClock",
    "SystemClock",
    "WalletProvider",
    "checksum_address",
    "from_base_units",
    "is_zero_address",
    "load_wallet",
    "to_base_units",
    "validate_address",
]
