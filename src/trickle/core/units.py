"""Conversion between token units and integer base units."""

from decimal import Decimal, InvalidOperation


def to_base_units(amount: Decimal | str | int, decimals: int) -> int:
    """Convert a token amount (e.g. ``Decimal("1.5")``) to base units.

    Raises
    ------
    ValueError
        If the amount is not a number or has more precision than the
        token supports.
    """
    try:
        scaled = Decimal(str(amount)).scaleb(decimals)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount}") from None
    if not scaled.is_finite() or scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} exceeds {decimals} decimals of precision")
    return int(scaled)


def from_base_units(amount: int, decimals: int) -> Decimal:
    """Convert base units back to a token amount."""
    return Decimal(amount).scaleb(-decimals)
