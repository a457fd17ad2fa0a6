"""Tests for clock, address and unit helpers."""

from decimal import Decimal

import pytest

from trickle.core.addresses import (
    ZERO_ADDRESS,
    checksum_address,
    is_zero_address,
    validate_address,
)
from trickle.core.clock import ManualClock, SystemClock
from trickle.core.units import from_base_units, to_base_units


class TestClock:
    """Tests for clock implementations."""

    def test_system_clock_is_integer_seconds(self):
        now = SystemClock().now()

        assert isinstance(now, int)
        assert now > 1_600_000_000

    def test_manual_clock_advance(self):
        clock = ManualClock(100)

        assert clock.advance(50) == 150
        assert clock.now() == 150

    def test_manual_clock_set(self):
        clock = ManualClock()
        clock.set(3601)

        assert clock.now() == 3601

    def test_manual_clock_cannot_go_backwards(self):
        clock = ManualClock(100)

        with pytest.raises(ValueError):
            clock.set(99)
        with pytest.raises(ValueError):
            clock.advance(-1)


class TestAddresses:
    """Tests for address helpers."""

    @pytest.mark.parametrize(
        "address",
        [
            "0x52908400098527886E0F7030069857D2E4169EE7",
            "0x52908400098527886e0f7030069857d2e4169ee7",
            ZERO_ADDRESS,
        ],
    )
    def test_valid(self, address):
        assert validate_address(address) is True

    @pytest.mark.parametrize(
        "address",
        [None, "", "0x123", "52908400098527886E0F7030069857D2E4169EE7", "0x" + "g" * 40, 42],
    )
    def test_invalid(self, address):
        assert validate_address(address) is False

    def test_checksum(self):
        lowered = "0x52908400098527886e0f7030069857d2e4169ee7"

        assert checksum_address(lowered) == "0x52908400098527886E0F7030069857D2E4169EE7"

    def test_checksum_invalid(self):
        with pytest.raises(ValueError, match="Invalid address"):
            checksum_address("0x123")

    def test_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS) is True
        assert is_zero_address("0x0000000000000000000000000000000000000001") is False


class TestUnits:
    """Tests for token unit conversion."""

    def test_to_base_units(self):
        assert to_base_units("10", 18) == 10 * 10**18
        assert to_base_units("1.5", 18) == 15 * 10**17
        assert to_base_units(Decimal("0.000000000000000001"), 18) == 1
        assert to_base_units(7, 0) == 7

    def test_too_precise(self):
        with pytest.raises(ValueError, match="precision"):
            to_base_units("0.5", 0)

    def test_not_a_number(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            to_base_units("ten", 18)

    def test_from_base_units(self):
        assert from_base_units(15 * 10**17, 18) == Decimal("1.5")
