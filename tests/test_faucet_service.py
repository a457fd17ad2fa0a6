"""Tests for Faucet Service module."""

from unittest.mock import MagicMock

import pytest
from conftest import ALICE, DAILY_LIMIT, FAUCET_SUPPLY, OWNER, TOKENS_PER_REQUEST
from prometheus_client import REGISTRY

from trickle.faucet.errors import Blacklisted, CooldownActive, ErrorKind, InvalidAddress
from trickle.faucet.service import FaucetResult, FaucetService, describe_error


@pytest.fixture
def service(controller):
    return FaucetService(controller)


class TestDescribeError:
    """Tests for user-facing error text."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (30, "Please wait 30 seconds before next request"),
            (120, "Please wait 2 minutes before next request"),
            (3599, "Please wait 59m 59s before next request"),
        ],
    )
    def test_cooldown(self, seconds, expected):
        assert describe_error(CooldownActive(seconds)) == expected

    def test_capitalizes_message(self):
        assert describe_error(Blacklisted("0xabc is blacklisted")) == "0xabc is blacklisted"
        assert describe_error(InvalidAddress("bad address")) == "Bad address"


class TestFaucetServiceLifecycle:
    """Tests for start and stop."""

    async def test_start_stop(self, service):
        assert service.is_running is False

        await service.start()
        assert service.is_running is True

        await service.stop()
        assert service.is_running is False

    async def test_start_twice_is_noop(self, service):
        await service.start()
        await service.start()
        assert service.is_running is True


class TestFaucetServiceStatus:
    """Tests for get_status."""

    async def test_operational(self, service):
        status = await service.get_status()

        assert status.healthy is True
        assert status.message == "Faucet operational"
        assert status.balance == FAUCET_SUPPLY
        assert status.decimals == 0
        assert status.config.tokens_per_request == TOKENS_PER_REQUEST

    async def test_paused(self, service, controller):
        controller.pause(OWNER)

        status = await service.get_status()

        assert status.healthy is False
        assert status.message == "Faucet is paused"

    async def test_underfunded(self, service, controller):
        controller.withdraw_tokens(OWNER, FAUCET_SUPPLY)

        status = await service.get_status()

        assert status.healthy is False
        assert status.message == "Faucet balance is below one payout"

    async def test_daily_limit_reached_stays_healthy(self, service, controller):
        recipients = [f"0x{i:040x}" for i in range(1, DAILY_LIMIT // TOKENS_PER_REQUEST + 1)]
        for recipient in recipients:
            controller.request_tokens(recipient)

        status = await service.get_status()

        assert status.healthy is True
        assert status.message == "Daily limit reached"


class TestFaucetServiceRequest:
    """Tests for request."""

    async def test_success(self, service, token):
        result = await service.request(ALICE)

        assert isinstance(result, FaucetResult)
        assert result.success is True
        assert result.status == "success"
        assert result.amount == TOKENS_PER_REQUEST
        assert result.total_received == TOKENS_PER_REQUEST
        assert result.retry_after == 3600
        assert result.message == f"Sent {TOKENS_PER_REQUEST} base units to {ALICE}"
        assert token.balance_of(ALICE) == TOKENS_PER_REQUEST

    async def test_success_counts_distributed_tokens(self, service):
        before = REGISTRY.get_sample_value("trickle_tokens_distributed_total") or 0

        await service.request(ALICE)

        after = REGISTRY.get_sample_value("trickle_tokens_distributed_total")
        assert after == before + TOKENS_PER_REQUEST

    async def test_cooldown_rejection(self, service, clock):
        await service.request(ALICE)
        clock.advance(1)

        result = await service.request(ALICE)

        assert result.success is False
        assert result.status == ErrorKind.COOLDOWN_ACTIVE.value
        assert result.amount == 0
        assert result.retry_after == 3599
        assert result.message == "Please wait 59m 59s before next request"

    async def test_blacklisted_rejection(self, service, controller):
        controller.set_blacklisted(OWNER, ALICE, True)

        result = await service.request(ALICE)

        assert result.success is False
        assert result.status == ErrorKind.BLACKLISTED.value
        assert result.retry_after is None

    async def test_invalid_address(self, service):
        result = await service.request("not-an-address")

        assert result.success is False
        assert result.status == ErrorKind.INVALID_ADDRESS.value

    async def test_unexpected_errors_propagate(self):
        controller = MagicMock()
        controller.request_tokens.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await FaucetService(controller).request(ALICE)


class TestFaucetServiceUserStatus:
    """Tests for get_user_status."""

    async def test_after_request(self, service):
        await service.request(ALICE)

        info = await service.get_user_status(ALICE)

        assert info.total_received == TOKENS_PER_REQUEST
        assert info.can_request is False

    async def test_invalid_address_raises(self, service):
        with pytest.raises(InvalidAddress):
            await service.get_user_status("0x123")
