"""Tests for the faucet readiness checks."""

from unittest.mock import MagicMock

import pytest

from conftest import FAUCET_SUPPLY, OWNER

from trickle.faucet.checks import FundedCheck, LedgerHealthCheck, StoreHealthCheck
from trickle.faucet.store import MemoryStateStore
from trickle.observability.health import HealthStatus


class TestLedgerHealthCheck:
    """Tests for LedgerHealthCheck."""

    async def test_ok_when_balance_query_succeeds(self, ledger):
        result = await LedgerHealthCheck(ledger).check()
        assert result.name == "ledger"
        assert result.status == HealthStatus.OK

    async def test_propagates_ledger_errors(self):
        """Failures surface to the server, which reports them."""
        ledger = MagicMock()
        ledger.balance_of.side_effect = ConnectionError("rpc down")

        with pytest.raises(ConnectionError, match="rpc down"):
            await LedgerHealthCheck(ledger).check()


class TestStoreHealthCheck:
    """Tests for StoreHealthCheck."""

    async def test_memory_store_is_reachable(self):
        result = await StoreHealthCheck(MemoryStateStore()).check()
        assert result.status == HealthStatus.OK

    async def test_unreachable_store(self):
        store = MagicMock()
        store.ping.return_value = False

        result = await StoreHealthCheck(store).check()

        assert result.status == HealthStatus.ERROR
        assert result.message == "store unreachable"


class TestFundedCheck:
    """Tests for FundedCheck."""

    async def test_funded(self, controller):
        result = await FundedCheck(controller).check()
        assert result.name == "funded"
        assert result.status == HealthStatus.OK

    async def test_below_one_payout(self, controller):
        controller.withdraw_tokens(OWNER, FAUCET_SUPPLY - 5)

        result = await FundedCheck(controller).check()

        assert result.status == HealthStatus.NOT_READY
        assert result.message == "balance 5 below payout 10"
