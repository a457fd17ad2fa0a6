"""Readiness checks for the faucet."""

import asyncio

from trickle.ledger.base import TokenLedger
from trickle.observability.health import CheckResult, HealthCheck, HealthStatus

from .controller import DistributionController
from .store import StateStore


class LedgerHealthCheck(HealthCheck):
    """Ledger answers a balance query for the custody account."""

    def __init__(self, ledger: TokenLedger):
        self._ledger = ledger

    @property
    def name(self) -> str:
        return "ledger"

    async def check(self) -> CheckResult:
        await asyncio.to_thread(self._ledger.balance_of, self._ledger.holder)
        return CheckResult(name=self.name, status=HealthStatus.OK)


class StoreHealthCheck(HealthCheck):
    """State store is reachable."""

    def __init__(self, store: StateStore):
        self._store = store

    @property
    def name(self) -> str:
        return "store"

    async def check(self) -> CheckResult:
        if await asyncio.to_thread(self._store.ping):
            return CheckResult(name=self.name, status=HealthStatus.OK)
        return CheckResult(name=self.name, status=HealthStatus.ERROR, message="store unreachable")


class FundedCheck(HealthCheck):
    """Custody balance covers at least one payout."""

    def __init__(self, controller: DistributionController):
        self._controller = controller

    @property
    def name(self) -> str:
        return "funded"

    async def check(self) -> CheckResult:
        config = await asyncio.to_thread(self._controller.get_faucet_config)
        balance = await asyncio.to_thread(self._controller.get_faucet_balance)
        if balance >= config.tokens_per_request:
            return CheckResult(name=self.name, status=HealthStatus.OK)
        return CheckResult(
            name=self.name,
            status=HealthStatus.NOT_READY,
            message=f"balance {balance} below payout {config.tokens_per_request}",
        )
