"""Faucet Service for trickle.

Async front for the distribution controller:
- runs controller calls off the event loop
- turns controller errors into user-facing results
- records request metrics
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from trickle.observability.metrics import (
    DISTRIBUTED_TODAY,
    FAUCET_BALANCE,
    FAUCET_PAUSED,
    REQUEST_DURATION,
    REQUESTS,
    TOKENS_DISTRIBUTED,
)

from .controller import DistributionController
from .errors import CooldownActive, FaucetError
from .models import FaucetSnapshot, UserInfo

logger = logging.getLogger(__name__)


def _format_cooldown(seconds: int) -> str:
    """Format cooldown duration for user display."""
    if seconds < 60:
        return f"Please wait {seconds} seconds before next request"
    minutes = seconds // 60
    remaining_seconds = seconds % 60
    if remaining_seconds > 0:
        return f"Please wait {minutes}m {remaining_seconds}s before next request"
    return f"Please wait {minutes} minutes before next request"


def describe_error(error: FaucetError) -> str:
    """User-facing text for a controller rejection."""
    if isinstance(error, CooldownActive):
        return _format_cooldown(error.remaining_seconds)
    return error.message[:1].upper() + error.message[1:]


@dataclass
class FaucetResult:
    """Result of a faucet request."""

    success: bool
    status: str
    address: str
    amount: int
    message: str
    retry_after: int | None = None
    total_received: int | None = None


@dataclass
class FaucetStatus:
    """Current faucet status."""

    healthy: bool
    config: FaucetSnapshot
    balance: int
    token: str
    decimals: int
    message: str


class FaucetService:
    """Main faucet service.

    Parameters
    ----------
    controller : DistributionController
        The controller holding all faucet state.
    """

    def __init__(self, controller: DistributionController):
        self._controller = controller
        self._running = False

    @property
    def controller(self) -> DistributionController:
        return self._controller

    @property
    def is_running(self) -> bool:
        """Check if the faucet service is running."""
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Faucet service already running")
            return

        await self.refresh_gauges()
        self._running = True
        logger.info("Faucet service started", extra={"token": self._controller.token})

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        logger.info("Faucet service stopped")

    async def refresh_gauges(self) -> FaucetSnapshot:
        """Read the controller's live counters into the Prometheus gauges."""
        snapshot = await asyncio.to_thread(self._controller.get_faucet_config)
        balance = await asyncio.to_thread(self._controller.get_faucet_balance)
        FAUCET_BALANCE.set(balance)
        DISTRIBUTED_TODAY.set(snapshot.total_distributed_today)
        FAUCET_PAUSED.set(1 if snapshot.paused else 0)
        return snapshot

    async def get_status(self) -> FaucetStatus:
        """Get current faucet status.

        Returns
        -------
        FaucetStatus
            Configuration, counters and custody balance.
        """
        snapshot = await asyncio.to_thread(self._controller.get_faucet_config)
        balance = await asyncio.to_thread(self._controller.get_faucet_balance)
        FAUCET_BALANCE.set(balance)
        DISTRIBUTED_TODAY.set(snapshot.total_distributed_today)

        healthy = True
        message = "Faucet operational"
        if snapshot.paused:
            healthy = False
            message = "Faucet is paused"
        elif balance < snapshot.tokens_per_request:
            healthy = False
            message = "Faucet balance is below one payout"
        elif snapshot.total_distributed_today + snapshot.tokens_per_request > snapshot.daily_limit:
            message = "Daily limit reached"

        return FaucetStatus(
            healthy=healthy,
            config=snapshot,
            balance=balance,
            token=self._controller.token,
            decimals=self._controller.ledger.decimals,
            message=message,
        )

    async def request(self, address: str) -> FaucetResult:
        """Handle a distribution request for ``address``.

        The request is made on the address's own behalf, so the caller and
        the originator are the same account.

        Parameters
        ----------
        address : str
            Recipient address.

        Returns
        -------
        FaucetResult
            Result of the request; rejections are reported, not raised.
        """
        started = time.monotonic()
        try:
            record = await asyncio.to_thread(self._controller.request_tokens, address, address)
        except FaucetError as e:
            REQUESTS.labels(status=e.kind.value).inc()
            logger.info(
                "Faucet request rejected",
                extra={"address": address, "status": e.kind.value, "reason": e.message},
            )
            return FaucetResult(
                success=False,
                status=e.kind.value,
                address=address,
                amount=0,
                message=describe_error(e),
                retry_after=e.remaining_seconds if isinstance(e, CooldownActive) else None,
            )
        finally:
            REQUEST_DURATION.observe(time.monotonic() - started)

        REQUESTS.labels(status="success").inc()
        TOKENS_DISTRIBUTED.inc(record.amount)
        info = await asyncio.to_thread(self._controller.get_user_info, record.user)
        await self.refresh_gauges()

        return FaucetResult(
            success=True,
            status="success",
            address=record.user,
            amount=record.amount,
            message=f"Sent {record.amount} base units to {record.user}",
            retry_after=info.seconds_until_next_request,
            total_received=info.total_received,
        )

    async def get_user_status(self, address: str) -> UserInfo:
        """Get eligibility of ``address``.

        Raises
        ------
        InvalidAddress
            If ``address`` is malformed.
        """
        return await asyncio.to_thread(self._controller.get_user_info, address)
