"""HTTP API for the faucet, mounted on the health server.

Routes:
- GET  /api/faucet: configuration, counters and balance
- GET  /api/faucet/users/{address}: eligibility of one address
- POST /api/faucet/request: pay out to {"address": ...}
"""

import logging
import uuid
from dataclasses import asdict

from aiohttp import web

from trickle.observability.logging import clear_request_context, set_request_context

from .errors import ErrorKind, FaucetError
from .service import FaucetResult, FaucetService, describe_error

logger = logging.getLogger(__name__)

# HTTP status per rejection kind; anything else is a client error
STATUS_CODES = {
    ErrorKind.COOLDOWN_ACTIVE: 429,
    ErrorKind.DAILY_CAP_EXCEEDED: 429,
    ErrorKind.BLACKLISTED: 403,
    ErrorKind.PER_ADDRESS_CAP_EXCEEDED: 403,
    ErrorKind.CALLER_NOT_ORIGINATOR: 403,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.PAUSED: 503,
    ErrorKind.INSUFFICIENT_FAUCET_BALANCE: 503,
    ErrorKind.LEDGER_TRANSFER_FAILED: 502,
    ErrorKind.LEDGER_TRANSFER_PENDING: 202,
    ErrorKind.STATE_STORE_BUSY: 503,
}


def _error_response(kind: str, message: str, retry_after: int | None = None) -> web.Response:
    status = STATUS_CODES.get(ErrorKind(kind), 400)
    body = {"error": kind, "message": message, "retry_after": retry_after}
    headers = {"Retry-After": str(retry_after)} if retry_after else None
    return web.json_response(body, status=status, headers=headers)


class FaucetAPI:
    """aiohttp handlers over a ``FaucetService``."""

    def __init__(self, service: FaucetService):
        self._service = service

    def register(self, app: web.Application) -> None:
        app.router.add_get("/api/faucet", self.handle_status)
        app.router.add_get("/api/faucet/users/{address}", self.handle_user)
        app.router.add_post("/api/faucet/request", self.handle_request)

    async def handle_status(self, _request: web.Request) -> web.Response:
        status = await self._service.get_status()
        return web.json_response(
            {
                "healthy": status.healthy,
                "message": status.message,
                "token": status.token,
                "decimals": status.decimals,
                "balance": status.balance,
                **asdict(status.config),
            }
        )

    async def handle_user(self, request: web.Request) -> web.Response:
        address = request.match_info["address"]
        try:
            info = await self._service.get_user_status(address)
        except FaucetError as e:
            return _error_response(e.kind.value, describe_error(e))
        return web.json_response({"address": address, **asdict(info)})

    async def handle_request(self, request: web.Request) -> web.Response:
        try:
            payload = await request.json()
        except ValueError:
            return _error_response(ErrorKind.INVALID_ADDRESS.value, "Request body must be JSON")
        address = payload.get("address") if isinstance(payload, dict) else None
        if not isinstance(address, str):
            return _error_response(ErrorKind.INVALID_ADDRESS.value, "Missing 'address' field")

        set_request_context(request.headers.get("X-Request-ID") or uuid.uuid4().hex, address)
        try:
            result = await self._service.request(address)
        finally:
            clear_request_context()

        if not result.success:
            return _error_response(result.status, result.message, result.retry_after)
        return web.json_response(_result_body(result))


def _result_body(result: FaucetResult) -> dict:
    return {
        "address": result.address,
        "amount": result.amount,
        "message": result.message,
        "total_received": result.total_received,
        "retry_after": result.retry_after,
    }
