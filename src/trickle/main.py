#!/usr/bin/env python3
"""trickle - rate-limited token faucet.

Entry point for the trickle service.
"""

import asyncio
import logging
import os
import signal
import sys
import tempfile
from pathlib import Path

from eth_account import Account

from trickle.cli import create_parser, run_cli
from trickle.components import build_components
from trickle.config import TrickleConfig
from trickle.faucet import FaucetService
from trickle.faucet.api import FaucetAPI
from trickle.faucet.checks import FundedCheck, LedgerHealthCheck, StoreHealthCheck
from trickle.observability.health import HealthServer
from trickle.observability.logging import configure_logging


def generate_wallet(output_path: str) -> str:
    """Generate a new wallet and save the private key to a file.

    Parameters
    ----------
    output_path : str
        Path to save the private key file.

    Returns
    -------
    str
        Address of the new wallet.
    """
    account = Account.create()

    # Temp file in the same directory so the rename is atomic
    key_path = Path(output_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=key_path.parent, prefix=".trickle-key-")
    fd_closed = False
    try:
        os.fchmod(fd, 0o600)
        os.write(fd, account.key.hex().encode())
        os.close(fd)
        fd_closed = True
        os.rename(temp_path, key_path)
    except Exception:
        if not fd_closed:
            os.close(fd)
        Path(temp_path).unlink(missing_ok=True)
        raise

    print(f"""
Wallet generated successfully!

  Address:     {account.address}
  Private Key: {key_path.absolute()}

Next steps:

  1. Fund this address with the faucet token and gas on your target network

  2. Launch trickle with this wallet:

     export TRICKLE_WALLET_PRIVATE_KEY_FILE={key_path.absolute()}
     export TRICKLE_RPC_ENDPOINT=<rpc url>
     export TRICKLE_TOKEN_ADDRESS=<token contract>
     trickle run

IMPORTANT: Keep this private key secure. Anyone with access can control the wallet.
""")
    return account.address


def parse_args():
    """Parse command line arguments."""
    return create_parser().parse_args()


async def run_service() -> None:
    """Run the trickle service (long-running mode).

    Wires up and starts all service components:
    - HealthServer for health checks, metrics and the faucet API
    - Wallet, token ledger and state store
    - DistributionController and FaucetService
    """
    config = TrickleConfig()
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = logging.getLogger(__name__)
    logger.info("trickle starting")
    logger.info("Ledger backend: %s", config.ledger.value)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal %s, initiating shutdown", sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    try:
        components = await asyncio.to_thread(build_components, config)
    except Exception as e:
        logger.error("Failed to initialize faucet: %s", e)
        sys.exit(1)

    controller = components.controller
    logger.info("Operator wallet: %s", components.wallet.address)
    logger.info("Token: %s (custody %s)", components.ledger.address, components.ledger.holder)

    faucet = FaucetService(controller)

    server = HealthServer(port=config.http_port)
    server.add_check(LedgerHealthCheck(components.ledger))
    server.add_check(StoreHealthCheck(components.store))
    server.add_check(FundedCheck(controller))
    server.add_routes(FaucetAPI(faucet).register)
    await server.start()
    logger.info("HTTP server started on port %d", config.http_port)

    await faucet.start()
    logger.info("trickle service ready")

    await shutdown_event.wait()

    logger.info("trickle shutting down...")
    await faucet.stop()
    await server.stop()
    logger.info("trickle shutdown complete")


async def main() -> None:
    """Main entry point for trickle."""
    args = parse_args()

    if args.generate_wallet:
        generate_wallet(args.generate_wallet)
        return

    if args.command and args.command != "run":
        exit_code = run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        create_parser().print_help()
        sys.exit(0)

    await run_service()


def entrypoint() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    entrypoint()
