"""CLI subcommands for trickle operations.

Provides command-line interface for:
- Wallet operations (address, balance)
- Faucet operations (status, user, request, deposit)
- Administrator operations (pause, unpause, blacklist, configure, withdraw,
  emergency-withdraw, batch, reset-daily, transfer-ownership)

Amounts are given in token units and converted with the token's decimals.
"""

import argparse
import json
import sys
from decimal import Decimal

from trickle.components import Components, build_components, build_wallet
from trickle.config import TrickleConfig
from trickle.core.addresses import checksum_address
from trickle.core.units import from_base_units, to_base_units
from trickle.core.wallet import WalletProvider
from trickle.faucet.errors import FaucetError
from trickle.faucet.service import describe_error
from trickle.ledger import Erc20Ledger, TokenLedger


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="trickle",
        description="trickle - rate-limited token faucet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without executing",
    )
    parser.add_argument(
        "--generate-wallet",
        metavar="FILE",
        help="Generate a new wallet and save private key to FILE, then exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Wallet subcommand
    wallet_parser = subparsers.add_parser("wallet", help="Wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")

    wallet_sub.add_parser("address", help="Show wallet address")
    wallet_sub.add_parser("balance", help="Show wallet and faucet token balances")

    # Faucet subcommand
    faucet_parser = subparsers.add_parser("faucet", help="Faucet operations")
    faucet_sub = faucet_parser.add_subparsers(dest="faucet_command")

    faucet_sub.add_parser("status", help="Show faucet configuration and balance")

    user_parser = faucet_sub.add_parser("user", help="Show eligibility of an address")
    user_parser.add_argument("address", type=str, help="Address to inspect")

    request_parser = faucet_sub.add_parser("request", help="Request tokens for an address")
    request_parser.add_argument("address", type=str, help="Recipient address")

    deposit_parser = faucet_sub.add_parser(
        "deposit", help="Deposit approved tokens from the wallet"
    )
    deposit_parser.add_argument("amount", type=str, help="Amount to deposit")

    # Admin subcommand
    admin_parser = subparsers.add_parser("admin", help="Administrator operations")
    admin_sub = admin_parser.add_subparsers(dest="admin_command")

    admin_sub.add_parser("pause", help="Pause rate-limited requests")
    admin_sub.add_parser("unpause", help="Resume rate-limited requests")

    blacklist_parser = admin_sub.add_parser("blacklist", help="Blacklist an address")
    blacklist_parser.add_argument("address", type=str, help="Address to update")
    blacklist_parser.add_argument(
        "--remove", action="store_true", help="Clear the flag instead of setting it"
    )

    configure_parser = admin_sub.add_parser("configure", help="Replace the faucet configuration")
    configure_parser.add_argument("tokens_per_request", type=str, help="Payout per request")
    configure_parser.add_argument("cooldown", type=int, help="Cooldown in seconds")
    configure_parser.add_argument("max_per_address", type=str, help="Lifetime cap per address")
    configure_parser.add_argument("daily_limit", type=str, help="Cap per 24h epoch")

    withdraw_parser = admin_sub.add_parser("withdraw", help="Withdraw faucet tokens to the admin")
    withdraw_parser.add_argument("amount", type=str, help="Amount to withdraw")

    emergency_parser = admin_sub.add_parser(
        "emergency-withdraw", help="Recover any token held by the faucet"
    )
    emergency_parser.add_argument("token", type=str, help="Token contract address")
    emergency_parser.add_argument("amount", type=str, help="Amount to recover")

    batch_parser = admin_sub.add_parser("batch", help="Distribute to several addresses")
    batch_parser.add_argument(
        "transfers", nargs="+", metavar="ADDRESS=AMOUNT", help="Recipient and amount pairs"
    )

    admin_sub.add_parser("reset-daily", help="Start a new daily epoch now")

    owner_parser = admin_sub.add_parser("transfer-ownership", help="Hand over administration")
    owner_parser.add_argument("address", type=str, help="New administrator address")

    # Run subcommand (start service)
    subparsers.add_parser("run", help="Start the trickle service")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: TrickleConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._wallet: WalletProvider | None = None
        self._components: Components | None = None

    @property
    def wallet(self) -> WalletProvider:
        """Get operator wallet (lazy loaded)."""
        if self._wallet is None:
            self._wallet = build_wallet(self.config)
        return self._wallet

    @property
    def components(self) -> Components:
        """Get wired components (lazy loaded)."""
        if self._components is None:
            self._components = build_components(self.config, wallet=self.wallet)
        return self._components

    @property
    def controller(self):
        return self.components.controller

    @property
    def ledger(self) -> TokenLedger:
        return self.components.ledger

    @property
    def caller(self) -> str:
        """Account the CLI acts as: the configured administrator.

        Defaults to the operator wallet, which only works when the wallet is
        not also the custody account.
        """
        return checksum_address(self.config.admin_address or self.wallet.address)

    def amount(self, amount_str: str) -> int:
        """Parse a token amount into base units."""
        value = to_base_units(amount_str, self.ledger.decimals)
        if value <= 0:
            raise ValueError("Amount must be positive")
        return value

    def units(self, amount: int) -> Decimal:
        return from_base_units(amount, self.ledger.decimals)

    def ledger_for(self, token_address: str) -> TokenLedger:
        """Ledger handle for any token held by the faucet's custody account."""
        token_address = checksum_address(token_address)
        if token_address == self.ledger.address:
            return self.ledger
        if isinstance(self.ledger, Erc20Ledger):
            return self.ledger.at(token_address)
        raise ValueError(f"Unknown token: {token_address}")

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:

            def decimal_default(obj):
                if isinstance(obj, Decimal):
                    return str(obj)
                raise TypeError(f"Object of type {type(obj)} is not JSON serializable")

            print(json.dumps(data, default=decimal_default, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print data in human-readable format."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            else:
                print(f"{prefix}{key}: {value}")

    def fail(self, error: Exception) -> int:
        """Report an error and return the exit code."""
        if isinstance(error, FaucetError):
            self.output({"error": error.kind.value, "message": describe_error(error)})
        else:
            self.output({"error": str(error)})
        return 1


# Wallet commands


def cmd_wallet_address(ctx: CLIContext) -> int:
    """Show wallet address."""
    try:
        ctx.output({"address": ctx.wallet.address})
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_wallet_balance(ctx: CLIContext) -> int:
    """Show wallet and faucet balances."""
    try:
        ledger = ctx.ledger
        if isinstance(ledger, Erc20Ledger) and not ledger.connected:
            ctx.output({"error": "Not connected to RPC endpoint"})
            return 1

        data = {
            "address": ctx.wallet.address,
            "token": ledger.address,
            "wallet_balance": ctx.units(ledger.balance_of(ctx.wallet.address)),
            "faucet": ledger.holder,
            "faucet_balance": ctx.units(ledger.balance_of(ledger.holder)),
        }
        if isinstance(ledger, Erc20Ledger):
            data["rpc"] = ctx.config.rpc_endpoint
            data["chain_id"] = ledger.chain_id
        ctx.output(data)
        return 0
    except Exception as e:
        return ctx.fail(e)


# Faucet commands


def cmd_faucet_status(ctx: CLIContext) -> int:
    """Show faucet configuration, counters and balance."""
    try:
        snapshot = ctx.controller.get_faucet_config()
        ctx.output(
            {
                "token": ctx.ledger.address,
                "owner": snapshot.owner,
                "paused": snapshot.paused,
                "balance": ctx.units(ctx.controller.get_faucet_balance()),
                "tokens_per_request": ctx.units(snapshot.tokens_per_request),
                "cooldown_seconds": snapshot.cooldown_seconds,
                "max_tokens_per_address": ctx.units(snapshot.max_tokens_per_address),
                "daily_limit": ctx.units(snapshot.daily_limit),
                "distributed_today": ctx.units(snapshot.total_distributed_today),
                "epoch_start": snapshot.epoch_start,
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_faucet_user(ctx: CLIContext, address: str) -> int:
    """Show eligibility of an address."""
    try:
        info = ctx.controller.get_user_info(address)
        ctx.output(
            {
                "address": checksum_address(address),
                "total_received": ctx.units(info.total_received),
                "last_request_time": info.last_request_time,
                "can_request": info.can_request,
                "seconds_until_next_request": info.seconds_until_next_request,
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_faucet_request(ctx: CLIContext, address: str) -> int:
    """Request tokens on behalf of an address."""
    try:
        if ctx.dry_run:
            info = ctx.controller.get_user_info(address)
            snapshot = ctx.controller.get_faucet_config()
            ctx.output(
                {
                    "dry_run": True,
                    "action": "request",
                    "to": checksum_address(address),
                    "amount": ctx.units(snapshot.tokens_per_request),
                    "can_request": info.can_request,
                    "message": f"Would send {ctx.units(snapshot.tokens_per_request)} to {address}",
                }
            )
            return 0

        record = ctx.controller.request_tokens(address)
        ctx.output(
            {
                "success": True,
                "action": "request",
                "to": record.user,
                "amount": ctx.units(record.amount),
                "timestamp": record.timestamp,
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_faucet_deposit(ctx: CLIContext, amount_str: str) -> int:
    """Deposit tokens the wallet has approved for the faucet."""
    try:
        amount = ctx.amount(amount_str)

        if ctx.dry_run:
            ctx.output(
                {
                    "dry_run": True,
                    "action": "deposit",
                    "amount": ctx.units(amount),
                    "message": f"Would deposit {ctx.units(amount)} from {ctx.caller}",
                }
            )
            return 0

        token = ctx.components.token
        if token is not None:
            # The in-memory depositor approves custody itself
            token.approve(ctx.caller, ctx.ledger.holder, amount)
        record = ctx.controller.deposit_tokens(ctx.caller, amount)
        ctx.output(
            {
                "success": True,
                "action": "deposit",
                "depositor": record.depositor,
                "amount": ctx.units(record.amount),
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


# Admin commands


def _admin_dry_run(ctx: CLIContext, action: str, message: str, **fields) -> int:
    ctx.output({"dry_run": True, "action": action, **fields, "message": message})
    return 0


def cmd_admin_pause(ctx: CLIContext) -> int:
    """Pause rate-limited requests."""
    try:
        if ctx.dry_run:
            return _admin_dry_run(ctx, "pause", "Would pause the faucet")
        ctx.controller.pause(ctx.caller)
        ctx.output({"success": True, "action": "pause", "paused": True})
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_unpause(ctx: CLIContext) -> int:
    """Resume rate-limited requests."""
    try:
        if ctx.dry_run:
            return _admin_dry_run(ctx, "unpause", "Would unpause the faucet")
        ctx.controller.unpause(ctx.caller)
        ctx.output({"success": True, "action": "unpause", "paused": False})
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_blacklist(ctx: CLIContext, address: str, remove: bool = False) -> int:
    """Set or clear the blacklist flag of an address."""
    try:
        flag = not remove
        if ctx.dry_run:
            verb = "blacklist" if flag else "clear blacklist flag of"
            return _admin_dry_run(
                ctx, "blacklist", f"Would {verb} {address}", address=address, flag=flag
            )
        record = ctx.controller.set_blacklisted(ctx.caller, address, flag)
        ctx.output({"success": True, "action": "blacklist", "address": record.user, "flag": flag})
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_configure(
    ctx: CLIContext,
    tokens_per_request: str,
    cooldown: int,
    max_per_address: str,
    daily_limit: str,
) -> int:
    """Replace the faucet configuration."""
    try:
        decimals = ctx.ledger.decimals
        values = {
            "tokens_per_request": to_base_units(tokens_per_request, decimals),
            "cooldown_seconds": cooldown,
            "max_tokens_per_address": to_base_units(max_per_address, decimals),
            "daily_limit": to_base_units(daily_limit, decimals),
        }
        if ctx.dry_run:
            return _admin_dry_run(ctx, "configure", "Would replace the configuration", **values)
        ctx.controller.configure_faucet(ctx.caller, **values)
        ctx.output({"success": True, "action": "configure", **values})
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_withdraw(ctx: CLIContext, amount_str: str) -> int:
    """Withdraw faucet tokens to the administrator."""
    try:
        amount = ctx.amount(amount_str)
        if ctx.dry_run:
            return _admin_dry_run(
                ctx, "withdraw", f"Would withdraw {ctx.units(amount)}", amount=ctx.units(amount)
            )
        record = ctx.controller.withdraw_tokens(ctx.caller, amount)
        ctx.output(
            {
                "success": True,
                "action": "withdraw",
                "recipient": record.recipient,
                "amount": ctx.units(record.amount),
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_emergency_withdraw(ctx: CLIContext, token_address: str, amount_str: str) -> int:
    """Recover any token held by the faucet."""
    try:
        ledger = ctx.ledger_for(token_address)
        amount = to_base_units(amount_str, ledger.decimals)
        if ctx.dry_run:
            return _admin_dry_run(
                ctx,
                "emergency_withdraw",
                f"Would recover {amount_str} of {ledger.address}",
                asset=ledger.address,
                amount=from_base_units(amount, ledger.decimals),
            )
        record = ctx.controller.emergency_withdraw(ctx.caller, ledger, amount)
        ctx.output(
            {
                "success": True,
                "action": "emergency_withdraw",
                "asset": record.asset,
                "amount": from_base_units(record.amount, ledger.decimals),
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def _parse_transfers(ctx: CLIContext, transfers: list[str]) -> tuple[list[str], list[int]]:
    recipients: list[str] = []
    amounts: list[int] = []
    for transfer in transfers:
        address, sep, amount_str = transfer.partition("=")
        if not sep:
            raise ValueError(f"Expected ADDRESS=AMOUNT, got {transfer!r}")
        recipients.append(address)
        amounts.append(to_base_units(amount_str, ctx.ledger.decimals))
    return recipients, amounts


def cmd_admin_batch(ctx: CLIContext, transfers: list[str]) -> int:
    """Distribute arbitrary amounts to several addresses."""
    try:
        recipients, amounts = _parse_transfers(ctx, transfers)
        if ctx.dry_run:
            return _admin_dry_run(
                ctx,
                "batch",
                f"Would send {ctx.units(sum(amounts))} to {len(recipients)} addresses",
                recipients=len(recipients),
                total=ctx.units(sum(amounts)),
            )
        records = ctx.controller.batch_distribute(ctx.caller, recipients, amounts)
        ctx.output(
            {
                "success": True,
                "action": "batch",
                "transfers": {r.user: ctx.units(r.amount) for r in records},
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_reset_daily(ctx: CLIContext) -> int:
    """Start a new daily epoch now."""
    try:
        if ctx.dry_run:
            return _admin_dry_run(ctx, "reset_daily", "Would reset the daily total")
        record = ctx.controller.reset_daily_limit(ctx.caller)
        ctx.output(
            {
                "success": True,
                "action": "reset_daily",
                "timestamp": record.timestamp,
                "previous_total": ctx.units(record.previous_total),
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def cmd_admin_transfer_ownership(ctx: CLIContext, address: str) -> int:
    """Hand administration to another address."""
    try:
        if ctx.dry_run:
            return _admin_dry_run(
                ctx, "transfer_ownership", f"Would make {address} the administrator"
            )
        record = ctx.controller.transfer_ownership(ctx.caller, address)
        ctx.output(
            {
                "success": True,
                "action": "transfer_ownership",
                "previous_owner": record.previous_owner,
                "new_owner": record.new_owner,
            }
        )
        return 0
    except Exception as e:
        return ctx.fail(e)


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help or start service mode (no CLI command specified).
    """
    try:
        config = TrickleConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)

    if args.command == "wallet":
        if args.wallet_command == "address":
            return cmd_wallet_address(ctx)
        elif args.wallet_command == "balance":
            return cmd_wallet_balance(ctx)
        else:
            print("Usage: trickle wallet [address|balance]", file=sys.stderr)
            return 1

    elif args.command == "faucet":
        if args.faucet_command == "status":
            return cmd_faucet_status(ctx)
        elif args.faucet_command == "user":
            return cmd_faucet_user(ctx, args.address)
        elif args.faucet_command == "request":
            return cmd_faucet_request(ctx, args.address)
        elif args.faucet_command == "deposit":
            return cmd_faucet_deposit(ctx, args.amount)
        else:
            print("Usage: trickle faucet [status|user|request|deposit]", file=sys.stderr)
            return 1

    elif args.command == "admin":
        if args.admin_command == "pause":
            return cmd_admin_pause(ctx)
        elif args.admin_command == "unpause":
            return cmd_admin_unpause(ctx)
        elif args.admin_command == "blacklist":
            return cmd_admin_blacklist(ctx, args.address, args.remove)
        elif args.admin_command == "configure":
            return cmd_admin_configure(
                ctx, args.tokens_per_request, args.cooldown, args.max_per_address, args.daily_limit
            )
        elif args.admin_command == "withdraw":
            return cmd_admin_withdraw(ctx, args.amount)
        elif args.admin_command == "emergency-withdraw":
            return cmd_admin_emergency_withdraw(ctx, args.token, args.amount)
        elif args.admin_command == "batch":
            return cmd_admin_batch(ctx, args.transfers)
        elif args.admin_command == "reset-daily":
            return cmd_admin_reset_daily(ctx)
        elif args.admin_command == "transfer-ownership":
            return cmd_admin_transfer_ownership(ctx, args.address)
        else:
            print(
                "Usage: trickle admin [pause|unpause|blacklist|configure|withdraw|"
                "emergency-withdraw|batch|reset-daily|transfer-ownership]",
                file=sys.stderr,
            )
            return 1

    else:
        return -1
