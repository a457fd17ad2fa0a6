"""Builds the faucet's components from configuration.

Shared by the long-running service and the CLI so that both act on the
same ledger and the same persisted faucet state.
"""

import logging
from dataclasses import dataclass

from trickle.config import LedgerBackend, TrickleConfig
from trickle.core.units import to_base_units
from trickle.core.wallet import EphemeralWallet, WalletProvider, load_wallet
from trickle.faucet.controller import DistributionController
from trickle.faucet.events import EventLog
from trickle.faucet.store import StateStore, create_state_store
from trickle.ledger import Erc20Ledger, MemoryToken, TokenLedger
from trickle.observability.metrics import record_event

logger = logging.getLogger(__name__)

# Custody account of the in-memory faucet, distinct from the deployer
MEMORY_FAUCET_ADDRESS = "0x000000000000000000000000000000000000fa0c"


@dataclass
class Components:
    """Everything a faucet process needs."""

    wallet: WalletProvider
    ledger: TokenLedger
    store: StateStore
    controller: DistributionController
    token: MemoryToken | None = None


def build_wallet(config: TrickleConfig) -> WalletProvider:
    """Operator wallet; the in-memory ledger accepts a throwaway one.

    Raises
    ------
    ValueError
        If no key is configured for the web3 ledger.
    """
    if config.ledger == LedgerBackend.MEMORY and not (
        config.wallet_private_key or config.wallet_private_key_file
    ):
        wallet = EphemeralWallet()
        logger.warning(
            "No wallet configured, using ephemeral wallet",
            extra={"address": wallet.address},
        )
        return wallet
    return load_wallet(config.wallet_private_key, config.wallet_private_key_file)


def build_memory_ledger(
    config: TrickleConfig, wallet: WalletProvider
) -> tuple[MemoryToken, TokenLedger]:
    """Create the in-memory token and fund the faucet from the deployer."""
    decimals = 18
    token = MemoryToken(
        name=config.token_name,
        symbol=config.token_symbol,
        initial_supply=to_base_units(config.token_initial_supply, decimals),
        cap=to_base_units(config.token_cap, decimals),
        owner=wallet.address,
        decimals=decimals,
    )
    supply = to_base_units(config.faucet_supply, decimals)
    if supply > 0:
        token.transfer(wallet.address, MEMORY_FAUCET_ADDRESS, supply)
    logger.info(
        "In-memory token deployed",
        extra={"token": token.address, "symbol": token.symbol, "faucet_supply": supply},
    )
    return token, token.connect(MEMORY_FAUCET_ADDRESS)


def build_web3_ledger(config: TrickleConfig, wallet: WalletProvider) -> Erc20Ledger:
    """Connect to the ERC-20 token over RPC.

    Raises
    ------
    ValueError
        If the RPC endpoint or token address is missing, or the chain ID
        does not match the configured one.
    """
    if not config.rpc_endpoint or not config.token_address:
        raise ValueError(
            "TRICKLE_RPC_ENDPOINT and TRICKLE_TOKEN_ADDRESS are required for the web3 ledger"
        )
    ledger = Erc20Ledger.from_rpc(config.rpc_endpoint, config.token_address, wallet)
    if config.chain_id is not None and ledger.chain_id != config.chain_id:
        raise ValueError(f"Connected to chain {ledger.chain_id}, expected {config.chain_id}")
    return ledger


def build_components(
    config: TrickleConfig,
    events: EventLog | None = None,
    wallet: WalletProvider | None = None,
) -> Components:
    """Wire wallet, ledger, state store and controller.

    Raises
    ------
    ValueError
        If the wallet, ledger, administrator or amounts are misconfigured.
    StateStoreUnavailable
        If Redis is configured for the web3 ledger but unreachable.
    InvalidConfig
        If the faucet limits are inconsistent.
    """
    wallet = wallet or build_wallet(config)
    token = None
    if config.ledger == LedgerBackend.MEMORY:
        token, ledger = build_memory_ledger(config, wallet)
        # In-memory balances do not survive the process, neither should faucet state
        store = create_state_store(None)
    else:
        if not config.admin_address:
            raise ValueError(
                "TRICKLE_ADMIN_ADDRESS is required for the web3 ledger;"
                " the wallet is the custody account"
            )
        ledger = build_web3_ledger(config, wallet)
        store = create_state_store(
            config.redis_url, prefix=config.redis_prefix, required=True
        )

    if events is None:
        events = EventLog(history=config.event_history)
        events.subscribe(record_event)

    decimals = ledger.decimals
    controller = DistributionController(
        ledger,
        tokens_per_request=to_base_units(config.tokens_per_request, decimals),
        cooldown_seconds=config.cooldown_seconds,
        max_tokens_per_address=to_base_units(config.max_tokens_per_address, decimals),
        daily_limit=to_base_units(config.daily_limit, decimals),
        owner=config.admin_address or wallet.address,
        store=store,
        events=events,
    )
    return Components(wallet=wallet, ledger=ledger, store=store, controller=controller, token=token)
