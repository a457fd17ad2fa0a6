"""Tests for component wiring."""

from unittest.mock import MagicMock, patch

import pytest
from conftest import FAUCET, OWNER

from trickle.components import (
    MEMORY_FAUCET_ADDRESS,
    build_components,
    build_wallet,
    build_web3_ledger,
)
from trickle.config import TrickleConfig
from trickle.core.addresses import checksum_address
from trickle.core.wallet import EnvironmentWallet, EphemeralWallet
from trickle.faucet.events import EventLog
from trickle.faucet.errors import InvalidConfig
from trickle.faucet.store import MemoryStateStore, StateStoreUnavailable

TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f3c8e7b8e5e1b2a3b4"


@pytest.fixture
def memory_config(monkeypatch):
    monkeypatch.setenv("TRICKLE_LEDGER", "memory")
    return TrickleConfig()


class TestBuildWallet:
    """Tests for build_wallet."""

    def test_memory_mode_without_key_is_ephemeral(self, memory_config):
        assert isinstance(build_wallet(memory_config), EphemeralWallet)

    def test_configured_key_wins(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_LEDGER", "memory")
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", TEST_KEY)

        assert isinstance(build_wallet(TrickleConfig()), EnvironmentWallet)

    def test_web3_mode_requires_key(self):
        with pytest.raises(ValueError, match="No wallet configured"):
            build_wallet(TrickleConfig())


class TestBuildWeb3Ledger:
    """Tests for build_web3_ledger."""

    def test_requires_endpoint_and_token(self):
        with pytest.raises(ValueError, match="TRICKLE_RPC_ENDPOINT"):
            build_web3_ledger(TrickleConfig(), MagicMock())

    def test_chain_id_mismatch(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_RPC_ENDPOINT", "http://localhost:8545")
        monkeypatch.setenv("TRICKLE_TOKEN_ADDRESS", "0x52908400098527886E0F7030069857D2E4169EE7")
        monkeypatch.setenv("TRICKLE_CHAIN_ID", "1")
        ledger = MagicMock(chain_id=31337)

        with patch("trickle.components.Erc20Ledger.from_rpc", return_value=ledger):
            with pytest.raises(ValueError, match="expected 1"):
                build_web3_ledger(TrickleConfig(), MagicMock())


class TestBuildComponents:
    """Tests for build_components."""

    def test_memory_faucet_is_funded(self, memory_config):
        components = build_components(memory_config)

        assert isinstance(components.store, MemoryStateStore)
        assert components.ledger.holder == checksum_address(MEMORY_FAUCET_ADDRESS)
        assert components.controller.get_faucet_balance() == 5000 * 10**18
        assert components.token.balance_of(components.wallet.address) == 5000 * 10**18

    def test_amounts_scaled_by_decimals(self, memory_config):
        snapshot = build_components(memory_config).controller.get_faucet_config()

        assert snapshot.tokens_per_request == 10 * 10**18
        assert snapshot.max_tokens_per_address == 100 * 10**18
        assert snapshot.daily_limit == 1000 * 10**18
        assert snapshot.cooldown_seconds == 3600

    def test_owner_defaults_to_wallet(self, memory_config):
        components = build_components(memory_config)
        assert components.controller.owner == components.wallet.address

    def test_admin_address_overrides_owner(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_LEDGER", "memory")
        monkeypatch.setenv("TRICKLE_ADMIN_ADDRESS", OWNER)

        components = build_components(TrickleConfig())

        assert components.controller.owner == OWNER

    def test_uses_given_event_log(self, memory_config):
        events = EventLog()
        components = build_components(memory_config, events=events)

        assert components.controller.events is events

    def test_web3_uses_redis_store(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", TEST_KEY)
        monkeypatch.setenv("TRICKLE_ADMIN_ADDRESS", OWNER)
        ledger = MagicMock(decimals=18, holder=FAUCET)
        ledger.balance_of.return_value = 0
        store = MemoryStateStore()

        with (
            patch("trickle.components.build_web3_ledger", return_value=ledger),
            patch("trickle.components.create_state_store", return_value=store) as create,
        ):
            components = build_components(TrickleConfig())

        create.assert_called_once_with(
            "redis://localhost:6379", prefix="trickle", required=True
        )
        assert components.store is store
        assert components.token is None

    def test_web3_requires_admin_address(self, monkeypatch):
        """The web3 wallet holds custody, so an administrator must be named."""
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", TEST_KEY)

        with patch("trickle.components.build_web3_ledger") as build_ledger:
            with pytest.raises(ValueError, match="TRICKLE_ADMIN_ADDRESS"):
                build_components(TrickleConfig())
        build_ledger.assert_not_called()

    def test_web3_admin_cannot_be_custody(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", TEST_KEY)
        monkeypatch.setenv("TRICKLE_ADMIN_ADDRESS", FAUCET)
        ledger = MagicMock(decimals=18, holder=FAUCET)

        with (
            patch("trickle.components.build_web3_ledger", return_value=ledger),
            patch("trickle.components.create_state_store", return_value=MemoryStateStore()),
        ):
            with pytest.raises(InvalidConfig, match="custody"):
                build_components(TrickleConfig())

    def test_web3_fails_when_redis_unreachable(self, monkeypatch):
        """A configured but unreachable Redis stops a web3 faucet from starting."""
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", TEST_KEY)
        monkeypatch.setenv("TRICKLE_ADMIN_ADDRESS", OWNER)
        ledger = MagicMock(decimals=18, holder=FAUCET)

        with (
            patch("trickle.components.build_web3_ledger", return_value=ledger),
            patch("redis.Redis.from_url", side_effect=ConnectionError("refused")),
        ):
            with pytest.raises(StateStoreUnavailable, match="unreachable"):
                build_components(TrickleConfig())

    def test_memory_mode_ignores_redis(self, memory_config):
        with patch("redis.Redis.from_url") as from_url:
            components = build_components(memory_config)

        from_url.assert_not_called()
        assert isinstance(components.store, MemoryStateStore)

    def test_event_history_from_config(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_LEDGER", "memory")
        monkeypatch.setenv("TRICKLE_EVENT_HISTORY", "2")
        components = build_components(TrickleConfig())

        for _ in range(3):
            components.controller.reset_daily_limit(components.controller.owner)

        assert len(components.controller.events) == 2
