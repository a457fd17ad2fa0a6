"""Tests for trickle configuration management."""

import pytest
from pydantic import ValidationError

from trickle.config import LedgerBackend, TrickleConfig


class TestTrickleConfigDefaults:
    """Test default configuration values."""

    def test_faucet_defaults(self):
        """Faucet limits default to the reference configuration."""
        config = TrickleConfig()

        assert config.ledger == LedgerBackend.WEB3
        assert config.tokens_per_request == "10"
        assert config.cooldown_seconds == 3600
        assert config.max_tokens_per_address == "100"
        assert config.daily_limit == "1000"
        assert config.admin_address is None
        assert config.event_history == 1024

    def test_memory_token_defaults(self):
        config = TrickleConfig()

        assert config.token_name == "Test Token"
        assert config.token_symbol == "TEST"
        assert config.token_initial_supply == "10000"
        assert config.token_cap == "100000"
        assert config.faucet_supply == "5000"

    def test_observability_defaults(self):
        """Observability settings have correct defaults."""
        config = TrickleConfig()

        assert config.http_port == 8080
        assert config.log_level == "INFO"
        assert config.log_format == "json"
        assert config.redis_url == "redis://localhost:6379"
        assert config.redis_prefix == "trickle"


class TestTrickleConfigEnvVars:
    """Test environment variable loading."""

    def test_all_env_vars(self, monkeypatch):
        """Config loads all environment variables correctly."""
        monkeypatch.setenv("TRICKLE_LEDGER", "memory")
        monkeypatch.setenv("TRICKLE_RPC_ENDPOINT", "http://rpc.example.com:8545")
        monkeypatch.setenv("TRICKLE_TOKEN_ADDRESS", "0x52908400098527886E0F7030069857D2E4169EE7")
        monkeypatch.setenv("TRICKLE_CHAIN_ID", "31337")
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", "0xdeadbeef")
        monkeypatch.setenv("TRICKLE_TOKENS_PER_REQUEST", "2.5")
        monkeypatch.setenv("TRICKLE_COOLDOWN_SECONDS", "60")
        monkeypatch.setenv("TRICKLE_MAX_TOKENS_PER_ADDRESS", "25")
        monkeypatch.setenv("TRICKLE_DAILY_LIMIT", "250")
        monkeypatch.setenv("TRICKLE_ADMIN_ADDRESS", "0x1111111111111111111111111111111111111111")
        monkeypatch.setenv("REDIS_URL", "redis://redis:6379/1")
        monkeypatch.setenv("TRICKLE_HTTP_PORT", "9090")
        monkeypatch.setenv("TRICKLE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TRICKLE_LOG_FORMAT", "text")

        config = TrickleConfig()

        assert config.ledger == LedgerBackend.MEMORY
        assert config.rpc_endpoint == "http://rpc.example.com:8545"
        assert config.chain_id == 31337
        assert config.wallet_private_key.get_secret_value() == "0xdeadbeef"
        assert config.tokens_per_request == "2.5"
        assert config.cooldown_seconds == 60
        assert config.max_tokens_per_address == "25"
        assert config.daily_limit == "250"
        assert config.admin_address == "0x1111111111111111111111111111111111111111"
        assert config.redis_url == "redis://redis:6379/1"
        assert config.http_port == 9090
        assert config.log_level == "DEBUG"
        assert config.log_format == "text"

    def test_private_key_is_secret(self, monkeypatch):
        """Private key is not exposed in repr."""
        monkeypatch.setenv("TRICKLE_WALLET_PRIVATE_KEY", "0xdeadbeef")

        config = TrickleConfig()

        assert "deadbeef" not in repr(config)


class TestTrickleConfigValidation:
    """Test configuration validation."""

    def test_unknown_ledger_rejected(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_LEDGER", "sqlite")
        with pytest.raises(ValidationError):
            TrickleConfig()

    def test_event_history_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_EVENT_HISTORY", "0")
        with pytest.raises(ValidationError):
            TrickleConfig()

    def test_negative_cooldown_rejected(self, monkeypatch):
        monkeypatch.setenv("TRICKLE_COOLDOWN_SECONDS", "-1")
        with pytest.raises(ValidationError):
            TrickleConfig()

    @pytest.mark.parametrize("port", ["0", "70000"])
    def test_http_port_range(self, monkeypatch, port):
        monkeypatch.setenv("TRICKLE_HTTP_PORT", port)
        with pytest.raises(ValidationError):
            TrickleConfig()
