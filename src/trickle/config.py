"""Configuration management for trickle using Pydantic Settings."""

from enum import Enum

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerBackend(str, Enum):
    """Where the faucet's token lives."""

    WEB3 = "web3"
    MEMORY = "memory"


class TrickleConfig(BaseSettings):
    """trickle service configuration loaded from environment variables.

    Faucet amounts are in whole token units; they are scaled by the token's
    decimals when the controller is built.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Ledger
    ledger: LedgerBackend = Field(default=LedgerBackend.WEB3, alias="TRICKLE_LEDGER")
    rpc_endpoint: str | None = Field(default=None, alias="TRICKLE_RPC_ENDPOINT")
    token_address: str | None = Field(default=None, alias="TRICKLE_TOKEN_ADDRESS")
    chain_id: int | None = Field(default=None, alias="TRICKLE_CHAIN_ID")

    # Wallet
    wallet_private_key: SecretStr | None = Field(default=None, alias="TRICKLE_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(
        default=None, alias="TRICKLE_WALLET_PRIVATE_KEY_FILE"
    )

    # Faucet limits
    tokens_per_request: str = Field(default="10", alias="TRICKLE_TOKENS_PER_REQUEST")
    cooldown_seconds: int = Field(default=3600, alias="TRICKLE_COOLDOWN_SECONDS", ge=0)
    max_tokens_per_address: str = Field(default="100", alias="TRICKLE_MAX_TOKENS_PER_ADDRESS")
    daily_limit: str = Field(default="1000", alias="TRICKLE_DAILY_LIMIT")
    admin_address: str | None = Field(default=None, alias="TRICKLE_ADMIN_ADDRESS")
    event_history: int = Field(default=1024, alias="TRICKLE_EVENT_HISTORY", ge=1)

    # In-memory token
    token_name: str = Field(default="Test Token", alias="TRICKLE_TOKEN_NAME")
    token_symbol: str = Field(default="TEST", alias="TRICKLE_TOKEN_SYMBOL")
    token_initial_supply: str = Field(default="10000", alias="TRICKLE_TOKEN_INITIAL_SUPPLY")
    token_cap: str = Field(default="100000", alias="TRICKLE_TOKEN_CAP")
    faucet_supply: str = Field(default="5000", alias="TRICKLE_FAUCET_SUPPLY")

    # State store
    redis_url: str | None = Field(default="redis://localhost:6379", alias="REDIS_URL")
    redis_prefix: str = Field(default="trickle", alias="TRICKLE_REDIS_PREFIX")

    # Observability
    http_port: int = Field(default=8080, alias="TRICKLE_HTTP_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", alias="TRICKLE_LOG_LEVEL")
    log_format: str = Field(default="json", alias="TRICKLE_LOG_FORMAT")
