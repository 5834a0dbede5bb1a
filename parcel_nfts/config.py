"""
Centralized Configuration Management

This module provides centralized configuration management for the minting workflows.
It loads and validates configuration from environment variables and .env files,
organized into nested sections.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FACILITATOR_ADDRESS = "0x45708C2Ac90A671e2C642cA14002C6f9C0750057"


class LedgerConfig(BaseSettings):
    """Progress ledger storage configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    db_path: str = "data/progress.db"


class FeesConfig(BaseSettings):
    """Facilitator fees, royalties and append pricing."""

    model_config = SettingsConfigDict(env_prefix="FEES_")

    facilitator_address: str = DEFAULT_FACILITATOR_ADDRESS
    treasury_address: str = DEFAULT_FACILITATOR_ADDRESS

    # Percent of each mint payment kept by the facilitator
    mint_fee_percent: float = 5
    # Percent of secondary sales kept by the facilitator when there is no public mint
    royalty_fee_percent: float = 2.5
    denominator: int = 10_000

    # Append pricing, in ROSE
    cost_per_file: float = 3
    cost_per_gb: float = 50


class StorageConfig(BaseSettings):
    """Content-addressed storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    nft_storage_api_url: str = "https://api.nft.storage"
    nft_storage_api_key: Optional[str] = None
    nft_storage_gateway_url: str = "https://nftstorage.link/ipfs"
    upload_timeout: float = 120.0


class NetworkConfig(BaseSettings):
    """Chain identification."""

    model_config = SettingsConfigDict(env_prefix="NETWORK_")

    mainnet_chain_id: int = 0xA516
    testnet_chain_ids: List[int] = [0xA515]
    future_parcel_nft_interface_id: str = "0xf6b2dddc"


class BridgeConfig(BaseSettings):
    """Escrow bridge polling configuration."""

    model_config = SettingsConfigDict(env_prefix="BRIDGE_")

    timeout_seconds: int = 15
    poll_interval_seconds: float = 1.0


class AppConfig(BaseSettings):
    """
    Centralized application configuration with nested sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    log_level: str = "INFO"
    log_format: str = "text"
    log_file: Optional[str] = None

    # Nested configuration sections
    ledger: LedgerConfig = LedgerConfig()
    fees: FeesConfig = FeesConfig()
    storage: StorageConfig = StorageConfig()
    network: NetworkConfig = NetworkConfig()
    bridge: BridgeConfig = BridgeConfig()


def create_settings() -> AppConfig:
    """Create settings instance from environment variables and .env files only."""
    return AppConfig()


settings = create_settings()


def get_settings() -> AppConfig:
    """Get the global settings instance."""
    return settings
