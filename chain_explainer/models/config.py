"""Configuration management using Pydantic settings."""

from typing import Optional, Literal
from pydantic import Field
from pydantic_settings import BaseSettings


class ExplainerSettings(BaseSettings):
    """Configuration for the chain explainer."""

    # ==================== Network Selection ====================
    bitcoin_network: Literal["mainnet", "testnet"] = Field(
        default="mainnet",
        description="Active Bitcoin network"
    )
    stacks_network: Literal["mainnet", "testnet"] = Field(
        default="mainnet",
        description="Active Stacks network"
    )
    default_sidechain: Literal["thunder", "zside", "bitnames"] = Field(
        default="thunder",
        description="Sidechain used when none is specified"
    )

    # ==================== Provider Settings ====================
    mempool_space_url: str = Field(
        default="https://mempool.space",
        description="Mempool.space root URL (network path is appended)"
    )
    blockstream_url: str = Field(
        default="https://blockstream.info",
        description="Blockstream.info root URL (secondary Bitcoin provider)"
    )
    hiro_mainnet_url: str = Field(default="https://api.mainnet.hiro.so")
    hiro_testnet_url: str = Field(default="https://api.testnet.hiro.so")
    sidechain_api_root: str = Field(
        default="https://api.layertwolabs.com",
        description="Root URL of the BIP300 sidechain API family"
    )
    hiro_api_key: Optional[str] = Field(
        default=None,
        description="Optional Hiro API key, sent as x-api-key"
    )
    sidechain_api_key: Optional[str] = Field(
        default=None,
        description="Optional sidechain API key, sent as a bearer token"
    )
    proxy_url: Optional[str] = Field(
        default=None,
        description="Forward every request through this proxy endpoint (?url=<target>)"
    )
    request_timeout: float = Field(default=10.0, description="Request timeout in seconds")

    # ==================== Pricing & Fee Tiers ====================
    btc_price_usd: float = Field(default=60000.0, description="BTC/USD rate used for fee display")
    stx_price_usd: float = Field(default=0.45, description="STX/USD rate used for fee display")

    stacks_fee_low: float = Field(default=0.001, description="STX fee at or below which cost is low")
    stacks_fee_high: float = Field(default=0.009, description="STX fee at or above which cost is high")
    bitcoin_fee_low: float = Field(default=0.00002, description="BTC fee at or below which cost is low")
    bitcoin_fee_high: float = Field(default=0.0002, description="BTC fee at or above which cost is high")
    sidechain_fee_low: float = Field(default=0.00000005, description="Sidechain fee low tier (BTC)")
    sidechain_fee_high: float = Field(default=0.0000005, description="Sidechain fee high tier (BTC)")

    # ==================== Logging Settings ====================
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size_mb: int = Field(default=50, ge=1, description="Max log file size in MB")
    log_backup_count: int = Field(default=3, ge=0, description="Rotated log files to keep")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CHAIN_EXPLAINER_"
        case_sensitive = False
        extra = "ignore"

    def get_source_info(self) -> dict:
        """Get information about the configured data sources."""
        return {
            "bitcoin_network": self.bitcoin_network,
            "stacks_network": self.stacks_network,
            "default_sidechain": self.default_sidechain,
            "proxied": bool(self.proxy_url),
            "has_hiro_key": bool(self.hiro_api_key),
            "has_sidechain_key": bool(self.sidechain_api_key),
        }
