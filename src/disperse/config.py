"""
Configuration management for disperse.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROVISIONING_CAPACITY = 12
DEFAULT_TRANSFER_CAPACITY = 18
DEFAULT_ANNOTATION_TEXT = "Bulk transfer"


class NetworkType(str, Enum):
    """Cardano network types."""
    MAINNET = "mainnet"
    PREPROD = "preprod"
    PREVIEW = "preview"


class DisperseConfig(BaseSettings):
    """
    Configuration settings for bulk transfer planning.

    All settings can be configured via environment variables with the DISPERSE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="DISPERSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.PREPROD,
        description="Cardano network to connect to"
    )

    # Blockfrost settings
    blockfrost_project_id: Optional[str] = Field(
        default=None,
        description="Blockfrost project ID for API access"
    )
    blockfrost_base_url: Optional[str] = Field(
        default=None,
        description="Custom Blockfrost base URL (optional)"
    )

    # Packing parameters
    provisioning_capacity: int = Field(
        default=DEFAULT_PROVISIONING_CAPACITY,
        ge=1,
        description="Maximum provisioning operations per bundle"
    )
    transfer_capacity: int = Field(
        default=DEFAULT_TRANSFER_CAPACITY,
        ge=1,
        description="Maximum transfer operations per bundle (annotation excluded)"
    )
    annotation_text: str = Field(
        default=DEFAULT_ANNOTATION_TEXT,
        description="Message appended to every transfer bundle"
    )

    # Existence lookups
    lookup_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of account lookups in flight"
    )

    # Output amounts (lovelace)
    min_output_lovelace: int = Field(
        default=1_500_000,
        ge=0,
        description="Lovelace attached to native asset transfer outputs"
    )
    provisioning_lovelace: int = Field(
        default=1_000_000,
        ge=0,
        description="Lovelace sent to activate an unseen recipient address"
    )

    # Dispatch settings
    dispatch_chunk_size: int = Field(
        default=5,
        ge=1,
        description="Number of bundles sent concurrently"
    )
    dispatch_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay between dispatch chunks"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def blockfrost_url(self) -> str:
        """Get the appropriate Blockfrost URL based on network."""
        if self.blockfrost_base_url:
            return self.blockfrost_base_url

        network_urls = {
            NetworkType.MAINNET: "https://cardano-mainnet.blockfrost.io/api/v0",
            NetworkType.PREPROD: "https://cardano-preprod.blockfrost.io/api/v0",
            NetworkType.PREVIEW: "https://cardano-preview.blockfrost.io/api/v0",
        }
        return network_urls.get(self.network, "https://cardano-preprod.blockfrost.io/api/v0")


# Global config instance
_config: Optional[DisperseConfig] = None


def get_config() -> DisperseConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = DisperseConfig()
    return _config


def set_config(config: DisperseConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
