from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """General application settings."""

    name: str = "DAO Dashboard"
    debug: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None


class EthereumSettings(BaseModel):
    """Settings for the JSON-RPC node the wallet provider talks to."""

    provider_uri: str = Field(
        default="http://127.0.0.1:8545",
        description="JSON-RPC URL of a node with unlocked accounts (Hardhat, Anvil)",
    )
    # Timeout for RPC calls (seconds)
    rpc_timeout: int = Field(default=60, gt=0)
    # Account to connect as; defaults to the first account the node reports
    account: Optional[str] = None


class GovernanceSettings(BaseModel):
    """Settings for the governance contract and write confirmation."""

    dao_address: Optional[str] = Field(default=None, description="Governance contract address")
    confirmation_timeout_seconds: float = Field(default=120, gt=0)
    poll_latency_seconds: float = Field(default=0.5, gt=0)
    # Upper bound on concurrent getProposal calls during a load
    max_concurrent_reads: int = Field(default=10, gt=0)


class Settings(BaseSettings):
    """
    Main Settings class that composes all sub-settings.
    Nested values are read from env vars joined with "__", e.g. GOVERNANCE__DAO_ADDRESS.
    """

    app: AppSettings = Field(default_factory=AppSettings)
    ethereum: EthereumSettings = Field(default_factory=EthereumSettings)
    governance: GovernanceSettings = Field(default_factory=GovernanceSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


# Singleton instance
settings = Settings()
