"""Application configuration using pydantic-settings.

Chain, token and custody lookups are plain maps so a new chain or asset is a
configuration change (JSON in the environment), not a code change.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHAIN_IDS: dict[str, int] = {
    "ethereum": 1,
    "base": 8453,
    "arbitrum": 42161,
    "avalanche": 43114,
}

DEFAULT_TOKEN_ADDRESSES: dict[str, dict[str, str]] = {
    "base": {
        "usdc": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "usdt": "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2",
    },
    "arbitrum": {
        "usdc": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        "usdt": "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
    },
    "ethereum": {
        "usdc": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "usdt": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    },
    "avalanche": {
        "usdc": "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
        "usdt": "0x9702230A8Ea53601f5cD2dc00fDBc13d4dF4A8c7",
    },
}

# Only Base mainnet has a published custody deployment so far
DEFAULT_CUSTODY_ADDRESSES: dict[int, str] = {
    8453: "0x490fb189DdE3a01B00be9BA5F41e3447FbC838b6",
}

DEFAULT_TOKEN_DECIMALS: dict[str, int] = {
    "usdc": 6,
    "usdt": 6,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/tempwallet.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=5005, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    dry_run: bool = Field(
        default=True, description="Simulate on-chain custody transactions (no broadcast)"
    )

    # ======================
    # Settlement network (clearnode)
    # ======================
    network_provider: str = Field(
        default="simulated", description="Settlement network client implementation"
    )
    application_name: str = Field(
        default="tempwallets-lightning", description="Application name used for auth"
    )
    session_ttl_seconds: int = Field(
        default=3600, description="Lifetime of an authenticated network session"
    )

    # ======================
    # Wallet
    # ======================
    master_key: Optional[str] = Field(
        default=None, description="Fernet key used to encrypt stored seed phrases"
    )
    wallet_expiry_days: Optional[int] = Field(
        default=None, description="Days until a provisioned wallet expires (None = never)"
    )

    # ======================
    # Chain RPC Endpoints
    # ======================
    ethereum_rpc_url: str = Field(default="https://eth.llamarpc.com", description="Ethereum RPC URL")
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")
    arbitrum_rpc_url: str = Field(
        default="https://arb1.arbitrum.io/rpc", description="Arbitrum RPC URL"
    )
    avalanche_rpc_url: str = Field(
        default="https://api.avax.network/ext/bc/C/rpc", description="Avalanche RPC URL"
    )

    # ======================
    # Chain / asset registry
    # ======================
    chain_ids: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_CHAIN_IDS))
    token_addresses: dict[str, dict[str, str]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_TOKEN_ADDRESSES.items()}
    )
    custody_addresses: dict[int, str] = Field(
        default_factory=lambda: dict(DEFAULT_CUSTODY_ADDRESSES)
    )
    token_decimals: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_TOKEN_DECIMALS)
    )

    # ======================
    # Custody flow timing
    # ======================
    receipt_timeout: float = Field(
        default=120.0, description="Seconds to wait for a transaction receipt"
    )
    deposit_index_timeout: float = Field(
        default=30.0, description="Seconds to wait for the network to index a custody deposit"
    )
    deposit_poll_interval: float = Field(
        default=2.0, description="Seconds between unified balance polls"
    )
    lock_timeout: float = Field(
        default=30.0, description="Seconds to wait for a per-channel lock"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_rpc_urls(self) -> dict[int, str]:
        """RPC URL per chain id for the configured chains."""
        by_name = {
            "ethereum": self.ethereum_rpc_url,
            "base": self.base_rpc_url,
            "arbitrum": self.arbitrum_rpc_url,
            "avalanche": self.avalanche_rpc_url,
        }
        return {
            chain_id: by_name[name]
            for name, chain_id in self.chain_ids.items()
            if name in by_name
        }

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "master_key": "***" if self.master_key else "(not set)",
            "network": {
                "provider": self.network_provider,
                "application": self.application_name,
            },
            "chains": {
                name: {
                    "chain_id": chain_id,
                    "custody": self.custody_addresses.get(chain_id, "(not set)"),
                    "assets": sorted(self.token_addresses.get(name, {})),
                }
                for name, chain_id in self.chain_ids.items()
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
