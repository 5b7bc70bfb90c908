"""Wallet provider factory."""

from typing import Optional

from tempwallet.chains import get_chain_registry
from tempwallet.config import get_settings
from tempwallet.crypto import get_encryptor
from tempwallet.wallet.base import WalletProvider
from tempwallet.wallet.hd import HDWalletProvider

# Singleton instance
_wallet_provider: Optional[WalletProvider] = None


def get_wallet_provider() -> WalletProvider:
    """Get the configured wallet provider."""
    global _wallet_provider

    if _wallet_provider is None:
        _wallet_provider = HDWalletProvider(
            registry=get_chain_registry(),
            encryptor=get_encryptor(),
            expiry_days=get_settings().wallet_expiry_days,
        )
    return _wallet_provider


def reset_wallet_provider() -> None:
    """Reset provider instance (useful for testing)."""
    global _wallet_provider
    _wallet_provider = None
