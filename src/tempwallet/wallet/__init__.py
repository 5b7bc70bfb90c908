"""Custodial wallet providers."""

from tempwallet.wallet.base import WalletProvider
from tempwallet.wallet.factory import get_wallet_provider, reset_wallet_provider
from tempwallet.wallet.hd import HDWalletProvider, derive_evm_account

__all__ = [
    "HDWalletProvider",
    "WalletProvider",
    "derive_evm_account",
    "get_wallet_provider",
    "reset_wallet_provider",
]
