"""Base interface for wallet providers."""

from abc import ABC, abstractmethod


class WalletProvider(ABC):
    """Abstract base class for per-user custodial wallets.

    Implementations provision a wallet the first time a user is seen, so
    callers never need a separate "create wallet" step.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        pass

    @abstractmethod
    async def get_wallet_address(self, user_id: str, chain: str) -> str:
        """Get the user's address on a chain, provisioning the wallet if needed.

        Raises:
            UnsupportedChainError: chain is not configured
        """
        pass

    @abstractmethod
    async def get_private_key(self, user_id: str, chain: str) -> str:
        """Get the 0x-prefixed signing key for the user's address on a chain."""
        pass

    @abstractmethod
    async def get_all_wallet_addresses(self, user_id: str) -> dict[str, str]:
        """Get the user's address on every configured chain."""
        pass
