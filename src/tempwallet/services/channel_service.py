"""Channel funding use case."""

import logging
from typing import Any

from tempwallet.chains import ChainRegistry, to_smallest_unit
from tempwallet.custody.coordinator import CustodyCreditCoordinator
from tempwallet.errors import ValidationError
from tempwallet.wallet.base import WalletProvider

logger = logging.getLogger(__name__)


class ChannelService:
    def __init__(
        self,
        wallet_provider: WalletProvider,
        coordinator: CustodyCreditCoordinator,
        registry: ChainRegistry,
    ):
        self.wallet_provider = wallet_provider
        self.coordinator = coordinator
        self.registry = registry

    async def fund_channel(
        self, user_id: str, chain: str, asset: str, amount: str
    ) -> dict[str, Any]:
        """Move unified-balance funds into the user's (chain, token) channel.

        Reuses the open channel when there is one.
        """
        chain_id = self.registry.resolve_chain_id(chain)
        token_address = self.registry.resolve_token_address(chain, asset)
        units = to_smallest_unit(amount, self.registry.get_decimals(asset))
        if units <= 0:
            raise ValidationError(f"Amount must be positive: {amount}")

        user_address = await self.wallet_provider.get_wallet_address(user_id, chain)
        channel_id = await self.coordinator.fund_channel(
            user_id, user_address, chain_id, token_address, units
        )
        logger.info(f"Funded channel {channel_id[:10]}... with {amount} {asset}")
        return {
            "channel_id": channel_id,
            "chain_id": chain_id,
            "amount": str(units),
            "message": f"Funded channel with {amount} {asset}",
        }
