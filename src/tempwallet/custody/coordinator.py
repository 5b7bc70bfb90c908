"""Custody to unified-balance credit coordination.

Funds deposited into the custody contract only become spendable off-chain
once a channel for (user, chain, token) has been resized with them. The
coordinator finds or creates that channel and resizes it, and never touches
the user's wallet while doing so: no approve, no deposit, no signing.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from tempwallet.chains import ChainRegistry
from tempwallet.custody.contract import CustodyContract, DepositParams, WithdrawParams
from tempwallet.errors import NotAuthenticatedError, extract_existing_channel_id
from tempwallet.network.base import (
    ChannelInfo,
    CreateChannelParams,
    NetworkClient,
    ResizeChannelParams,
)
from tempwallet.utils.locks import KeyedLock

logger = logging.getLogger(__name__)

OPEN_CHANNEL_STATUSES = frozenset({"open", "active"})


@dataclass
class CreditRequest:
    """Credit already-deposited custody funds to the unified balance."""

    user_id: str
    chain: str
    user_address: str
    token_address: str
    amount: int  # smallest units


@dataclass
class CreditResult:
    channel_id: str
    credited: bool = True


class CustodyCreditCoordinator:
    """Drives custody contract calls and channel acquisition for crediting."""

    def __init__(
        self,
        custody: CustodyContract,
        network: NetworkClient,
        registry: ChainRegistry,
        lock_timeout: Optional[float] = 30.0,
    ):
        self.custody = custody
        self.network = network
        self.registry = registry
        self.lock_timeout = lock_timeout

    # On-chain

    async def approve_token(self, params: DepositParams) -> str:
        return await self.custody.approve_token(params)

    async def deposit(self, params: DepositParams) -> str:
        return await self.custody.deposit(params)

    async def withdraw(self, params: WithdrawParams) -> str:
        return await self.custody.withdraw(params)

    # Off-chain

    async def authenticate(self, user_id: str, user_address: str) -> None:
        await self.network.authenticate(user_id, user_address)

    async def get_unified_balance(self, user_address: str, asset: str) -> str:
        """Get the unified balance for one asset as a decimal string.

        Missing assets report "0". Any query failure is reported as
        NotAuthenticatedError with the original error chained.
        """
        account_id = user_address.lower()
        try:
            entries = await self.network.get_unified_balance(account_id)
        except Exception as e:
            logger.warning(f"Unified balance query failed for {account_id[:10]}...: {e}")
            raise NotAuthenticatedError() from e

        wanted = asset.lower()
        for entry in entries:
            if entry.asset.lower() == wanted:
                return entry.amount
        return "0"

    async def acquire_channel(
        self, user_address: str, chain_id: int, token_address: str
    ) -> str:
        """Return the id of an open channel, creating one if there is none.

        A create that conflicts with an existing channel (e.g. one opened by
        another process) reuses that channel's id.
        """
        channels = await self.network.get_channels(user_address)
        existing = self._first_open(channels)
        if existing is not None:
            logger.debug(f"Reusing channel {existing.channel_id[:10]}...")
            return existing.channel_id

        try:
            created = await self.network.create_channel(CreateChannelParams(
                user_address=user_address,
                chain_id=chain_id,
                token_address=token_address,
                initial_balance=0,
            ))
        except Exception as e:
            channel_id = extract_existing_channel_id(e)
            if channel_id is None:
                raise
            logger.info(f"Channel already exists, reusing {channel_id[:10]}...")
            return channel_id

        logger.info(f"Created channel {created.channel_id[:10]}... on chain {chain_id}")
        return created.channel_id

    @staticmethod
    def _first_open(channels: list[ChannelInfo]) -> Optional[ChannelInfo]:
        for channel in channels:
            if (channel.status or "").lower() in OPEN_CHANNEL_STATUSES:
                return channel
        return None

    async def fund_channel(
        self, user_id: str, user_address: str, chain_id: int, token_address: str, amount: int
    ) -> str:
        """Acquire the (user, chain, token) channel and resize it by ``amount``."""
        async with KeyedLock(
            (user_address.lower(), chain_id, token_address.lower()),
            timeout=self.lock_timeout,
            operation="channel_credit",
        ):
            await self.authenticate(user_id, user_address)
            channel_id = await self.acquire_channel(user_address, chain_id, token_address)
            await self.network.resize_channel(ResizeChannelParams(
                channel_id=channel_id,
                chain_id=chain_id,
                amount=amount,
                user_address=user_address,
                token_address=token_address,
                participants=[],
            ))
        return channel_id

    async def credit_unified_balance_from_custody(self, request: CreditRequest) -> CreditResult:
        """Move funds already in custody into the unified balance.

        Raises:
            UnsupportedChainError: before any network call
        """
        chain_id = self.registry.resolve_chain_id(request.chain)
        channel_id = await self.fund_channel(
            request.user_id, request.user_address, chain_id, request.token_address, request.amount
        )
        logger.info(
            f"Credited {request.amount} from custody for user {request.user_id} "
            f"via channel {channel_id[:10]}..."
        )
        return CreditResult(channel_id=channel_id, credited=True)
