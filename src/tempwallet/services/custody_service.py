"""Custody use cases: deposit, withdraw and credit to the unified balance."""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Any

from tempwallet.chains import ChainRegistry, from_smallest_unit, to_smallest_unit
from tempwallet.custody.contract import DepositParams, WithdrawParams
from tempwallet.custody.coordinator import CreditRequest, CustodyCreditCoordinator
from tempwallet.errors import ValidationError
from tempwallet.wallet.base import WalletProvider

logger = logging.getLogger(__name__)


class CustodyService:
    """Moves user funds between their wallet, custody and the unified balance."""

    def __init__(
        self,
        wallet_provider: WalletProvider,
        coordinator: CustodyCreditCoordinator,
        registry: ChainRegistry,
        index_timeout: float = 30.0,
        poll_interval: float = 2.0,
    ):
        self.wallet_provider = wallet_provider
        self.coordinator = coordinator
        self.registry = registry
        self.index_timeout = index_timeout
        self.poll_interval = poll_interval

    def _resolve(self, chain: str, asset: str, amount: str) -> tuple[int, str, int]:
        chain_id = self.registry.resolve_chain_id(chain)
        token_address = self.registry.resolve_token_address(chain, asset)
        units = to_smallest_unit(amount, self.registry.get_decimals(asset))
        if units <= 0:
            raise ValidationError(f"Amount must be positive: {amount}")
        return chain_id, token_address, units

    async def deposit_to_custody(
        self, user_id: str, chain: str, asset: str, amount: str
    ) -> dict[str, Any]:
        """Approve and deposit wallet funds into custody, then wait for indexing.

        Indexing delays are not errors: the final balance is reported whether
        or not the deposit has shown up yet.
        """
        chain_id, token_address, units = self._resolve(chain, asset, amount)
        user_address = await self.wallet_provider.get_wallet_address(user_id, chain)
        private_key = await self.wallet_provider.get_private_key(user_id, chain)

        params = DepositParams(
            user_private_key=private_key,
            user_address=user_address,
            token_address=token_address,
            amount=units,
            chain_id=chain_id,
        )
        logger.info(f"Deposit to custody: user={user_id} chain={chain} {amount} {asset}")

        approve_tx_hash = await self.coordinator.approve_token(params)
        deposit_tx_hash = await self.coordinator.deposit(params)

        await self.coordinator.authenticate(user_id, user_address)
        expected = Decimal(from_smallest_unit(units, self.registry.get_decimals(asset)))
        await self._wait_for_unified_balance(user_address, asset, expected)

        unified_balance = await self.coordinator.get_unified_balance(user_address, asset)
        return {
            "approve_tx_hash": approve_tx_hash,
            "deposit_tx_hash": deposit_tx_hash,
            "chain_id": chain_id,
            "amount": str(units),
            "asset": asset,
            "unified_balance": unified_balance,
            "message": f"Deposited {amount} {asset} to custody",
        }

    async def _wait_for_unified_balance(
        self, user_address: str, asset: str, expected: Decimal
    ) -> bool:
        """Poll until the unified balance reaches ``expected`` or time runs out."""
        deadline = time.monotonic() + self.index_timeout
        attempts = 0

        while time.monotonic() < deadline:
            attempts += 1
            try:
                balance = await self.coordinator.get_unified_balance(user_address, asset)
                if Decimal(balance) >= expected:
                    logger.info(f"Deposit indexed after {attempts} attempt(s)")
                    return True
            except Exception as e:
                logger.warning(f"Unified balance poll {attempts} failed: {e}")
            await asyncio.sleep(self.poll_interval)

        logger.warning(
            f"Deposit not indexed within {self.index_timeout}s for {user_address[:10]}... "
            f"(may still arrive)"
        )
        return False

    async def withdraw_from_custody(
        self, user_id: str, chain: str, asset: str, amount: str
    ) -> dict[str, Any]:
        chain_id, token_address, units = self._resolve(chain, asset, amount)
        user_address = await self.wallet_provider.get_wallet_address(user_id, chain)
        private_key = await self.wallet_provider.get_private_key(user_id, chain)

        tx_hash = await self.coordinator.withdraw(WithdrawParams(
            user_private_key=private_key,
            user_address=user_address,
            token_address=token_address,
            amount=units,
            chain_id=chain_id,
        ))
        return {
            "withdraw_tx_hash": tx_hash,
            "chain_id": chain_id,
            "amount": str(units),
            "asset": asset,
        }

    async def credit_from_custody(
        self, user_id: str, chain: str, asset: str, amount: str
    ) -> dict[str, Any]:
        """Credit funds already in custody to the unified balance.

        Safe to retry at the channel level; each call credits ``amount`` again.
        """
        _, token_address, units = self._resolve(chain, asset, amount)
        user_address = await self.wallet_provider.get_wallet_address(user_id, chain)

        result = await self.coordinator.credit_unified_balance_from_custody(CreditRequest(
            user_id=user_id,
            chain=chain,
            user_address=user_address,
            token_address=token_address,
            amount=units,
        ))
        return {
            "channel_id": result.channel_id,
            "credited": result.credited,
            "amount": str(units),
            "asset": asset,
        }

    async def get_unified_balance(self, user_id: str, chain: str, asset: str) -> dict[str, Any]:
        self.registry.resolve_token_address(chain, asset)
        user_address = await self.wallet_provider.get_wallet_address(user_id, chain)
        balance = await self.coordinator.get_unified_balance(user_address, asset)
        return {
            "wallet_address": user_address,
            "asset": asset.lower(),
            "balance": balance,
        }
