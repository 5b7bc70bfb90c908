"""Repository for wallet storage operations."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tempwallet.storage.models import UserWallet


class WalletRepository:
    """Repository for user wallet rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_wallet(self, user_id: str) -> Optional[UserWallet]:
        stmt = select(UserWallet).where(UserWallet.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_wallet(
        self,
        user_id: str,
        seed: str,
        encrypted: bool,
        expiry_days: Optional[int] = None,
    ) -> UserWallet:
        """Store a newly generated wallet seed."""
        expires_at = None
        if expiry_days:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expiry_days)

        wallet = UserWallet(
            user_id=user_id,
            encrypted_seed=seed,
            encrypted=encrypted,
            expires_at=expires_at,
        )
        self.session.add(wallet)
        await self.session.flush()
        return wallet

    async def list_user_ids(self) -> list[str]:
        result = await self.session.execute(select(UserWallet.user_id))
        return list(result.scalars().all())

    async def update_seed(self, user_id: str, seed: str, encrypted: bool) -> None:
        """Replace the stored seed, e.g. after a master key rotation."""
        await self.session.execute(
            update(UserWallet)
            .where(UserWallet.user_id == user_id)
            .values(encrypted_seed=seed, encrypted=encrypted)
        )
