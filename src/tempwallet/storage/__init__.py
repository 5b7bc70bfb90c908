"""Local persistence for wallet seeds."""

from tempwallet.storage.database import close_db, get_db, init_db
from tempwallet.storage.models import Base, UserWallet
from tempwallet.storage.repository import WalletRepository

__all__ = [
    "Base",
    "UserWallet",
    "WalletRepository",
    "close_db",
    "get_db",
    "init_db",
]
