"""Cryptographic utilities for secure seed storage.

Uses Fernet (AES-128-CBC with HMAC) for symmetric encryption.
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from tempwallet.config import get_settings
from tempwallet.errors import ConfigError
from tempwallet.storage.repository import WalletRepository

logger = logging.getLogger(__name__)

__all__ = [
    "InvalidToken",
    "SeedEncryptor",
    "generate_master_key",
    "get_encryptor",
    "rotate_wallet_seeds",
]


def generate_master_key() -> str:
    """Generate a new master encryption key.

    Returns:
        Base64-encoded 32-byte key suitable for Fernet
    """
    return Fernet.generate_key().decode()


class SeedEncryptor:
    """Encrypts and decrypts wallet seed phrases using Fernet.

    Usage:
        encryptor = SeedEncryptor(master_key)
        encrypted = encryptor.encrypt("abandon abandon ...")
        decrypted = encryptor.decrypt(encrypted)
    """

    def __init__(self, master_key: str):
        self._fernet = Fernet(master_key.encode())

    def encrypt(self, seed_phrase: str) -> str:
        return self._fernet.encrypt(seed_phrase.encode()).decode()

    def decrypt(self, encrypted_seed: str) -> str:
        """Decrypt a stored seed phrase.

        Raises:
            InvalidToken: If decryption fails (wrong key or corrupted data)
        """
        return self._fernet.decrypt(encrypted_seed.encode()).decode()

    @staticmethod
    def rotate_key(old_key: str, new_key: str, encrypted_seed: str) -> str:
        """Re-encrypt a seed phrase with a new key."""
        old_fernet = Fernet(old_key.encode())
        new_fernet = Fernet(new_key.encode())

        decrypted = old_fernet.decrypt(encrypted_seed.encode())
        return new_fernet.encrypt(decrypted).decode()


def get_encryptor() -> Optional[SeedEncryptor]:
    """Get encryptor instance using MASTER_KEY from settings.

    Returns:
        SeedEncryptor if MASTER_KEY is set, None otherwise
    """
    master_key = get_settings().master_key
    if not master_key:
        return None
    return SeedEncryptor(master_key)


async def rotate_wallet_seeds(
    repo: WalletRepository, new_key: str, old_key: Optional[str] = None
) -> dict[str, int]:
    """Re-encrypt every stored seed under ``new_key``.

    Seeds encrypted with ``old_key`` are rotated; plaintext seeds (stored
    while no MASTER_KEY was set) are encrypted for the first time.

    Raises:
        ConfigError: an encrypted seed exists but ``old_key`` is not given
        InvalidToken: ``old_key`` does not decrypt a stored seed
    """
    new_encryptor = SeedEncryptor(new_key)
    counts = {"rotated": 0, "encrypted": 0}

    for user_id in await repo.list_user_ids():
        wallet = await repo.get_wallet(user_id)
        if wallet.encrypted:
            if not old_key:
                raise ConfigError(
                    f"Seed for user {user_id} is encrypted; the current MASTER_KEY is required"
                )
            seed = SeedEncryptor.rotate_key(old_key, new_key, wallet.encrypted_seed)
            counts["rotated"] += 1
        else:
            seed = new_encryptor.encrypt(wallet.encrypted_seed)
            counts["encrypted"] += 1
        await repo.update_seed(user_id, seed, encrypted=True)

    logger.info(
        f"Seed rotation complete: {counts['rotated']} rotated, "
        f"{counts['encrypted']} newly encrypted"
    )
    return counts
