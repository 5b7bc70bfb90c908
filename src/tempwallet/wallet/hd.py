"""HD wallet provider backed by BIP39 seeds stored in the database.

Derivation path: m/44'/60'/0'/0/0

Every supported chain is EVM-compatible, so one seed yields the same address
on all of them.
"""

import logging
from typing import Callable, Optional

from bip_utils import (
    Bip39MnemonicGenerator,
    Bip39SeedGenerator,
    Bip39WordsNum,
    Bip44,
    Bip44Changes,
    Bip44Coins,
)

from tempwallet.chains import ChainRegistry
from tempwallet.crypto import SeedEncryptor
from tempwallet.storage.database import get_db
from tempwallet.storage.repository import WalletRepository
from tempwallet.utils.locks import keyed_lock
from tempwallet.wallet.base import WalletProvider

logger = logging.getLogger(__name__)


def derive_evm_account(seed_phrase: str, index: int = 0) -> tuple[str, str]:
    """Derive (checksum address, 0x private key) from a seed phrase."""
    seed = Bip39SeedGenerator(seed_phrase).Generate()
    bip44_ctx = Bip44.FromSeed(seed, Bip44Coins.ETHEREUM)
    account = (
        bip44_ctx.Purpose()
        .Coin()
        .Account(0)
        .Change(Bip44Changes.CHAIN_EXT)
        .AddressIndex(index)
    )
    address = account.PublicKey().ToAddress()
    private_key = "0x" + account.PrivateKey().Raw().ToHex()
    return address, private_key


class HDWalletProvider(WalletProvider):
    """Wallet provider that generates and stores one mnemonic per user."""

    def __init__(
        self,
        registry: ChainRegistry,
        encryptor: Optional[SeedEncryptor] = None,
        expiry_days: Optional[int] = None,
        db_factory: Callable = get_db,
    ):
        self._registry = registry
        self._encryptor = encryptor
        self._expiry_days = expiry_days
        self._db_factory = db_factory

    @property
    def name(self) -> str:
        return "hd"

    async def _load_seed(self, user_id: str) -> str:
        """Get the user's seed phrase, generating one on first access."""
        async with keyed_lock(("wallet", user_id), operation="wallet_provision"):
            async with self._db_factory() as session:
                repo = WalletRepository(session)
                wallet = await repo.get_wallet(user_id)

                if wallet is not None:
                    if wallet.encrypted:
                        if self._encryptor is None:
                            raise RuntimeError(
                                "Wallet seed is encrypted but MASTER_KEY is not set"
                            )
                        return self._encryptor.decrypt(wallet.encrypted_seed)
                    return wallet.encrypted_seed

                mnemonic = str(
                    Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum.WORDS_NUM_12)
                )
                if self._encryptor is not None:
                    stored, encrypted = self._encryptor.encrypt(mnemonic), True
                else:
                    logger.warning("MASTER_KEY not set - storing wallet seed unencrypted")
                    stored, encrypted = mnemonic, False

                await repo.create_wallet(
                    user_id=user_id,
                    seed=stored,
                    encrypted=encrypted,
                    expiry_days=self._expiry_days,
                )
                logger.info(f"Provisioned wallet for user {user_id}")
                return mnemonic

    async def get_wallet_address(self, user_id: str, chain: str) -> str:
        self._registry.resolve_chain_id(chain)
        address, _ = derive_evm_account(await self._load_seed(user_id))
        return address

    async def get_private_key(self, user_id: str, chain: str) -> str:
        self._registry.resolve_chain_id(chain)
        _, private_key = derive_evm_account(await self._load_seed(user_id))
        return private_key

    async def get_all_wallet_addresses(self, user_id: str) -> dict[str, str]:
        address, _ = derive_evm_account(await self._load_seed(user_id))
        return {chain: address for chain in self._registry.supported_chains}
