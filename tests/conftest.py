"""Pytest configuration and fixtures."""

import os
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["NETWORK_PROVIDER"] = "simulated"
os.environ["DRY_RUN"] = "true"
os.environ["DEBUG"] = "false"
os.environ.pop("MASTER_KEY", None)

from tempwallet.chains import ChainRegistry, from_smallest_unit
from tempwallet.config import get_settings
from tempwallet.custody.contract import DryRunCustodyContract
from tempwallet.custody.coordinator import CustodyCreditCoordinator
from tempwallet.network.simulated import SimulatedNetworkClient
from tempwallet.storage.models import Base
from tempwallet.storage.repository import WalletRepository
from tempwallet.utils.locks import clear_locks
from tempwallet.wallet.base import WalletProvider

ALICE = "0xA11CE00000000000000000000000000000000001"
BOB = "0xB0B0000000000000000000000000000000000002"
CAROL = "0xCA20100000000000000000000000000000000003"

BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


class StaticWalletProvider(WalletProvider):
    """Wallet provider with fixed addresses per user id."""

    def __init__(self, registry: ChainRegistry, addresses: dict[str, str]):
        self.registry = registry
        self.addresses = addresses

    @property
    def name(self) -> str:
        return "static"

    async def get_wallet_address(self, user_id: str, chain: str) -> str:
        self.registry.resolve_chain_id(chain)
        return self.addresses[user_id]

    async def get_private_key(self, user_id: str, chain: str) -> str:
        self.registry.resolve_chain_id(chain)
        return "0x" + "11" * 32

    async def get_all_wallet_addresses(self, user_id: str) -> dict[str, str]:
        return {chain: self.addresses[user_id] for chain in self.registry.supported_chains}


@pytest.fixture(autouse=True)
def reset_locks():
    clear_locks()
    yield
    clear_locks()


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def db_factory(db_engine):
    """Drop-in replacement for ``get_db`` bound to the test engine."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    @asynccontextmanager
    async def factory():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


@pytest.fixture
def wallet_repo(db_session: AsyncSession) -> WalletRepository:
    return WalletRepository(db_session)


@pytest.fixture
def registry() -> ChainRegistry:
    """Registry built from default settings (Base has a custody deployment)."""
    return ChainRegistry.from_settings(get_settings())


@pytest.fixture
def network(registry) -> SimulatedNetworkClient:
    return SimulatedNetworkClient(registry=registry)


@pytest.fixture
def custody(registry, network) -> DryRunCustodyContract:
    def on_deposit(account: str, token_address: str, amount: int) -> None:
        asset = registry.asset_for_token(token_address)
        human = from_smallest_unit(amount, registry.get_decimals(asset))
        network.record_custody_deposit(account, asset, Decimal(human))

    return DryRunCustodyContract(registry, on_deposit=on_deposit)


@pytest.fixture
def coordinator(custody, network, registry) -> CustodyCreditCoordinator:
    return CustodyCreditCoordinator(custody, network, registry, lock_timeout=5.0)


@pytest.fixture
def wallets(registry) -> StaticWalletProvider:
    return StaticWalletProvider(
        registry, {"alice": ALICE, "bob": BOB, "carol": CAROL}
    )
