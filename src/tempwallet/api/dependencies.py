"""FastAPI dependency providers for services."""

from fastapi import Depends

from tempwallet.chains import ChainRegistry, get_chain_registry
from tempwallet.config import Settings, get_settings
from tempwallet.custody.coordinator import CustodyCreditCoordinator
from tempwallet.custody.factory import get_coordinator
from tempwallet.network.base import NetworkClient
from tempwallet.network.factory import get_network_client
from tempwallet.services import AppSessionService, ChannelService, CustodyService
from tempwallet.wallet.base import WalletProvider
from tempwallet.wallet.factory import get_wallet_provider


def get_session_service(
    wallet_provider: WalletProvider = Depends(get_wallet_provider),
    network: NetworkClient = Depends(get_network_client),
) -> AppSessionService:
    return AppSessionService(wallet_provider, network)


def get_custody_service(
    wallet_provider: WalletProvider = Depends(get_wallet_provider),
    coordinator: CustodyCreditCoordinator = Depends(get_coordinator),
    registry: ChainRegistry = Depends(get_chain_registry),
    settings: Settings = Depends(get_settings),
) -> CustodyService:
    return CustodyService(
        wallet_provider,
        coordinator,
        registry,
        index_timeout=settings.deposit_index_timeout,
        poll_interval=settings.deposit_poll_interval,
    )


def get_channel_service(
    wallet_provider: WalletProvider = Depends(get_wallet_provider),
    coordinator: CustodyCreditCoordinator = Depends(get_coordinator),
    registry: ChainRegistry = Depends(get_chain_registry),
) -> ChannelService:
    return ChannelService(wallet_provider, coordinator, registry)
