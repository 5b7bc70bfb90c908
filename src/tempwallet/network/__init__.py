"""Settlement network clients."""

from tempwallet.network.base import (
    AuthSession,
    BalanceEntry,
    ChannelInfo,
    CreateChannelParams,
    CreateSessionParams,
    NetworkClient,
    ResizeChannelParams,
    UpdateSessionParams,
)
from tempwallet.network.factory import get_network_client, reset_network_client
from tempwallet.network.simulated import SimulatedNetworkClient

__all__ = [
    "AuthSession",
    "BalanceEntry",
    "ChannelInfo",
    "CreateChannelParams",
    "CreateSessionParams",
    "NetworkClient",
    "ResizeChannelParams",
    "SimulatedNetworkClient",
    "UpdateSessionParams",
    "get_network_client",
    "reset_network_client",
]
