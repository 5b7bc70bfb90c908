"""Settlement network client interface.

The network (a clearnode) owns channels, app sessions and the unified
balance ledger. Session payloads cross this boundary as snake_case dicts in
the network's own shape; the session domain model parses them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class AuthSession:
    """Result of authenticating a wallet with the network."""

    user_id: str
    wallet_address: str
    session_id: str
    expires_at: Optional[int] = None  # unix seconds
    auth_signature: Optional[str] = None
    application: Optional[str] = None


@dataclass
class ChannelInfo:
    """Two-party payment channel between a user and the clearnode."""

    channel_id: str
    chain_id: int
    balance: str
    status: str
    token_address: Optional[str] = None
    participant: Optional[str] = None


@dataclass
class BalanceEntry:
    """One asset line of a unified or app-session balance."""

    asset: str
    amount: str
    locked: str = "0"
    available: Optional[str] = None

    def __post_init__(self):
        if self.available is None:
            self.available = self.amount


@dataclass
class CreateChannelParams:
    user_address: str
    chain_id: int
    token_address: str
    initial_balance: int = 0


@dataclass
class ResizeChannelParams:
    """Move funds into (positive amount) or out of a channel."""

    channel_id: str
    chain_id: int
    amount: int
    user_address: str
    token_address: str
    participants: list[str] = field(default_factory=list)


@dataclass
class CreateSessionParams:
    definition: dict[str, Any]
    allocations: list[dict[str, str]]
    session_data: Optional[Any] = None


@dataclass
class UpdateSessionParams:
    app_session_id: str
    intent: str
    allocations: list[dict[str, str]]
    session_data: Optional[Any] = None


class NetworkClient(ABC):
    """Abstract base class for settlement network clients."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Client name."""
        raise NotImplementedError()

    # Auth

    @abstractmethod
    async def authenticate(self, user_id: str, wallet_address: str) -> AuthSession:
        """Authenticate a user's wallet.

        Repeated calls for the same wallet are no-ops while the session lasts.
        """
        raise NotImplementedError()

    # Channels

    @abstractmethod
    async def create_channel(self, params: CreateChannelParams) -> ChannelInfo:
        """Open a channel.

        Raises:
            ChannelExistsError: an open channel already exists
        """
        raise NotImplementedError()

    @abstractmethod
    async def resize_channel(self, params: ResizeChannelParams) -> ChannelInfo:
        raise NotImplementedError()

    @abstractmethod
    async def get_channels(self, participant: str) -> list[ChannelInfo]:
        raise NotImplementedError()

    @abstractmethod
    async def close_channel(
        self, channel_id: str, chain_id: int, funds_destination: str
    ) -> ChannelInfo:
        raise NotImplementedError()

    # App sessions

    @abstractmethod
    async def create_session(self, params: CreateSessionParams) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def update_session(self, params: UpdateSessionParams) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def close_session(
        self, app_session_id: str, allocations: list[dict[str, str]]
    ) -> dict[str, Any]:
        raise NotImplementedError()

    @abstractmethod
    async def query_session(self, app_session_id: str) -> dict[str, Any]:
        """Fetch one session.

        Raises:
            NotFoundError: unknown session id
        """
        raise NotImplementedError()

    @abstractmethod
    async def query_sessions(
        self, participant: Optional[str] = None, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        raise NotImplementedError()

    # Ledger

    @abstractmethod
    async def get_unified_balance(self, account_id: Optional[str] = None) -> list[BalanceEntry]:
        """Query the unified ledger, defaulting to the authenticated account."""
        raise NotImplementedError()

    @abstractmethod
    async def get_app_session_balances(self, app_session_id: str) -> list[BalanceEntry]:
        raise NotImplementedError()
