"""In-memory settlement network client for development and tests.

Keeps channels, app sessions and the unified ledger in process memory and
follows the network's observable rules: one open channel per (participant,
chain, token), versioned session updates and open -> closed session status.
"""

import hashlib
import logging
import secrets
import time
from collections import defaultdict
from decimal import Decimal
from typing import Any, Optional

from tempwallet.chains import ChainRegistry, from_smallest_unit
from tempwallet.errors import (
    ChannelExistsError,
    InvalidStateError,
    NotAuthenticatedError,
    NotFoundError,
)
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

logger = logging.getLogger(__name__)


def _fmt(value: Decimal) -> str:
    return format(value.normalize(), "f") if value else "0"


class SimulatedNetworkClient(NetworkClient):
    """Simulated clearnode (no network access)."""

    def __init__(
        self,
        registry: Optional[ChainRegistry] = None,
        session_ttl: int = 3600,
        application: str = "tempwallets-lightning",
    ):
        self._registry = registry
        self._application = application
        self._session_ttl = session_ttl
        self._auth: dict[str, AuthSession] = {}
        self._current: Optional[str] = None
        self._channels: dict[str, ChannelInfo] = {}
        self._sessions: dict[str, dict[str, Any]] = {}
        self._ledger: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
        self._counter = 0

    @property
    def name(self) -> str:
        return "simulated"

    def _next_id(self, *parts: Any) -> str:
        self._counter += 1
        raw = ":".join(str(p) for p in (*parts, self._counter))
        return "0x" + hashlib.sha256(raw.encode()).hexdigest()

    def _asset_for(self, token_address: str) -> str:
        if self._registry is not None:
            asset = self._registry.asset_for_token(token_address)
            if asset:
                return asset
        return token_address.lower()

    def _decimals_for(self, asset: str) -> int:
        return self._registry.get_decimals(asset) if self._registry is not None else 6

    # Auth

    async def authenticate(self, user_id: str, wallet_address: str) -> AuthSession:
        key = wallet_address.lower()
        self._current = key
        existing = self._auth.get(key)
        if existing is not None and (existing.expires_at or 0) > time.time():
            return existing

        session = AuthSession(
            user_id=user_id,
            wallet_address=wallet_address,
            session_id=self._next_id("auth", key),
            expires_at=int(time.time()) + self._session_ttl,
            auth_signature="0x" + secrets.token_hex(65),
            application=self._application,
        )
        self._auth[key] = session
        logger.debug(f"Simulated auth for user {user_id} ({wallet_address[:10]}...)")
        return session

    def is_authenticated(self, wallet_address: str) -> bool:
        return wallet_address.lower() in self._auth

    # Channels

    async def create_channel(self, params: CreateChannelParams) -> ChannelInfo:
        owner = params.user_address.lower()
        token = params.token_address.lower()
        for channel in self._channels.values():
            if (
                channel.participant == owner
                and channel.chain_id == params.chain_id
                and (channel.token_address or "") == token
                and channel.status == "open"
            ):
                raise ChannelExistsError(channel.channel_id)

        channel = ChannelInfo(
            channel_id=self._next_id("channel", owner, params.chain_id, token),
            chain_id=params.chain_id,
            balance=str(params.initial_balance),
            status="open",
            token_address=token,
            participant=owner,
        )
        self._channels[channel.channel_id] = channel
        logger.info(f"Simulated channel {channel.channel_id[:10]}... on chain {params.chain_id}")
        return channel

    async def resize_channel(self, params: ResizeChannelParams) -> ChannelInfo:
        channel = self._channels.get(params.channel_id)
        if channel is None:
            raise NotFoundError(f"Channel {params.channel_id} not found")
        if channel.status != "open":
            raise InvalidStateError(f"Cannot resize channel in {channel.status} state")

        new_balance = int(channel.balance) + params.amount
        if new_balance < 0:
            raise InvalidStateError("Resize would make channel balance negative")
        channel.balance = str(new_balance)

        asset = self._asset_for(params.token_address)
        human = Decimal(from_smallest_unit(params.amount, self._decimals_for(asset)))
        self._ledger[params.user_address.lower()][asset] += human
        return channel

    async def get_channels(self, participant: str) -> list[ChannelInfo]:
        owner = participant.lower()
        return [c for c in self._channels.values() if c.participant == owner]

    async def close_channel(
        self, channel_id: str, chain_id: int, funds_destination: str
    ) -> ChannelInfo:
        channel = self._channels.get(channel_id)
        if channel is None:
            raise NotFoundError(f"Channel {channel_id} not found")
        channel.status = "closed"
        return channel

    # App sessions

    async def create_session(self, params: CreateSessionParams) -> dict[str, Any]:
        definition = dict(params.definition)
        session_id = self._next_id("session", definition.get("nonce"))
        session = {
            "app_session_id": session_id,
            "definition": definition,
            "allocations": [dict(a) for a in params.allocations],
            "version": 1,
            "status": "open",
            "session_data": params.session_data,
        }
        self._sessions[session_id] = session
        return dict(session)

    def _get_session(self, app_session_id: str) -> dict[str, Any]:
        session = self._sessions.get(app_session_id)
        if session is None:
            raise NotFoundError(f"App session {app_session_id} not found")
        return session

    async def update_session(self, params: UpdateSessionParams) -> dict[str, Any]:
        session = self._get_session(params.app_session_id)
        if session["status"] != "open":
            raise InvalidStateError(f"Cannot update session in {session['status']} state")
        session["allocations"] = [dict(a) for a in params.allocations]
        session["version"] += 1
        if params.session_data is not None:
            session["session_data"] = params.session_data
        return dict(session)

    async def close_session(
        self, app_session_id: str, allocations: list[dict[str, str]]
    ) -> dict[str, Any]:
        session = self._get_session(app_session_id)
        if session["status"] != "open":
            raise InvalidStateError(f"Cannot close session in {session['status']} state")
        session["allocations"] = [dict(a) for a in allocations]
        session["version"] += 1
        session["status"] = "closed"
        return dict(session)

    async def query_session(self, app_session_id: str) -> dict[str, Any]:
        return dict(self._get_session(app_session_id))

    async def query_sessions(
        self, participant: Optional[str] = None, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        results = []
        for session in self._sessions.values():
            if status and session["status"] != status:
                continue
            if participant:
                members = [p.lower() for p in session["definition"].get("participants", [])]
                if participant.lower() not in members:
                    continue
            results.append(dict(session))
        return results

    # Ledger

    def record_custody_deposit(self, account: str, asset: str, amount: Decimal) -> None:
        """Index a custody deposit into the account's unified balance."""
        self._ledger[account.lower()][asset.lower()] += Decimal(amount)

    async def get_unified_balance(self, account_id: Optional[str] = None) -> list[BalanceEntry]:
        account = (account_id or self._current or "").lower()
        if account not in self._auth:
            raise NotAuthenticatedError(f"Account {account or '(none)'} is not authenticated")
        return [
            BalanceEntry(asset=asset, amount=_fmt(amount))
            for asset, amount in self._ledger[account].items()
        ]

    async def get_app_session_balances(self, app_session_id: str) -> list[BalanceEntry]:
        session = self._get_session(app_session_id)
        totals: dict[str, Decimal] = defaultdict(Decimal)
        for allocation in session["allocations"]:
            totals[allocation["asset"].lower()] += Decimal(allocation["amount"])
        # Funds allocated to an open session are locked in it
        is_open = session["status"] == "open"
        return [
            BalanceEntry(
                asset=asset,
                amount=_fmt(total),
                locked=_fmt(total) if is_open else "0",
                available="0" if is_open else _fmt(total),
            )
            for asset, total in totals.items()
        ]
