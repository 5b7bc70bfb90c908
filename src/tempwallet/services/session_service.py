"""App session use cases.

Every operation resolves the caller's wallet, authenticates it with the
network and then performs one session call. Query, update, close and balance
reads are limited to session participants.
"""

import logging
import time
from typing import Any, Optional

from tempwallet.errors import ValidationError
from tempwallet.network.base import CreateSessionParams, NetworkClient, UpdateSessionParams
from tempwallet.sessions.models import (
    DEFAULT_CHALLENGE,
    DEFAULT_QUORUM,
    SESSION_PROTOCOL,
    Allocation,
    AllocationIntent,
    AppSession,
    OpaquePayload,
    SessionDefinition,
    SessionStatus,
    build_participant_list,
    equal_weights,
    new_nonce,
    validate_session_id,
)
from tempwallet.wallet.base import WalletProvider

logger = logging.getLogger(__name__)


class AppSessionService:
    """Create, inspect and settle multi-party app sessions."""

    def __init__(self, wallet_provider: WalletProvider, network: NetworkClient):
        self.wallet_provider = wallet_provider
        self.network = network

    async def _connect(self, user_id: str, chain: str) -> str:
        """Resolve the user's address and authenticate it."""
        address = await self.wallet_provider.get_wallet_address(user_id, chain)
        await self.network.authenticate(user_id, address)
        return address

    async def _load_for_participant(
        self, user_id: str, chain: str, app_session_id: str
    ) -> tuple[str, AppSession]:
        validate_session_id(app_session_id)
        address = await self._connect(user_id, chain)
        session = AppSession.from_wire(await self.network.query_session(app_session_id))
        session.require_participant(address)
        return address, session

    async def authenticate_wallet(self, user_id: str, chain: str) -> dict[str, Any]:
        address = await self.wallet_provider.get_wallet_address(user_id, chain)
        auth = await self.network.authenticate(user_id, address)
        logger.info(f"Authenticated wallet {address[:10]}... for user {user_id}")
        return {
            "authenticated": True,
            "session_id": auth.session_id,
            "wallet_address": address,
            "chain": chain,
            "timestamp": int(time.time() * 1000),
            "expires_at": auth.expires_at,
            "auth_signature": auth.auth_signature,
        }

    async def create_app_session(
        self,
        user_id: str,
        chain: str,
        participants: list[str],
        token: str,
        weights: Optional[list[int]] = None,
        quorum: Optional[int] = None,
        initial_allocations: Optional[list[dict[str, str]]] = None,
        session_data: Any = None,
    ) -> dict[str, Any]:
        creator = await self._connect(user_id, chain)
        members = build_participant_list(creator, participants)

        definition = SessionDefinition(
            protocol=SESSION_PROTOCOL,
            participants=tuple(members),
            weights=tuple(weights if weights else equal_weights(len(members))),
            quorum=DEFAULT_QUORUM if quorum is None else quorum,
            challenge=DEFAULT_CHALLENGE,
            nonce=new_nonce(),
        )
        allocations = [
            Allocation(participant=a["participant"], asset=token.lower(), amount=a["amount"])
            for a in initial_allocations or []
        ]
        # Validates allocation participants before anything reaches the network
        AppSession(app_session_id="pending", definition=definition, allocations=allocations)

        payload = OpaquePayload.wrap(session_data)
        created = await self.network.create_session(CreateSessionParams(
            definition=definition.to_wire(),
            allocations=[a.to_wire() for a in allocations],
            session_data=payload.unwrap() if payload else None,
        ))
        session = AppSession.from_wire(created)
        logger.info(
            f"Created app session {session.app_session_id[:10]}... "
            f"with {len(members)} participants"
        )
        return {
            "app_session_id": session.app_session_id,
            "status": session.status.value,
            "version": session.version,
            "participants": list(session.definition.participants),
            "allocations": [a.to_wire() for a in session.allocations],
        }

    async def query_session(self, user_id: str, chain: str, app_session_id: str) -> dict[str, Any]:
        _, session = await self._load_for_participant(user_id, chain, app_session_id)
        return session.to_dict()

    async def discover_sessions(
        self, user_id: str, chain: str, status: Optional[str] = None
    ) -> dict[str, Any]:
        if status is not None:
            try:
                status = SessionStatus(status.lower()).value
            except ValueError:
                raise ValidationError(f"Invalid status filter: {status}")
        address = await self._connect(user_id, chain)
        raw = await self.network.query_sessions(participant=address, status=status)
        sessions = [AppSession.from_wire(s) for s in raw]
        return {
            "sessions": [
                {
                    "app_session_id": s.app_session_id,
                    "status": s.status.value,
                    "version": s.version,
                    "participants": list(s.definition.participants),
                    "allocations": [a.to_wire() for a in s.allocations],
                }
                for s in sessions
            ],
            "count": len(sessions),
        }

    async def update_allocation(
        self,
        user_id: str,
        chain: str,
        app_session_id: str,
        intent: str,
        allocations: list[dict[str, str]],
        session_data: Any = None,
    ) -> dict[str, Any]:
        try:
            intent_value = AllocationIntent(intent.upper()).value
        except ValueError:
            raise ValidationError(
                f"Invalid intent: {intent}. Expected one of DEPOSIT, OPERATE, WITHDRAW"
            )
        _, session = await self._load_for_participant(user_id, chain, app_session_id)
        new_allocations = [Allocation.from_wire(a) for a in allocations]
        session.update_allocations(new_allocations)

        payload = OpaquePayload.wrap(session_data)
        updated = AppSession.from_wire(await self.network.update_session(UpdateSessionParams(
            app_session_id=app_session_id,
            intent=intent_value,
            allocations=[a.to_wire() for a in new_allocations],
            session_data=payload.unwrap() if payload else None,
        )))
        logger.info(
            f"Updated app session {app_session_id[:10]}... ({intent_value}) "
            f"to version {updated.version}"
        )
        return {
            "app_session_id": updated.app_session_id,
            "version": updated.version,
            "allocations": [a.to_wire() for a in updated.allocations],
        }

    async def close_session(self, user_id: str, chain: str, app_session_id: str) -> dict[str, Any]:
        _, session = await self._load_for_participant(user_id, chain, app_session_id)
        final_allocations = [a.to_wire() for a in session.allocations]
        session.close()
        await self.network.close_session(app_session_id, final_allocations)
        logger.info(f"Closed app session {app_session_id[:10]}...")
        return {"app_session_id": app_session_id, "closed": True}

    async def get_session_balances(
        self, user_id: str, chain: str, app_session_id: str
    ) -> dict[str, Any]:
        await self._load_for_participant(user_id, chain, app_session_id)
        entries = await self.network.get_app_session_balances(app_session_id)
        return {
            "app_session_id": app_session_id,
            "balances": [
                {
                    "asset": e.asset,
                    "amount": e.amount,
                    "locked": e.locked,
                    "available": e.available,
                }
                for e in entries
            ],
        }
