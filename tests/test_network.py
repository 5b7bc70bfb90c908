"""Tests for the simulated settlement network client."""

from decimal import Decimal

import pytest

from conftest import ALICE, BASE_USDC, BOB
from tempwallet.config import get_settings
from tempwallet.errors import (
    ChannelExistsError,
    ConfigError,
    InvalidStateError,
    NotAuthenticatedError,
    NotFoundError,
)
from tempwallet.network.base import (
    CreateChannelParams,
    CreateSessionParams,
    ResizeChannelParams,
    UpdateSessionParams,
)
from tempwallet.network.factory import get_network_client, reset_network_client
from tempwallet.network.simulated import SimulatedNetworkClient


def session_params(*participants: str) -> CreateSessionParams:
    return CreateSessionParams(
        definition={
            "protocol": "NitroRPC/0.4",
            "participants": list(participants),
            "weights": [50] * len(participants),
            "quorum": 50,
            "challenge": 3600,
            "nonce": 1,
        },
        allocations=[{"participant": participants[0], "asset": "usdc", "amount": "5"}],
    )


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_authenticate_is_reused_until_expiry(self, network):
        first = await network.authenticate("alice", ALICE)
        second = await network.authenticate("alice", ALICE.lower())

        assert first.session_id == second.session_id
        assert network.is_authenticated(ALICE)

    @pytest.mark.asyncio
    async def test_session_records_user_and_application(self, registry):
        network = SimulatedNetworkClient(registry=registry, application="demo-app")

        auth = await network.authenticate("alice", ALICE)

        assert auth.user_id == "alice"
        assert auth.wallet_address == ALICE
        assert auth.application == "demo-app"

    @pytest.mark.asyncio
    async def test_expired_session_is_renewed(self, registry):
        network = SimulatedNetworkClient(registry=registry, session_ttl=-1)

        first = await network.authenticate("alice", ALICE)
        second = await network.authenticate("alice", ALICE)

        assert first.session_id != second.session_id

    @pytest.mark.asyncio
    async def test_balance_requires_authentication(self, network):
        with pytest.raises(NotAuthenticatedError):
            await network.get_unified_balance(ALICE)


class TestChannels:
    """Tests for channel rules."""

    @pytest.mark.asyncio
    async def test_one_open_channel_per_token(self, network):
        params = CreateChannelParams(user_address=ALICE, chain_id=8453, token_address=BASE_USDC)
        channel = await network.create_channel(params)

        with pytest.raises(ChannelExistsError) as exc_info:
            await network.create_channel(params)
        assert exc_info.value.channel_id == channel.channel_id

    @pytest.mark.asyncio
    async def test_closed_channel_allows_new_one(self, network):
        params = CreateChannelParams(user_address=ALICE, chain_id=8453, token_address=BASE_USDC)
        first = await network.create_channel(params)
        await network.close_channel(first.channel_id, 8453, ALICE)

        second = await network.create_channel(params)

        assert second.channel_id != first.channel_id
        assert [c.status for c in await network.get_channels(ALICE)] == ["closed", "open"]

    @pytest.mark.asyncio
    async def test_resize_credits_unified_balance(self, network):
        channel = await network.create_channel(
            CreateChannelParams(user_address=ALICE, chain_id=8453, token_address=BASE_USDC)
        )
        await network.authenticate("alice", ALICE)

        await network.resize_channel(ResizeChannelParams(
            channel_id=channel.channel_id,
            chain_id=8453,
            amount=1_250_000,
            user_address=ALICE,
            token_address=BASE_USDC,
        ))

        balances = await network.get_unified_balance(ALICE)
        assert [(b.asset, b.amount) for b in balances] == [("usdc", "1.25")]

    @pytest.mark.asyncio
    async def test_resize_unknown_channel(self, network):
        with pytest.raises(NotFoundError):
            await network.resize_channel(ResizeChannelParams(
                channel_id="0x" + "00" * 32,
                chain_id=8453,
                amount=1,
                user_address=ALICE,
                token_address=BASE_USDC,
            ))

    @pytest.mark.asyncio
    async def test_custody_deposit_is_indexed(self, network):
        network.record_custody_deposit(ALICE, "USDC", Decimal("3"))
        await network.authenticate("alice", ALICE)

        balances = await network.get_unified_balance()

        assert balances[0].amount == "3"
        assert balances[0].available == "3"


class TestSessions:
    """Tests for versioned app sessions."""

    @pytest.mark.asyncio
    async def test_update_increments_version(self, network):
        created = await network.create_session(session_params(ALICE, BOB))

        updated = await network.update_session(UpdateSessionParams(
            app_session_id=created["app_session_id"],
            intent="OPERATE",
            allocations=[{"participant": BOB, "asset": "usdc", "amount": "5"}],
        ))

        assert created["version"] == 1
        assert updated["version"] == 2
        assert updated["allocations"][0]["participant"] == BOB

    @pytest.mark.asyncio
    async def test_closed_session_rejects_changes(self, network):
        created = await network.create_session(session_params(ALICE))
        session_id = created["app_session_id"]
        await network.close_session(session_id, created["allocations"])

        with pytest.raises(InvalidStateError):
            await network.close_session(session_id, [])
        with pytest.raises(InvalidStateError):
            await network.update_session(UpdateSessionParams(
                app_session_id=session_id, intent="OPERATE", allocations=[]
            ))

    @pytest.mark.asyncio
    async def test_query_sessions_filters(self, network):
        shared = await network.create_session(session_params(ALICE, BOB))
        await network.create_session(session_params(ALICE))
        await network.close_session(shared["app_session_id"], [])

        assert len(await network.query_sessions(participant=ALICE)) == 2
        assert len(await network.query_sessions(participant=BOB.lower())) == 1
        assert len(await network.query_sessions(participant=ALICE, status="open")) == 1

    @pytest.mark.asyncio
    async def test_session_balances_unlock_on_close(self, network):
        created = await network.create_session(session_params(ALICE))
        session_id = created["app_session_id"]

        open_balance = (await network.get_app_session_balances(session_id))[0]
        await network.close_session(session_id, created["allocations"])
        closed_balance = (await network.get_app_session_balances(session_id))[0]

        assert (open_balance.locked, open_balance.available) == ("5", "0")
        assert (closed_balance.locked, closed_balance.available) == ("0", "5")


class TestNetworkFactory:
    def test_simulated_is_default(self):
        reset_network_client()
        try:
            client = get_network_client()
            assert client.name == "simulated"
            assert get_network_client() is client
        finally:
            reset_network_client()

    def test_unknown_provider(self, monkeypatch):
        reset_network_client()
        monkeypatch.setattr(get_settings(), "network_provider", "carrier-pigeon")
        try:
            with pytest.raises(ConfigError):
                get_network_client()
        finally:
            reset_network_client()
