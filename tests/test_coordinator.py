"""Tests for custody crediting and channel acquisition."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import ALICE, BASE_USDC, BOB
from tempwallet.chains import ChainRegistry
from tempwallet.custody.contract import (
    CUSTODY_ABI,
    DepositParams,
    DryRunCustodyContract,
    Web3CustodyContract,
    build_deposit_call,
)
from tempwallet.custody.coordinator import CreditRequest, CustodyCreditCoordinator
from tempwallet.errors import (
    ChainError,
    ChannelExistsError,
    ConfigError,
    NotAuthenticatedError,
    UnsupportedChainError,
)
from tempwallet.network.base import BalanceEntry, ChannelInfo, NetworkClient

EXISTING_ID = "0x" + "ab" * 32


def credit_request(amount: int = 1_000_000, chain: str = "base") -> CreditRequest:
    return CreditRequest(
        user_id="alice",
        chain=chain,
        user_address=ALICE,
        token_address=BASE_USDC,
        amount=amount,
    )


def mock_network(channels=None) -> MagicMock:
    network = MagicMock(spec=NetworkClient)
    network.authenticate = AsyncMock()
    network.get_channels = AsyncMock(return_value=channels or [])
    network.create_channel = AsyncMock(
        return_value=ChannelInfo(channel_id="0x" + "cd" * 32, chain_id=8453, balance="0", status="open")
    )
    network.resize_channel = AsyncMock()
    network.get_unified_balance = AsyncMock(return_value=[])
    return network


class TestChannelAcquisition:
    """Tests for idempotent channel find-or-create."""

    @pytest.mark.asyncio
    async def test_repeated_credits_reuse_one_channel(self, coordinator, network):
        """Three sequential credits create exactly one channel."""
        results = [
            await coordinator.credit_unified_balance_from_custody(credit_request())
            for _ in range(3)
        ]

        channel_ids = {r.channel_id for r in results}
        assert len(channel_ids) == 1
        assert all(r.credited for r in results)

        channels = await network.get_channels(ALICE)
        assert len(channels) == 1
        assert channels[0].balance == "3000000"

    @pytest.mark.asyncio
    async def test_existing_open_channel_is_used(self, registry):
        network = mock_network([
            ChannelInfo(channel_id="0x" + "01" * 32, chain_id=8453, balance="0", status="closed"),
            ChannelInfo(channel_id=EXISTING_ID, chain_id=8453, balance="5", status="ACTIVE"),
        ])
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        result = await coordinator.credit_unified_balance_from_custody(credit_request())

        assert result.channel_id == EXISTING_ID
        network.create_channel.assert_not_called()
        params = network.resize_channel.call_args.args[0]
        assert params.channel_id == EXISTING_ID
        assert params.participants == []

    @pytest.mark.asyncio
    async def test_conflict_message_id_is_resized(self, registry):
        """A generic 'already exists' error still yields the embedded id."""
        network = mock_network()
        network.create_channel.side_effect = Exception(f"already exists: {EXISTING_ID}")
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        result = await coordinator.credit_unified_balance_from_custody(credit_request())

        assert result.channel_id == EXISTING_ID
        assert network.resize_channel.call_args.args[0].channel_id == EXISTING_ID

    @pytest.mark.asyncio
    async def test_structured_conflict_is_recovered(self, registry):
        network = mock_network()
        network.create_channel.side_effect = ChannelExistsError(EXISTING_ID)
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        result = await coordinator.credit_unified_balance_from_custody(credit_request())

        assert result.channel_id == EXISTING_ID

    @pytest.mark.asyncio
    async def test_other_create_failures_propagate(self, registry):
        network = mock_network()
        network.create_channel.side_effect = RuntimeError("clearnode unavailable")
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        with pytest.raises(RuntimeError, match="clearnode unavailable"):
            await coordinator.credit_unified_balance_from_custody(credit_request())
        network.resize_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_credits_create_one_channel(self, coordinator, network):
        await asyncio.gather(*[
            coordinator.credit_unified_balance_from_custody(credit_request())
            for _ in range(5)
        ])

        assert len(await network.get_channels(ALICE)) == 1

    @pytest.mark.asyncio
    async def test_call_order(self, registry):
        network = mock_network()
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        await coordinator.credit_unified_balance_from_custody(credit_request())

        names = [c[0] for c in network.method_calls]
        assert names == ["authenticate", "get_channels", "create_channel", "resize_channel"]

    @pytest.mark.asyncio
    async def test_authenticates_as_requesting_user(self, registry):
        network = mock_network()
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        await coordinator.credit_unified_balance_from_custody(credit_request())

        network.authenticate.assert_awaited_once_with("alice", ALICE)


class TestCreditValidation:
    """Tests for input checks that happen before any network call."""

    @pytest.mark.asyncio
    async def test_unknown_chain_makes_no_network_calls(self, registry):
        network = mock_network()
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        with pytest.raises(UnsupportedChainError):
            await coordinator.credit_unified_balance_from_custody(credit_request(chain="dogecoin"))

        network.authenticate.assert_not_called()
        network.create_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_credit_never_touches_the_wallet(self, registry):
        """Crediting must not approve, deposit or sign anything."""
        custody = DryRunCustodyContract(registry)
        custody.send = AsyncMock()
        custody.approve_token = AsyncMock()
        custody.deposit = AsyncMock()
        coordinator = CustodyCreditCoordinator(custody, mock_network(), registry)

        await coordinator.credit_unified_balance_from_custody(credit_request())

        custody.send.assert_not_called()
        custody.approve_token.assert_not_called()
        custody.deposit.assert_not_called()


class TestUnifiedBalance:
    """Tests for unified balance lookups."""

    @pytest.mark.asyncio
    async def test_missing_asset_is_zero(self, registry):
        network = mock_network()
        network.get_unified_balance.return_value = [BalanceEntry(asset="usdt", amount="4")]
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        assert await coordinator.get_unified_balance(ALICE, "usdc") == "0"

    @pytest.mark.asyncio
    async def test_asset_match_is_case_insensitive(self, registry):
        network = mock_network()
        network.get_unified_balance.return_value = [BalanceEntry(asset="usdc", amount="12.5")]
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        assert await coordinator.get_unified_balance(ALICE, "USDC") == "12.5"
        network.get_unified_balance.assert_awaited_with(ALICE.lower())

    @pytest.mark.asyncio
    async def test_query_failure_means_not_authenticated(self, registry):
        network = mock_network()
        network.get_unified_balance.side_effect = ConnectionError("socket closed")
        coordinator = CustodyCreditCoordinator(DryRunCustodyContract(registry), network, registry)

        with pytest.raises(NotAuthenticatedError) as exc_info:
            await coordinator.get_unified_balance(ALICE, "usdc")

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_credit_shows_in_unified_balance(self, coordinator, network):
        await network.authenticate("alice", ALICE)
        await coordinator.credit_unified_balance_from_custody(credit_request(amount=2_500_000))

        assert await coordinator.get_unified_balance(ALICE, "usdc") == "2.5"


class TestCustodyCalls:
    """Tests for on-chain call construction through the coordinator."""

    @pytest.mark.asyncio
    async def test_deposit_credits_recipient_not_signer(self, coordinator, custody):
        params = DepositParams(
            user_private_key="0x" + "11" * 32,
            user_address=BOB,
            token_address=BASE_USDC,
            amount=750_000,
            chain_id=8453,
        )

        await coordinator.deposit(params)

        chain_id, call = custody.calls[-1]
        assert chain_id == 8453
        assert call.function == "deposit"
        assert call.args == [BOB, BASE_USDC, 750_000]
        assert call.abi is CUSTODY_ABI

    @pytest.mark.asyncio
    async def test_approve_targets_custody_contract(self, coordinator, custody, registry):
        params = DepositParams(
            user_private_key="0x" + "11" * 32,
            user_address=ALICE,
            token_address=BASE_USDC,
            amount=1,
            chain_id=8453,
        )

        await coordinator.approve_token(params)

        _, call = custody.calls[-1]
        assert call.address == BASE_USDC
        assert call.args == [registry.get_custody_address(8453), 1]

    def test_deposit_call_is_not_payable_for_tokens(self):
        params = DepositParams("0x" + "11" * 32, ALICE, BASE_USDC, 10, 8453)
        call = build_deposit_call(params, "0x490fb189DdE3a01B00be9BA5F41e3447FbC838b6")
        assert call.value == 0

    def test_private_key_not_in_repr(self):
        params = DepositParams("0xsecretkey", ALICE, BASE_USDC, 10, 8453)
        assert "secretkey" not in repr(params)

    @pytest.mark.asyncio
    async def test_chain_without_custody_raises_config_error(self, coordinator):
        params = DepositParams("0x" + "11" * 32, ALICE, "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 10, 42161)
        with pytest.raises(ConfigError):
            await coordinator.deposit(params)

    @pytest.mark.asyncio
    async def test_rpc_failure_becomes_chain_error(self, registry):
        """Any failure while sending is reported as ChainError with the cause."""
        contract = Web3CustodyContract(registry)
        w3 = MagicMock()
        w3.eth.get_transaction_count = AsyncMock(side_effect=ConnectionError("rpc down"))
        contract._clients[8453] = w3
        params = DepositParams("0x" + "11" * 32, ALICE, BASE_USDC, 10, 8453)

        with pytest.raises(ChainError) as exc_info:
            await contract.approve_token(params)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.status_code == 502

    def test_missing_rpc_url_is_config_error(self, registry):
        contract = Web3CustodyContract(registry)
        with pytest.raises(ConfigError, match="RPC URL"):
            contract._web3(10)

    @pytest.mark.asyncio
    async def test_placeholder_custody_address_is_unconfigured(self):
        registry = ChainRegistry(
            chain_ids={"base": 8453},
            token_addresses={"base": {"usdc": BASE_USDC}},
            custody_addresses={8453: "0x..."},
        )
        with pytest.raises(ConfigError):
            registry.get_custody_address(8453)
