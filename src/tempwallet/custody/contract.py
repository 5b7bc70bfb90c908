"""On-chain custody contract calls.

Three calls matter and their argument order is fixed by the deployed
contracts:

- ERC-20 ``approve(spender, amount)``
- custody ``deposit(account, token, amount)`` (payable)
- custody ``withdraw(asset, amount, recipient)`` (ABI provisional)

Call construction is pure (``build_*_call``) so it can be checked without a
chain; ``Web3CustodyContract`` signs and broadcasts, ``DryRunCustodyContract``
records calls instead.
"""

import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from tempwallet.chains import ChainRegistry
from tempwallet.errors import ChainError

logger = logging.getLogger(__name__)

NATIVE_TOKEN = "0x0000000000000000000000000000000000000000"

ERC20_ABI = [
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

CUSTODY_ABI = [
    {
        "type": "function",
        "name": "deposit",
        "stateMutability": "payable",
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    # Provisional until the custody withdraw ABI is published
    {
        "type": "function",
        "name": "withdraw",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "recipient", "type": "address"},
        ],
        "outputs": [],
    },
]


@dataclass
class DepositParams:
    """Request-scoped deposit/approve parameters. Never persisted."""

    user_private_key: str = field(repr=False)
    user_address: str
    token_address: str
    amount: int  # smallest units
    chain_id: int


@dataclass
class WithdrawParams:
    """Request-scoped withdraw parameters. Never persisted."""

    user_private_key: str = field(repr=False)
    user_address: str
    token_address: str
    amount: int  # smallest units
    chain_id: int


@dataclass(frozen=True)
class ContractCall:
    """A contract function invocation ready to be signed."""

    address: str
    abi: list[dict[str, Any]]
    function: str
    args: list[Any]
    value: int = 0


def build_approve_call(params: DepositParams, custody_address: str) -> ContractCall:
    return ContractCall(
        address=params.token_address,
        abi=ERC20_ABI,
        function="approve",
        args=[custody_address, params.amount],
    )


def build_deposit_call(params: DepositParams, custody_address: str) -> ContractCall:
    """Build ``deposit(account, token, amount)`` crediting ``params.user_address``.

    The signer may be a different account; only ``user_address`` is credited.
    Native-asset deposits carry the amount as call value.
    """
    value = params.amount if params.token_address.lower() == NATIVE_TOKEN else 0
    return ContractCall(
        address=custody_address,
        abi=CUSTODY_ABI,
        function="deposit",
        args=[params.user_address, params.token_address, params.amount],
        value=value,
    )


def build_withdraw_call(params: WithdrawParams, custody_address: str) -> ContractCall:
    return ContractCall(
        address=custody_address,
        abi=CUSTODY_ABI,
        function="withdraw",
        args=[params.token_address, params.amount, params.user_address],
    )


class CustodyContract(ABC):
    """Abstract base class for custody contract access."""

    def __init__(self, registry: ChainRegistry):
        self.registry = registry

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError()

    @abstractmethod
    async def send(self, call: ContractCall, private_key: str, chain_id: int) -> str:
        """Sign, broadcast and wait for one confirmation. Returns the tx hash."""
        raise NotImplementedError()

    async def approve_token(self, params: DepositParams) -> str:
        """Approve the chain's custody contract to pull ``amount`` tokens.

        Raises:
            ConfigError: no custody contract for the chain
            ChainError: RPC, signing or receipt failure
        """
        custody = self.registry.get_custody_address(params.chain_id)
        tx_hash = await self.send(
            build_approve_call(params, custody), params.user_private_key, params.chain_id
        )
        logger.info(f"Approve tx {tx_hash} for {params.amount} on chain {params.chain_id}")
        return tx_hash

    async def deposit(self, params: DepositParams) -> str:
        """Deposit into custody on behalf of ``params.user_address``.

        Does not wait for the network to index the deposit.
        """
        custody = self.registry.get_custody_address(params.chain_id)
        tx_hash = await self.send(
            build_deposit_call(params, custody), params.user_private_key, params.chain_id
        )
        logger.info(
            f"Deposit tx {tx_hash} crediting {params.user_address[:10]}... "
            f"on chain {params.chain_id}"
        )
        return tx_hash

    async def withdraw(self, params: WithdrawParams) -> str:
        custody = self.registry.get_custody_address(params.chain_id)
        tx_hash = await self.send(
            build_withdraw_call(params, custody), params.user_private_key, params.chain_id
        )
        logger.info(f"Withdraw tx {tx_hash} on chain {params.chain_id}")
        return tx_hash


class Web3CustodyContract(CustodyContract):
    """Custody access over JSON-RPC using web3.py."""

    def __init__(self, registry: ChainRegistry, receipt_timeout: float = 120.0):
        super().__init__(registry)
        self.receipt_timeout = receipt_timeout
        self._clients: dict[int, AsyncWeb3] = {}

    @property
    def name(self) -> str:
        return "web3"

    def _web3(self, chain_id: int) -> AsyncWeb3:
        if chain_id not in self._clients:
            rpc_url = self.registry.get_rpc_url(chain_id)
            self._clients[chain_id] = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        return self._clients[chain_id]

    async def send(self, call: ContractCall, private_key: str, chain_id: int) -> str:
        w3 = self._web3(chain_id)

        try:
            account = Account.from_key(private_key)
            contract = w3.eth.contract(address=Web3.to_checksum_address(call.address), abi=call.abi)
            args = [
                Web3.to_checksum_address(a) if isinstance(a, str) and a.startswith("0x") else a
                for a in call.args
            ]
            nonce = await w3.eth.get_transaction_count(account.address, "pending")
            tx = await getattr(contract.functions, call.function)(*args).build_transaction({
                "from": account.address,
                "nonce": nonce,
                "chainId": chain_id,
                "value": call.value,
            })
            signed_tx = account.sign_transaction(tx)
            tx_hash = await w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            logger.error(f"{call.function} on chain {chain_id} failed: {e}")
            raise ChainError(f"{call.function} transaction failed: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        if receipt.get("status") != 1:
            raise ChainError(f"{call.function} transaction {tx_hash_hex} reverted")
        return tx_hash_hex


class DryRunCustodyContract(CustodyContract):
    """Records contract calls without broadcasting anything.

    ``on_deposit`` is invoked with (account, token_address, amount) after each
    simulated deposit so a simulated network can index it.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        on_deposit: Optional[Callable[[str, str, int], None]] = None,
    ):
        super().__init__(registry)
        self.on_deposit = on_deposit
        self.calls: list[tuple[int, ContractCall]] = []

    @property
    def name(self) -> str:
        return "dryrun"

    async def send(self, call: ContractCall, private_key: str, chain_id: int) -> str:
        self.calls.append((chain_id, call))
        tx_hash = "0x" + secrets.token_hex(32)
        if call.function == "deposit" and self.on_deposit is not None:
            account, token_address, amount = call.args
            self.on_deposit(account, token_address, amount)
        return tx_hash
