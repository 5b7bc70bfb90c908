"""Custody contract access and unified-balance crediting."""

from tempwallet.custody.contract import (
    ContractCall,
    CustodyContract,
    DepositParams,
    DryRunCustodyContract,
    Web3CustodyContract,
    WithdrawParams,
    build_approve_call,
    build_deposit_call,
    build_withdraw_call,
)
from tempwallet.custody.coordinator import (
    CreditRequest,
    CreditResult,
    CustodyCreditCoordinator,
)
from tempwallet.custody.factory import get_coordinator, get_custody_contract, reset_custody

__all__ = [
    "ContractCall",
    "CreditRequest",
    "CreditResult",
    "CustodyContract",
    "CustodyCreditCoordinator",
    "DepositParams",
    "DryRunCustodyContract",
    "Web3CustodyContract",
    "WithdrawParams",
    "build_approve_call",
    "build_deposit_call",
    "build_withdraw_call",
    "get_coordinator",
    "get_custody_contract",
    "reset_custody",
]
