"""Custody contract and coordinator factory."""

from decimal import Decimal
from typing import Optional

from tempwallet.chains import from_smallest_unit, get_chain_registry
from tempwallet.config import get_settings
from tempwallet.custody.contract import (
    CustodyContract,
    DryRunCustodyContract,
    Web3CustodyContract,
)
from tempwallet.custody.coordinator import CustodyCreditCoordinator
from tempwallet.network.factory import get_network_client
from tempwallet.network.simulated import SimulatedNetworkClient

# Singleton instances
_custody_contract: Optional[CustodyContract] = None
_coordinator: Optional[CustodyCreditCoordinator] = None


def get_custody_contract() -> CustodyContract:
    """Get the custody contract client.

    DRY_RUN (default) records calls instead of broadcasting. When paired with
    the simulated network, dry-run deposits are indexed into it.
    """
    global _custody_contract

    if _custody_contract is not None:
        return _custody_contract

    settings = get_settings()
    registry = get_chain_registry()

    if settings.dry_run:
        on_deposit = None
        network = get_network_client()
        if isinstance(network, SimulatedNetworkClient):
            def on_deposit(account: str, token_address: str, amount: int) -> None:
                asset = registry.asset_for_token(token_address) or token_address
                human = from_smallest_unit(amount, registry.get_decimals(asset))
                network.record_custody_deposit(account, asset, Decimal(human))

        _custody_contract = DryRunCustodyContract(registry, on_deposit=on_deposit)
    else:
        _custody_contract = Web3CustodyContract(
            registry, receipt_timeout=settings.receipt_timeout
        )
    return _custody_contract


def get_coordinator() -> CustodyCreditCoordinator:
    global _coordinator

    if _coordinator is None:
        _coordinator = CustodyCreditCoordinator(
            custody=get_custody_contract(),
            network=get_network_client(),
            registry=get_chain_registry(),
            lock_timeout=get_settings().lock_timeout,
        )
    return _coordinator


def reset_custody() -> None:
    """Reset instances (useful for testing)."""
    global _custody_contract, _coordinator
    _custody_contract = None
    _coordinator = None
