"""Chain and asset registry.

Maps chain names to EVM chain ids, (chain, asset) pairs to token contract
addresses and chain ids to custody contract deployments. The registry is built
from settings and passed to whatever needs it.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Optional, Union

from tempwallet.config import Settings, get_settings
from tempwallet.errors import (
    ConfigError,
    UnsupportedAssetError,
    UnsupportedChainError,
    ValidationError,
)

DEFAULT_DECIMALS = 6

UINT256_MAX = 2**256 - 1
UINT256_MAX_DIGITS = len(str(UINT256_MAX))


def _is_placeholder(address: Optional[str]) -> bool:
    """Addresses like "0x..." or "" are unset deployments."""
    if not address:
        return True
    return address == "0x..." or address.endswith("...") or len(address) != 42


def normalize_chain_name(chain: str) -> str:
    """Normalize a chain name coming from the API.

    Smart-account variants (e.g. ``baseErc4337``) share the chain of their
    base network.
    """
    name = chain.strip().lower()
    if name.endswith("erc4337"):
        name = name[: -len("erc4337")]
    return name


@dataclass
class ChainRegistry:
    """Lookup tables for supported chains, tokens and custody contracts."""

    chain_ids: dict[str, int]
    token_addresses: dict[str, dict[str, str]]
    custody_addresses: dict[int, str] = field(default_factory=dict)
    token_decimals: dict[str, int] = field(default_factory=dict)
    rpc_urls: dict[int, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChainRegistry":
        return cls(
            chain_ids={k.lower(): v for k, v in settings.chain_ids.items()},
            token_addresses={
                chain.lower(): {asset.lower(): addr for asset, addr in assets.items()}
                for chain, assets in settings.token_addresses.items()
            },
            custody_addresses=dict(settings.custody_addresses),
            token_decimals={k.lower(): v for k, v in settings.token_decimals.items()},
            rpc_urls=settings.get_rpc_urls(),
        )

    @property
    def supported_chains(self) -> list[str]:
        return sorted(self.chain_ids)

    def resolve_chain_id(self, chain: str) -> int:
        """Get the EVM chain id for a chain name.

        Raises:
            UnsupportedChainError: chain is not configured
        """
        name = normalize_chain_name(chain)
        if name not in self.chain_ids:
            raise UnsupportedChainError(chain)
        return self.chain_ids[name]

    def resolve_token_address(self, chain: str, asset: str) -> str:
        """Get the token contract address for an asset on a chain.

        Raises:
            UnsupportedChainError: chain is not configured
            UnsupportedAssetError: asset has no address on that chain
        """
        name = normalize_chain_name(chain)
        if name not in self.chain_ids:
            raise UnsupportedChainError(chain)
        address = self.token_addresses.get(name, {}).get(asset.lower())
        if not address:
            raise UnsupportedAssetError(asset, chain)
        return address

    def get_custody_address(self, chain_id: int) -> str:
        """Get the custody contract deployed on a chain.

        Raises:
            ConfigError: no (or a placeholder) custody address for the chain
        """
        address = self.custody_addresses.get(chain_id)
        if _is_placeholder(address):
            raise ConfigError(
                f"Custody contract address not configured for chain {chain_id}. "
                "Set CUSTODY_ADDRESSES in the environment."
            )
        return address

    def get_rpc_url(self, chain_id: int) -> str:
        url = self.rpc_urls.get(chain_id)
        if not url:
            raise ConfigError(f"RPC URL not configured for chain {chain_id}")
        return url

    def get_decimals(self, asset: str) -> int:
        return self.token_decimals.get(asset.lower(), DEFAULT_DECIMALS)

    def asset_for_token(self, token_address: str) -> Optional[str]:
        """Reverse lookup of an asset symbol from its token address."""
        needle = token_address.lower()
        for assets in self.token_addresses.values():
            for asset, address in assets.items():
                if address.lower() == needle:
                    return asset
        return None


def to_smallest_unit(amount: Union[str, Decimal, int], decimals: int) -> int:
    """Convert a human-readable amount to integer base units.

    The conversion is exact integer arithmetic on the decimal digits, so no
    precision is lost for 18-decimal tokens. Fractions below the token's
    precision are floored.

    Raises:
        ValidationError: amount is not a non-negative number, or does not fit
            in a uint256
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {amount}")
    if not value.is_finite() or value < 0:
        raise ValidationError(f"Invalid amount: {amount}")

    _, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits))
    shift = exponent + decimals
    if len(digits) + shift > UINT256_MAX_DIGITS:
        raise ValidationError(f"Amount too large: {amount}")

    if shift >= 0:
        units = coefficient * 10 ** shift
    elif -shift >= len(digits):
        units = 0
    else:
        units = coefficient // 10 ** -shift

    if units > UINT256_MAX:
        raise ValidationError(f"Amount too large: {amount}")
    return units


def from_smallest_unit(amount: int, decimals: int) -> str:
    """Convert integer base units back to an exact decimal string."""
    whole, fraction = divmod(abs(int(amount)), 10 ** decimals)
    text = str(whole)
    if fraction:
        text += "." + str(fraction).rjust(decimals, "0").rstrip("0")
    return f"-{text}" if amount < 0 else text


@lru_cache
def get_chain_registry() -> ChainRegistry:
    """Get the registry built from application settings."""
    return ChainRegistry.from_settings(get_settings())
