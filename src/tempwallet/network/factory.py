"""Network client factory."""

import logging
from typing import Optional

from tempwallet.chains import get_chain_registry
from tempwallet.config import get_settings
from tempwallet.errors import ConfigError
from tempwallet.network.base import NetworkClient
from tempwallet.network.simulated import SimulatedNetworkClient

logger = logging.getLogger(__name__)

# Singleton instance
_network_client: Optional[NetworkClient] = None


def get_network_client() -> NetworkClient:
    """Get the configured settlement network client.

    Client is selected based on NETWORK_PROVIDER:
    - simulated (default): in-memory clearnode
    """
    global _network_client

    if _network_client is not None:
        return _network_client

    settings = get_settings()
    provider = settings.network_provider.lower()

    if provider == "simulated":
        _network_client = SimulatedNetworkClient(
            registry=get_chain_registry(),
            session_ttl=settings.session_ttl_seconds,
            application=settings.application_name,
        )
    else:
        raise ConfigError(f"Unknown NETWORK_PROVIDER: {settings.network_provider}")

    logger.info(f"Using network client: {_network_client.name}")
    return _network_client


def reset_network_client() -> None:
    """Reset client instance (useful for testing)."""
    global _network_client
    _network_client = None
