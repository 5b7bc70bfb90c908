"""Health check endpoints."""

from fastapi import APIRouter, Depends

from tempwallet import __version__
from tempwallet.api.models import envelope
from tempwallet.config import get_settings
from tempwallet.network.base import NetworkClient
from tempwallet.network.factory import get_network_client

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"ok": True, "status": "healthy", "service": "tempwallet"}


@router.get("/health/detailed")
async def detailed_health(network: NetworkClient = Depends(get_network_client)):
    """Detailed health check with redacted configuration."""
    settings = get_settings()
    return envelope({
        "status": "healthy",
        "service": "tempwallet",
        "version": __version__,
        "network_client": network.name,
        "config": settings.get_safe_dict(),
    })
