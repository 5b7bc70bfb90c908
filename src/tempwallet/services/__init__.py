"""Use cases exposed over HTTP."""

from tempwallet.services.channel_service import ChannelService
from tempwallet.services.custody_service import CustodyService
from tempwallet.services.session_service import AppSessionService

__all__ = ["AppSessionService", "ChannelService", "CustodyService"]
