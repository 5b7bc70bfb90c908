"""Channel endpoints."""

from fastapi import APIRouter, Depends
from pydantic import Field

from tempwallet.api.dependencies import get_channel_service
from tempwallet.api.models import RequestModel, envelope
from tempwallet.services import ChannelService

router = APIRouter(prefix="/channel", tags=["Channel"])


class FundChannelRequest(RequestModel):
    user_id: str = Field(min_length=1)
    chain: str
    asset: str
    amount: str


@router.post("/fund")
async def fund_channel(
    request: FundChannelRequest,
    service: ChannelService = Depends(get_channel_service),
) -> dict:
    """Fund the user's channel, creating it on first use."""
    result = await service.fund_channel(
        request.user_id, request.chain, request.asset, request.amount
    )
    return envelope(result)
