"""Custody endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from tempwallet.api.dependencies import get_custody_service
from tempwallet.api.models import RequestModel, envelope
from tempwallet.services import CustodyService

router = APIRouter(prefix="/custody", tags=["Custody"])


class CustodyRequest(RequestModel):
    """Move ``amount`` of ``asset`` (human units, e.g. "10.5") on ``chain``."""

    user_id: str = Field(min_length=1)
    chain: str
    asset: str
    amount: str


@router.post("/deposit")
async def deposit(
    request: CustodyRequest,
    service: CustodyService = Depends(get_custody_service),
) -> dict:
    """Approve and deposit wallet funds into the custody contract."""
    result = await service.deposit_to_custody(
        request.user_id, request.chain, request.asset, request.amount
    )
    return envelope(result)


@router.post("/withdraw")
async def withdraw(
    request: CustodyRequest,
    service: CustodyService = Depends(get_custody_service),
) -> dict:
    result = await service.withdraw_from_custody(
        request.user_id, request.chain, request.asset, request.amount
    )
    return envelope(result)


@router.post("/credit")
async def credit(
    request: CustodyRequest,
    service: CustodyService = Depends(get_custody_service),
) -> dict:
    """Credit funds already in custody to the unified balance."""
    result = await service.credit_from_custody(
        request.user_id, request.chain, request.asset, request.amount
    )
    return envelope(result)


@router.get("/unified-balance")
async def unified_balance(
    user_id: str = Query(..., alias="userId"),
    chain: str = Query(...),
    asset: str = Query(...),
    service: CustodyService = Depends(get_custody_service),
) -> dict:
    result = await service.get_unified_balance(user_id, chain, asset)
    return envelope(result)
