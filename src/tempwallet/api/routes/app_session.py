"""App session endpoints."""

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from tempwallet.api.dependencies import get_session_service
from tempwallet.api.models import RequestModel, envelope
from tempwallet.services import AppSessionService

router = APIRouter(prefix="/app-session", tags=["App Sessions"])


class AuthenticateRequest(RequestModel):
    user_id: str = Field(min_length=1)
    chain: str


class InitialAllocation(RequestModel):
    participant: str
    amount: str


class CreateSessionRequest(RequestModel):
    user_id: str = Field(min_length=1)
    chain: str
    participants: list[str] = Field(default_factory=list)
    weights: Optional[list[int]] = None
    quorum: Optional[int] = None
    token: str
    initial_allocations: list[InitialAllocation] = Field(default_factory=list)
    session_data: Any = None


class AllocationItem(RequestModel):
    participant: str = Field(min_length=1)
    asset: str = Field(min_length=1)
    amount: str = Field(min_length=1)


class UpdateAllocationRequest(RequestModel):
    user_id: str = Field(min_length=1)
    chain: str
    intent: Literal["DEPOSIT", "OPERATE", "WITHDRAW"]
    allocations: list[AllocationItem]
    session_data: Any = None


@router.post("/authenticate")
async def authenticate(
    request: AuthenticateRequest,
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    """Authenticate the user's wallet with the settlement network."""
    result = await service.authenticate_wallet(request.user_id, request.chain)
    return envelope(result)


@router.post("", status_code=201)
async def create_session(
    request: CreateSessionRequest,
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    """Create an app session with the caller as first participant."""
    result = await service.create_app_session(
        user_id=request.user_id,
        chain=request.chain,
        participants=request.participants,
        token=request.token,
        weights=request.weights,
        quorum=request.quorum,
        initial_allocations=[a.model_dump() for a in request.initial_allocations],
        session_data=request.session_data,
    )
    return envelope(result)


# Declared before "/{session_id}" so "discover" is not taken as a session id
@router.get("/discover/{user_id}")
async def discover_sessions(
    user_id: str,
    chain: str = Query(...),
    status: Optional[Literal["open", "closed"]] = Query(None),
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    result = await service.discover_sessions(user_id, chain, status)
    return envelope(result)


@router.get("/{session_id}")
async def query_session(
    session_id: str,
    user_id: str = Query(..., alias="userId"),
    chain: str = Query(...),
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    result = await service.query_session(user_id, chain, session_id)
    return envelope(result)


@router.get("/{session_id}/balances")
async def session_balances(
    session_id: str,
    user_id: str = Query(..., alias="userId"),
    chain: str = Query(...),
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    result = await service.get_session_balances(user_id, chain, session_id)
    return envelope(result)


@router.patch("/{session_id}")
async def update_allocation(
    session_id: str,
    request: UpdateAllocationRequest,
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    """Replace the session's allocations (open sessions only)."""
    result = await service.update_allocation(
        user_id=request.user_id,
        chain=request.chain,
        app_session_id=session_id,
        intent=request.intent,
        allocations=[a.model_dump() for a in request.allocations],
        session_data=request.session_data,
    )
    return envelope(result)


@router.delete("/{session_id}")
async def close_session(
    session_id: str,
    user_id: str = Query(..., alias="userId"),
    chain: str = Query(...),
    service: AppSessionService = Depends(get_session_service),
) -> dict:
    """Close the session with its current allocations."""
    result = await service.close_session(user_id, chain, session_id)
    return envelope(result)
