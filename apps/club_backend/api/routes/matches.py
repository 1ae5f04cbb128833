"""Match route handlers."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import get_caller, require_staff
from club_backend.database.db import get_db_session
from club_backend.database.models import MatchResult, MatchStatus
from club_backend.models.schemas import (
    MatchCreate,
    MatchPlayersRequest,
    MatchSummaryResponse,
    MatchUpdate,
    MessageResponse,
)
from club_backend.services import match_service
from club_backend.services.access_service import CallerContext

router = APIRouter()


@router.get("/api/matches/stats/summary", response_model=MatchSummaryResponse)
async def get_match_summary(
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    """Totals, results and goals over every match."""
    return await match_service.get_summary(session)


@router.get("/api/matches")
async def list_matches(
    status: Optional[MatchStatus] = None,
    result: Optional[MatchResult] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await match_service.list_matches(
        session, status=status, result=result, from_date=from_date, to_date=to_date
    )


@router.get("/api/matches/{match_id}")
async def get_match(
    match_id: int,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await match_service.get_match(session, match_id)


@router.post("/api/matches", status_code=201)
async def create_match(
    payload: MatchCreate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    match = await match_service.create_match(session, caller, **payload.model_dump())
    return {"message": "Match created successfully", "match": match}


@router.put("/api/matches/{match_id}")
async def update_match(
    match_id: int,
    payload: MatchUpdate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    """Partial update; the result is recomputed whenever a score is sent."""
    match = await match_service.update_match(
        session, caller, match_id, payload.model_dump(exclude_unset=True)
    )
    return {"message": "Match updated successfully", "match": match}


@router.delete("/api/matches/{match_id}", response_model=MessageResponse)
async def delete_match(
    match_id: int,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    await match_service.delete_match(session, caller, match_id)
    return {"message": "Match deleted successfully"}


@router.post("/api/matches/{match_id}/players")
async def add_match_players(
    match_id: int,
    payload: MatchPlayersRequest,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    match = await match_service.add_players(
        session,
        caller,
        match_id,
        [entry.model_dump(exclude_unset=True) for entry in payload.players],
    )
    return {"message": "Match players saved successfully", "match": match}
