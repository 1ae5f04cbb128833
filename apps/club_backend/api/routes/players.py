"""Player route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import get_caller, require_admin, require_staff
from club_backend.database.db import get_db_session
from club_backend.database.models import PlayerStatus
from club_backend.models.schemas import MessageResponse, PlayerCreate, PlayerUpdate
from club_backend.services import player_service
from club_backend.services.access_service import CallerContext

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players")
async def list_players(
    status: Optional[PlayerStatus] = None,
    position: Optional[str] = None,
    search: Optional[str] = None,
    team: Optional[str] = None,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    """
    List players visible to the caller.

    Coaches only ever see their own team; the team filter applies to admins.
    """
    return await player_service.list_players(
        session, caller, status=status, position=position, search=search, team=team
    )


@router.get("/api/players/{player_id}")
async def get_player(
    player_id: int,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await player_service.get_player(session, caller, player_id)


@router.post("/api/players", status_code=201)
async def create_player(
    payload: PlayerCreate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    player = await player_service.create_player(
        session, caller, **payload.model_dump(exclude_none=True)
    )
    return {"message": "Player created successfully", "player": player}


@router.put("/api/players/{player_id}")
async def update_player(
    player_id: int,
    payload: PlayerUpdate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    player = await player_service.update_player(
        session, caller, player_id, payload.model_dump(exclude_unset=True)
    )
    return {"message": "Player updated successfully", "player": player}


@router.delete("/api/players/{player_id}", response_model=MessageResponse)
async def delete_player(
    player_id: int,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    await player_service.delete_player(session, caller, player_id)
    logger.info(f"Player {player_id} deleted by admin {caller.user_id}")
    return {"message": "Player deleted successfully"}
