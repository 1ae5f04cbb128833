"""Coach account route handlers (admin only)."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import require_admin
from club_backend.database.db import get_db_session
from club_backend.models.schemas import CoachCreate, CoachUpdate, MessageResponse
from club_backend.services import user_service
from club_backend.services.access_service import CallerContext

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/coaches")
async def list_coaches(
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await user_service.list_coaches(session)


@router.get("/api/coaches/{coach_id}")
async def get_coach(
    coach_id: int,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await user_service.get_coach(session, coach_id)


@router.post("/api/coaches", status_code=201)
async def create_coach(
    payload: CoachCreate,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    coach = await user_service.create_coach(session, **payload.model_dump())
    return {"message": "Coach created successfully", "coach": coach}


@router.put("/api/coaches/{coach_id}")
async def update_coach(
    coach_id: int,
    payload: CoachUpdate,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    coach = await user_service.update_coach(
        session, coach_id, payload.model_dump(exclude_unset=True)
    )
    return {"message": "Coach updated successfully", "coach": coach}


@router.delete("/api/coaches/{coach_id}", response_model=MessageResponse)
async def delete_coach(
    coach_id: int,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Deletes the coach with the sessions and notifications they authored."""
    await user_service.delete_coach(session, coach_id)
    logger.info(f"Coach {coach_id} deleted by admin {caller.user_id}")
    return {"message": "Coach deleted successfully"}
