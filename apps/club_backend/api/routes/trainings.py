"""Training session and attendance route handlers."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import get_caller, require_staff
from club_backend.database.db import get_db_session
from club_backend.database.models import TrainingStatus
from club_backend.models.schemas import (
    AttendanceRequest,
    MessageResponse,
    TrainingCreate,
    TrainingUpdate,
)
from club_backend.services import training_service
from club_backend.services.access_service import CallerContext

router = APIRouter()


@router.get("/api/trainings")
async def list_trainings(
    status: Optional[TrainingStatus] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await training_service.list_trainings(
        session, caller, status=status, from_date=from_date, to_date=to_date
    )


@router.get("/api/trainings/{training_id}")
async def get_training(
    training_id: int,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await training_service.get_training(session, caller, training_id)


@router.post("/api/trainings", status_code=201)
async def create_training(
    payload: TrainingCreate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a session; every active player gets an 'absent' attendance row."""
    training = await training_service.create_training(session, caller, **payload.model_dump())
    return {"message": "Training session created successfully", "training": training}


@router.put("/api/trainings/{training_id}")
async def update_training(
    training_id: int,
    payload: TrainingUpdate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    training = await training_service.update_training(
        session, caller, training_id, payload.model_dump(exclude_unset=True)
    )
    return {"message": "Training session updated successfully", "training": training}


@router.delete("/api/trainings/{training_id}", response_model=MessageResponse)
async def delete_training(
    training_id: int,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    await training_service.delete_training(session, caller, training_id)
    return {"message": "Training session deleted successfully"}


@router.post("/api/trainings/{training_id}/attendance")
async def mark_attendance(
    training_id: int,
    payload: AttendanceRequest,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    """Upsert attendance rows; re-submitting a player updates the existing row."""
    training = await training_service.mark_attendance(
        session,
        caller,
        training_id,
        [entry.model_dump() for entry in payload.attendances],
    )
    return {"message": "Attendance marked successfully", "training": training}
