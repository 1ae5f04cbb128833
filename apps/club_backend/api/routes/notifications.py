"""Notification route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import get_caller, require_staff
from club_backend.database.db import get_db_session
from club_backend.models.schemas import (
    MessageResponse,
    NotificationCreate,
    NotificationResponse,
    NotificationUpdate,
    UnreadCountResponse,
)
from club_backend.services import notification_service
from club_backend.services.access_service import CallerContext

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/notifications", response_model=List[NotificationResponse])
async def get_notifications(
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    """Notifications for the caller with per-user read state."""
    return await notification_service.list_notifications(session, caller)


@router.get("/api/notifications/unread/count", response_model=UnreadCountResponse)
async def get_unread_count(
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    count = await notification_service.get_unread_count(session, caller)
    return {"count": count}


@router.post("/api/notifications/read-all")
async def mark_all_notifications_as_read(
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    """Mark every notification addressed to the caller as read."""
    count = await notification_service.mark_all_as_read(session, caller)
    return {"message": "All notifications marked as read", "count": count}


@router.get("/api/notifications/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: int,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await notification_service.get_notification(session, caller, notification_id)


@router.post("/api/notifications", status_code=201)
async def create_notification(
    payload: NotificationCreate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    notification = await notification_service.create_notification(
        session, caller, **payload.model_dump()
    )
    return {"message": "Notification created successfully", "notification": notification}


@router.put("/api/notifications/{notification_id}")
async def update_notification(
    notification_id: int,
    payload: NotificationUpdate,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    notification = await notification_service.update_notification(
        session, caller, notification_id, payload.model_dump(exclude_unset=True)
    )
    return {"message": "Notification updated successfully", "notification": notification}


@router.delete("/api/notifications/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    caller: CallerContext = Depends(require_staff),
    session: AsyncSession = Depends(get_db_session),
):
    await notification_service.delete_notification(session, caller, notification_id)
    return {"message": "Notification deleted successfully"}


@router.post("/api/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_as_read(
    notification_id: int,
    caller: CallerContext = Depends(get_caller),
    session: AsyncSession = Depends(get_db_session),
):
    return await notification_service.mark_as_read(session, caller, notification_id)
