"""Role dashboards."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import require_roles
from club_backend.database.db import get_db_session
from club_backend.database.models import UserRole
from club_backend.services import dashboard_service
from club_backend.services.access_service import CallerContext

router = APIRouter()


@router.get("/api/dashboard/admin/stats")
async def admin_stats(
    caller: CallerContext = Depends(require_roles(UserRole.ADMIN)),
    session: AsyncSession = Depends(get_db_session),
):
    return await dashboard_service.get_admin_stats(session, caller)


@router.get("/api/dashboard/coach/stats")
async def coach_stats(
    caller: CallerContext = Depends(require_roles(UserRole.COACH)),
    session: AsyncSession = Depends(get_db_session),
):
    return await dashboard_service.get_coach_stats(session, caller)


@router.get("/api/dashboard/player/stats")
async def player_stats(
    caller: CallerContext = Depends(require_roles(UserRole.PLAYER)),
    session: AsyncSession = Depends(get_db_session),
):
    return await dashboard_service.get_player_stats(session, caller)
