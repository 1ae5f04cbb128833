"""
Authentication dependencies for FastAPI routes.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.services import auth_service, user_service
from club_backend.services.access_service import CallerContext
from club_backend.database.db import get_db_session
from club_backend.database.models import UserRole

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        session: Database session
        credentials: HTTP Bearer token credentials

    Returns:
        User dictionary (with the player profile for players)

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user is
            unknown or deactivated
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication token")

    user_id = payload.get("user_id")
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.get("is_active", True):
        raise _unauthorized("Account is deactivated")

    return user


async def get_caller(user: dict = Depends(get_current_user)) -> CallerContext:
    """Explicit caller identity handed to the service layer."""
    return CallerContext.from_user(user)


def require_roles(*roles: UserRole):
    """
    Dependency factory: the caller must hold one of the given roles.

    Example:
        caller: CallerContext = Depends(require_roles(UserRole.ADMIN))
    """

    async def _dep(caller: CallerContext = Depends(get_caller)) -> CallerContext:
        if caller.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of the roles: {allowed}",
            )
        return caller

    return _dep


require_admin = require_roles(UserRole.ADMIN)
require_staff = require_roles(UserRole.ADMIN, UserRole.COACH)
