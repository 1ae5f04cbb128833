"""Authentication and own-profile route handlers."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.api.auth_dependencies import get_current_user
from club_backend.api.routes import INVALID_CREDENTIALS_RESPONSE, LOGIN_RATE_LIMIT, limiter
from club_backend.database.db import get_db_session
from club_backend.models.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
)
from club_backend.services import auth_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _token_response(user: dict) -> dict:
    token = auth_service.create_access_token({"user_id": user["id"], "role": user["role"]})
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": auth_service.token_expires_in(),
        "user": user,
    }


@router.post("/api/login", response_model=AuthResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Exchange email and password for a bearer token."""
    user = await user_service.authenticate(session, payload.email, payload.password)
    if user is None:
        logger.info("Rejected login attempt")
        raise INVALID_CREDENTIALS_RESPONSE
    logger.info(f"User {user['id']} logged in")
    return _token_response(user)


@router.post("/api/logout", response_model=MessageResponse)
async def logout(user: dict = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    return {"message": "Successfully logged out"}


@router.post("/api/refresh", response_model=AuthResponse)
async def refresh(user: dict = Depends(get_current_user)):
    """Issue a fresh token for the current identity."""
    return _token_response(user)


@router.get("/api/me")
async def me(user: dict = Depends(get_current_user)):
    return user


@router.put("/api/profile")
async def update_profile(
    payload: ProfileUpdate,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    updated = await user_service.update_profile(
        session, user["id"], name=payload.name, email=payload.email, phone=payload.phone
    )
    return {"message": "Profile updated successfully", "user": updated}


@router.put("/api/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    await user_service.change_password(
        session, user["id"], payload.current_password, payload.new_password
    )
    logger.info(f"User {user['id']} changed password")
    return {"message": "Password changed successfully"}
