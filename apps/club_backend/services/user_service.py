"""
User service layer: accounts, profiles, coaches and explicit cascade deletion.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import (
    Attendance,
    MatchPlayer,
    Notification,
    NotificationRead,
    Player,
    TrainingSession,
    User,
    UserRole,
)
from club_backend.services import auth_service
from club_backend.services.data_service import (
    email_taken,
    flush_or_conflict,
    get_or_404,
    get_player_by_user_id,
)
from club_backend.services.presenters import user_to_dict
from club_backend.utils.constants import CLUB_TEAMS, MIN_PASSWORD_LENGTH
from club_backend.utils.exceptions import Conflict, NotFound, ValidationError

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_team(team: Optional[str], required: bool = True) -> Optional[str]:
    """Team must be one of the club teams (or absent when not required)."""
    if team is None:
        if required:
            raise ValidationError("Team is required", field="team")
        return None
    if team not in CLUB_TEAMS:
        raise ValidationError(f"Unknown team '{team}'", field="team")
    return team


def _validate_password(password: str, field: str = "password") -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field
        )


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by id, including the player profile when there is one.

    Returns:
        User dictionary or None if not found
    """
    user = await session.get(User, user_id)
    if user is None:
        return None
    player = await get_player_by_user_id(session, user.id)
    return user_to_dict(user, player=player)


async def authenticate(session: AsyncSession, email: str, password: str) -> Optional[Dict]:
    """
    Check credentials.

    Returns:
        User dictionary on success, None on unknown email, wrong password or
        deactivated account
    """
    result = await session.execute(select(User).where(User.email == _normalize_email(email)))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    if not auth_service.verify_password(password, user.password_hash):
        return None
    player = await get_player_by_user_id(session, user.id)
    return user_to_dict(user, player=player)


async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    team: Optional[str] = None,
    phone: Optional[str] = None,
    speciality: Optional[str] = None,
) -> User:
    """
    Create a user account.

    Raises:
        ValidationError: On a short password or unknown team
        Conflict: If the email is already registered
    """
    _validate_password(password)
    email = _normalize_email(email)
    if await email_taken(session, email):
        raise Conflict(f"Email {email} is already registered", field="email")

    user = User(
        name=name,
        email=email,
        password_hash=auth_service.hash_password(password),
        role=role,
        team=validate_team(team, required=False),
        phone=phone,
        speciality=speciality,
        is_active=True,
    )
    session.add(user)
    await flush_or_conflict(session, "email", f"Email {email} is already registered")
    await session.refresh(user)
    logger.info(f"Created {role.value} user {user.id}")
    return user


async def update_profile(
    session: AsyncSession,
    user_id: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> Dict:
    """Update the caller's own profile fields."""
    user = await get_or_404(session, User, user_id, "User")

    if email is not None:
        email = _normalize_email(email)
        if await email_taken(session, email, exclude_user_id=user_id):
            raise Conflict(f"Email {email} is already registered", field="email")
        user.email = email
    if name is not None:
        user.name = name
    if phone is not None:
        user.phone = phone

    await flush_or_conflict(session, "email", "Email is already registered")
    player = await get_player_by_user_id(session, user_id)
    return user_to_dict(user, player=player)


async def change_password(
    session: AsyncSession, user_id: int, current_password: str, new_password: str
) -> None:
    """
    Replace the user's password.

    Raises:
        ValidationError: If the current password does not match or the new one is too short
    """
    user = await get_or_404(session, User, user_id, "User")
    if not auth_service.verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")
    _validate_password(new_password, field="new_password")
    user.password_hash = auth_service.hash_password(new_password)
    await session.flush()


async def delete_user(session: AsyncSession, user_id: int) -> None:
    """
    Delete a user and everything that depends on it.

    Deletion order is explicit: the player's match stats and attendance rows,
    the player profile, attendance rows of sessions the user authored, those
    sessions, read receipts and notifications the user authored, the user's
    own read receipts, then the user. Runs inside the caller's transaction.
    """
    user = await get_or_404(session, User, user_id, "User")

    player = await get_player_by_user_id(session, user_id)
    if player is not None:
        await session.execute(delete(MatchPlayer).where(MatchPlayer.player_id == player.id))
        await session.execute(delete(Attendance).where(Attendance.player_id == player.id))
        await session.execute(delete(Player).where(Player.id == player.id))

    authored_sessions = select(TrainingSession.id).where(TrainingSession.coach_id == user_id)
    await session.execute(
        delete(Attendance).where(Attendance.training_session_id.in_(authored_sessions))
    )
    await session.execute(delete(TrainingSession).where(TrainingSession.coach_id == user_id))

    authored_notifications = select(Notification.id).where(Notification.created_by == user_id)
    await session.execute(
        delete(NotificationRead).where(
            NotificationRead.notification_id.in_(authored_notifications)
        )
    )
    await session.execute(delete(Notification).where(Notification.created_by == user_id))
    await session.execute(delete(NotificationRead).where(NotificationRead.user_id == user_id))

    await session.execute(delete(User).where(User.id == user.id))
    logger.info(f"Deleted user {user_id} and dependent rows")


# ============================================================================
# Coaches
# ============================================================================

async def _get_coach(session: AsyncSession, coach_id: int) -> User:
    user = await session.get(User, coach_id)
    if user is None or user.role != UserRole.COACH:
        raise NotFound(f"Coach {coach_id} not found")
    return user


async def list_coaches(session: AsyncSession) -> List[Dict]:
    result = await session.execute(
        select(User).where(User.role == UserRole.COACH).order_by(User.name)
    )
    return [user_to_dict(u) for u in result.scalars().all()]


async def get_coach(session: AsyncSession, coach_id: int) -> Dict:
    return user_to_dict(await _get_coach(session, coach_id))


async def create_coach(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    team: str,
    phone: Optional[str] = None,
    speciality: Optional[str] = None,
) -> Dict:
    validate_team(team)
    coach = await create_user(
        session,
        name=name,
        email=email,
        password=password,
        role=UserRole.COACH,
        team=team,
        phone=phone,
        speciality=speciality,
    )
    return user_to_dict(coach)


async def update_coach(session: AsyncSession, coach_id: int, changes: Dict) -> Dict:
    """Apply a partial update to a coach (password is not changed here)."""
    coach = await _get_coach(session, coach_id)

    if "email" in changes and changes["email"] is not None:
        email = _normalize_email(changes["email"])
        if await email_taken(session, email, exclude_user_id=coach_id):
            raise Conflict(f"Email {email} is already registered", field="email")
        coach.email = email
    if "team" in changes:
        coach.team = validate_team(changes["team"])
    for field in ("name", "phone", "speciality", "is_active"):
        if field in changes and changes[field] is not None:
            setattr(coach, field, changes[field])

    await flush_or_conflict(session, "email", "Email is already registered")
    return user_to_dict(coach)


async def delete_coach(session: AsyncSession, coach_id: int) -> None:
    await _get_coach(session, coach_id)
    await delete_user(session, coach_id)


async def ensure_default_admin(
    session: AsyncSession, name: str, email: str, password: str
) -> bool:
    """
    Create an admin account when the database has none.

    Returns:
        True if an admin was created
    """
    result = await session.execute(select(User.id).where(User.role == UserRole.ADMIN).limit(1))
    if result.scalar_one_or_none() is not None:
        return False
    await create_user(session, name=name, email=email, password=password, role=UserRole.ADMIN)
    return True
