"""
Role and team scoping.

Every check takes an explicit CallerContext; nothing here reads request or
process state. Admins see and change everything, coaches work inside their own
team, players only read what is theirs.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import false, select
from sqlalchemy.sql import Select

from club_backend.database.models import (
    Attendance,
    Player,
    TargetRole,
    TrainingSession,
    UserRole,
)
from club_backend.utils.exceptions import Forbidden, Unauthorized


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller for one request."""

    user_id: int
    role: UserRole
    team: Optional[str] = None
    player_id: Optional[int] = None

    @classmethod
    def from_user(cls, user: Optional[dict]) -> "CallerContext":
        """Build from a user dict (as returned by user_service)."""
        if not user:
            raise Unauthorized("Not authenticated")
        player = user.get("player") or {}
        return cls(
            user_id=user["id"],
            role=UserRole(user["role"]),
            team=user.get("team") or player.get("team"),
            player_id=player.get("id"),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_coach(self) -> bool:
        return self.role == UserRole.COACH

    @property
    def is_player(self) -> bool:
        return self.role == UserRole.PLAYER


def _unknown_role(role) -> Forbidden:
    return Forbidden(f"Unknown role: {role}")


def require_role(caller: Optional[CallerContext], *roles: UserRole) -> CallerContext:
    """Raise Unauthorized without a caller and Forbidden when the role is not allowed."""
    if caller is None:
        raise Unauthorized("Not authenticated")
    if caller.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise Forbidden(f"Requires one of the roles: {allowed}")
    return caller


# ============================================================================
# Players
# ============================================================================

def scope_players(query: Select, caller: CallerContext) -> Select:
    """Narrow a Player query to the rows the caller may read."""
    if caller.role == UserRole.ADMIN:
        return query
    if caller.role == UserRole.COACH:
        if not caller.team:
            return query.where(false())
        return query.where(Player.team == caller.team)
    if caller.role == UserRole.PLAYER:
        return query.where(Player.user_id == caller.user_id)
    raise _unknown_role(caller.role)


def check_player_access(caller: CallerContext, player: Player, write: bool = False) -> None:
    """
    Raise Forbidden unless the caller may read (or write) this player.

    Coaches reach only their own team; players only read their own profile.
    """
    if caller.role == UserRole.ADMIN:
        return
    if caller.role == UserRole.COACH:
        if not caller.team or player.team != caller.team:
            raise Forbidden("Player belongs to another team")
        return
    if caller.role == UserRole.PLAYER:
        if write:
            raise Forbidden("Players cannot modify player records")
        if player.user_id != caller.user_id:
            raise Forbidden("Players can only view their own profile")
        return
    raise _unknown_role(caller.role)


def check_team_assignment(caller: CallerContext, team: Optional[str]) -> None:
    """Coaches may only place players (or sessions) in their own team."""
    if caller.role == UserRole.ADMIN:
        return
    if caller.role == UserRole.COACH:
        if team != caller.team:
            raise Forbidden("Coaches can only manage their own team", field="team")
        return
    if caller.role == UserRole.PLAYER:
        raise Forbidden("Players cannot assign teams")
    raise _unknown_role(caller.role)


# ============================================================================
# Training sessions
# ============================================================================

def scope_trainings(query: Select, caller: CallerContext) -> Select:
    """Narrow a TrainingSession query to the rows the caller may read."""
    if caller.role == UserRole.ADMIN:
        return query
    if caller.role == UserRole.COACH:
        if not caller.team:
            return query.where(TrainingSession.coach_id == caller.user_id)
        return query.where(TrainingSession.team == caller.team)
    if caller.role == UserRole.PLAYER:
        if caller.player_id is None:
            return query.where(false())
        attends = (
            select(Attendance.id)
            .where(
                Attendance.training_session_id == TrainingSession.id,
                Attendance.player_id == caller.player_id,
            )
            .exists()
        )
        return query.where(attends)
    raise _unknown_role(caller.role)


def check_training_access(
    caller: CallerContext,
    training: TrainingSession,
    write: bool = False,
    player_attends: bool = False,
) -> None:
    """Raise Forbidden unless the caller may read (or write) this session."""
    if caller.role == UserRole.ADMIN:
        return
    if caller.role == UserRole.COACH:
        # same rule as scope_trainings
        if caller.team:
            allowed = training.team == caller.team
        else:
            allowed = training.coach_id == caller.user_id
        if not allowed:
            raise Forbidden("Training session belongs to another team")
        return
    if caller.role == UserRole.PLAYER:
        if write:
            raise Forbidden("Players cannot modify training sessions")
        if not player_attends:
            raise Forbidden("Players can only view their own training sessions")
        return
    raise _unknown_role(caller.role)


# ============================================================================
# Notifications
# ============================================================================

def notification_audience(caller: CallerContext) -> List[TargetRole]:
    """Target roles whose notifications are addressed to the caller."""
    if caller.role == UserRole.ADMIN:
        return [TargetRole.ALL, TargetRole.ADMIN]
    if caller.role == UserRole.COACH:
        return [TargetRole.ALL, TargetRole.COACH]
    if caller.role == UserRole.PLAYER:
        return [TargetRole.ALL, TargetRole.PLAYER]
    raise _unknown_role(caller.role)


def can_manage_notifications(caller: CallerContext) -> bool:
    """Admins and coaches author notifications and see every one of them."""
    if caller.role in (UserRole.ADMIN, UserRole.COACH):
        return True
    if caller.role == UserRole.PLAYER:
        return False
    raise _unknown_role(caller.role)
