"""
Player service: scoped listing, profile CRUD and per-player statistics.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import (
    Attendance,
    Match,
    MatchPlayer,
    Player,
    PlayerStatus,
    TrainingSession,
    User,
    UserRole,
)
from club_backend.services import stats_service, user_service
from club_backend.services.access_service import (
    CallerContext,
    check_player_access,
    check_team_assignment,
    require_role,
    scope_players,
)
from club_backend.services.data_service import flush_or_conflict, get_or_404, jersey_taken
from club_backend.services.presenters import (
    attendance_to_dict,
    match_player_to_dict,
    match_to_dict,
    player_to_dict,
)
from club_backend.utils.exceptions import Conflict

logger = logging.getLogger(__name__)

PLAYER_FIELDS = (
    "first_name",
    "last_name",
    "date_of_birth",
    "position",
    "jersey_number",
    "team",
    "status",
    "photo",
    "cv_pdf",
    "address",
    "emergency_contact",
    "emergency_phone",
)


def attendance_summary(records: Iterable[Attendance]) -> Dict:
    """attendance_rate + average_performance for one set of attendance rows."""
    records = list(records)
    return {
        "attendance_rate": stats_service.attendance_rate(records),
        "average_performance": stats_service.average_performance(records),
    }


async def get_attendances_by_player(
    session: AsyncSession, player_ids: Iterable[int]
) -> Dict[int, List[Attendance]]:
    """All attendance rows for the given players, grouped by player id."""
    ids = list(player_ids)
    grouped: Dict[int, List[Attendance]] = defaultdict(list)
    if not ids:
        return grouped
    result = await session.execute(select(Attendance).where(Attendance.player_id.in_(ids)))
    for attendance in result.scalars().all():
        grouped[attendance.player_id].append(attendance)
    return grouped


async def list_players(
    session: AsyncSession,
    caller: CallerContext,
    status: Optional[str] = None,
    position: Optional[str] = None,
    search: Optional[str] = None,
    team: Optional[str] = None,
) -> List[Dict]:
    """
    List the players visible to the caller.

    Coaches are pinned to their own team regardless of the team filter;
    players only ever see themselves.

    Returns:
        List of player dicts, each with attendance_rate and average_performance
    """
    query = scope_players(select(Player), caller)

    if status:
        query = query.where(Player.status == PlayerStatus(status))
    if position:
        query = query.where(Player.position == position)
    if team and caller.is_admin:
        query = query.where(Player.team == team)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(Player.first_name).like(pattern),
                func.lower(Player.last_name).like(pattern),
            )
        )

    result = await session.execute(query.order_by(Player.last_name, Player.first_name))
    players = result.scalars().all()

    attendances = await get_attendances_by_player(session, [p.id for p in players])
    return [player_to_dict(p, stats=attendance_summary(attendances[p.id])) for p in players]


async def get_player(session: AsyncSession, caller: CallerContext, player_id: int) -> Dict:
    """
    Player profile with attendance history, match stats and summary statistics.

    Raises:
        NotFound: Unknown player
        Forbidden: Player outside the caller's scope
    """
    player = await get_or_404(session, Player, player_id, "Player")
    check_player_access(caller, player)

    result = await session.execute(
        select(Attendance, TrainingSession)
        .join(TrainingSession, Attendance.training_session_id == TrainingSession.id)
        .where(Attendance.player_id == player_id)
        .order_by(TrainingSession.date.desc())
    )
    rows = result.all()
    attendances = [a for a, _ in rows]

    match_result = await session.execute(
        select(MatchPlayer, Match)
        .join(Match, MatchPlayer.match_id == Match.id)
        .where(MatchPlayer.player_id == player_id)
        .order_by(Match.match_date.desc())
    )
    matches = []
    for stats_row, match in match_result.all():
        match_dict = match_to_dict(match)
        match_dict["stats"] = match_player_to_dict(stats_row)
        matches.append(match_dict)

    data = player_to_dict(player, stats=attendance_summary(attendances))
    data["attendances"] = [attendance_to_dict(a, training=t) for a, t in rows]
    data["matches"] = matches
    return data


async def create_player(
    session: AsyncSession,
    caller: CallerContext,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    date_of_birth: date,
    team: Optional[str] = None,
    phone: Optional[str] = None,
    **profile,
) -> Dict:
    """
    Create the player's user account and profile in one transaction.

    Coaches may only create players for their own team (and default to it).

    Raises:
        Forbidden: Caller is a player, or a coach targeting another team
        ValidationError: Unknown team / short password
        Conflict: Email or jersey number already taken
    """
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    if team is None and caller.is_coach:
        team = caller.team
    user_service.validate_team(team)
    check_team_assignment(caller, team)

    jersey_number = profile.get("jersey_number")
    if await jersey_taken(session, jersey_number):
        raise Conflict(f"Jersey number {jersey_number} is already taken", field="jersey_number")

    user = await user_service.create_user(
        session,
        name=f"{first_name} {last_name}".strip(),
        email=email,
        password=password,
        role=UserRole.PLAYER,
        phone=phone,
    )

    status = PlayerStatus(profile.pop("status", None) or PlayerStatus.ACTIVE)
    extra = {k: v for k, v in profile.items() if k in PLAYER_FIELDS}
    player = Player(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        team=team,
        status=status,
        **extra,
    )
    session.add(player)
    await flush_or_conflict(session, "jersey_number", "Jersey number is already taken")
    await session.refresh(player)
    logger.info(f"Created player {player.id} ({team}) by user {caller.user_id}")
    return player_to_dict(player, stats=attendance_summary([]))


async def update_player(
    session: AsyncSession, caller: CallerContext, player_id: int, changes: Dict
) -> Dict:
    """
    Partial update of a player profile.

    Raises:
        NotFound / Forbidden: As for get_player, plus players may never write
        Conflict: Jersey number taken by another player
    """
    player = await get_or_404(session, Player, player_id, "Player")
    check_player_access(caller, player, write=True)

    if "team" in changes and changes["team"] != player.team:
        user_service.validate_team(changes["team"])
        check_team_assignment(caller, changes["team"])

    if changes.get("jersey_number") is not None:
        if await jersey_taken(session, changes["jersey_number"], exclude_player_id=player_id):
            raise Conflict(
                f"Jersey number {changes['jersey_number']} is already taken",
                field="jersey_number",
            )

    for field in PLAYER_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == "status":
            if value is None:
                continue
            value = PlayerStatus(value)
        setattr(player, field, value)

    user = await session.get(User, player.user_id)
    if "phone" in changes:
        user.phone = changes["phone"]
    if "first_name" in changes or "last_name" in changes:
        user.name = player.full_name

    await flush_or_conflict(session, "jersey_number", "Jersey number is already taken")
    logger.info(f"Updated player {player_id} by user {caller.user_id}")

    attendances = await get_attendances_by_player(session, [player_id])
    return player_to_dict(player, stats=attendance_summary(attendances[player_id]))


async def delete_player(session: AsyncSession, caller: CallerContext, player_id: int) -> None:
    """Admin only: removes the owning user account and every dependent row."""
    require_role(caller, UserRole.ADMIN)
    player = await get_or_404(session, Player, player_id, "Player")
    await user_service.delete_user(session, player.user_id)
