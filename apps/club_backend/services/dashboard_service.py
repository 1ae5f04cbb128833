"""
Dashboard service.

Each dashboard narrows the rows through access scoping, loads them, and hands
them to the pure functions in stats_service.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import (
    Attendance,
    Match,
    MatchResult,
    MatchStatus,
    Player,
    PlayerStatus,
    TrainingSession,
    TrainingStatus,
    User,
    UserRole,
)
from club_backend.services import stats_service
from club_backend.services.access_service import CallerContext, require_role, scope_players
from club_backend.services.player_service import attendance_summary
from club_backend.services.presenters import match_to_dict, player_to_dict, training_to_dict
from club_backend.utils.constants import (
    ATTENDED_STATUSES,
    CLUB_TEAMS,
    RECENT_PERFORMANCES_LIMIT,
    TOP_PLAYERS_LIMIT,
    UNASSIGNED_COACH,
    UPCOMING_MATCHES_LIMIT,
    UPCOMING_TRAININGS_LIMIT,
)
from club_backend.utils.datetime_utils import isoformat_or_none, today
from club_backend.utils.exceptions import NotFound

logger = logging.getLogger(__name__)


async def _all(session: AsyncSession, query) -> List:
    result = await session.execute(query)
    return list(result.scalars().all())


def _team_overview(players: List[Player], coaches: List[User]) -> List[Dict]:
    """Per club team: player count and the assigned coach's name."""
    player_counts = stats_service.group_counts(players, "team")
    coach_by_team: Dict[str, str] = {}
    for coach in coaches:
        if coach.team and coach.team not in coach_by_team:
            coach_by_team[coach.team] = coach.name
    return [
        {
            "team": team,
            "player_count": player_counts.get(team, 0),
            "coach_name": coach_by_team.get(team, UNASSIGNED_COACH),
        }
        for team in CLUB_TEAMS
    ]


async def get_admin_stats(session: AsyncSession, caller: CallerContext) -> Dict:
    """Club-wide overview for admins."""
    require_role(caller, UserRole.ADMIN)

    players = await _all(session, select(Player))
    trainings = await _all(session, select(TrainingSession))
    matches = await _all(session, select(Match))
    attendances = await _all(session, select(Attendance))
    users = await _all(session, select(User))
    coaches = [u for u in users if u.role == UserRole.COACH and u.is_active]
    coaches.sort(key=lambda u: u.id)

    match_stats = stats_service.status_breakdown(matches, MatchStatus)
    match_stats["results"] = stats_service.status_breakdown(matches, MatchResult, key="result")
    match_stats["win_rate"] = stats_service.win_rate(matches)

    return {
        "players": stats_service.status_breakdown(players, PlayerStatus),
        "trainings": stats_service.status_breakdown(trainings, TrainingStatus),
        "matches": match_stats,
        "attendance_rate": stats_service.attendance_rate(attendances),
        "average_performance": stats_service.average_performance(attendances),
        "users_by_role": stats_service.status_breakdown(users, UserRole, key="role"),
        "teams": _team_overview(players, coaches),
    }


async def get_coach_stats(session: AsyncSession, caller: CallerContext) -> Dict:
    """
    Team dashboard for a coach.

    Attendance figures cover the coach's own sessions, restricted to the
    players of the coach's team.
    """
    require_role(caller, UserRole.COACH)

    players = await _all(session, scope_players(select(Player), caller).order_by(Player.id))
    trainings = await _all(
        session, select(TrainingSession).where(TrainingSession.coach_id == caller.user_id)
    )
    player_ids = [p.id for p in players]
    training_ids = [t.id for t in trainings]

    attendances: List[Attendance] = []
    if player_ids and training_ids:
        attendances = await _all(
            session,
            select(Attendance).where(
                Attendance.training_session_id.in_(training_ids),
                Attendance.player_id.in_(player_ids),
            ),
        )

    by_player: Dict[int, List[Attendance]] = {pid: [] for pid in player_ids}
    for attendance in attendances:
        by_player[attendance.player_id].append(attendance)

    summaries = [
        player_to_dict(p, stats=attendance_summary(by_player[p.id]))
        for p in players
        if p.status == PlayerStatus.ACTIVE
    ]

    current = today()
    upcoming = [
        t for t in trainings if t.status == TrainingStatus.SCHEDULED and t.date >= current
    ]

    return {
        "team": caller.team,
        "players": stats_service.status_breakdown(players, PlayerStatus),
        "trainings": {
            **stats_service.status_breakdown(trainings, TrainingStatus),
            "upcoming": len(upcoming),
        },
        "attendance_rate": stats_service.attendance_rate(attendances),
        "average_performance": stats_service.average_performance(attendances),
        "top_players": stats_service.top_players(summaries, TOP_PLAYERS_LIMIT),
    }


async def get_player_stats(session: AsyncSession, caller: CallerContext) -> Dict:
    """
    Personal dashboard for a player.

    The performance trend is computed over the most recent scored sessions in
    chronological order (oldest first).
    """
    require_role(caller, UserRole.PLAYER)
    if caller.player_id is None:
        raise NotFound("Player profile not found")
    player = await session.get(Player, caller.player_id)
    if player is None:
        raise NotFound("Player profile not found")

    result = await session.execute(
        select(Attendance, TrainingSession)
        .join(TrainingSession, Attendance.training_session_id == TrainingSession.id)
        .where(Attendance.player_id == player.id)
        .order_by(TrainingSession.date.desc(), TrainingSession.start_time.desc())
    )
    rows = result.all()
    attendances = [a for a, _ in rows]

    recent = [
        {
            "training_id": training.id,
            "title": training.title,
            "date": isoformat_or_none(training.date),
            "performance_score": attendance.performance_score,
            "remarks": attendance.remarks,
        }
        for attendance, training in rows
        if attendance.performance_score is not None
    ][:RECENT_PERFORMANCES_LIMIT]
    chronological = [r["performance_score"] for r in reversed(recent)]

    current = today()
    upcoming_trainings = await _all(
        session,
        select(TrainingSession)
        .where(
            TrainingSession.team == player.team,
            TrainingSession.status == TrainingStatus.SCHEDULED,
            TrainingSession.date >= current,
        )
        .order_by(TrainingSession.date, TrainingSession.start_time)
        .limit(UPCOMING_TRAININGS_LIMIT),
    )
    upcoming_matches = await _all(
        session,
        select(Match)
        .where(Match.status == MatchStatus.SCHEDULED, Match.match_date >= current)
        .order_by(Match.match_date, Match.match_time)
        .limit(UPCOMING_MATCHES_LIMIT),
    )

    return {
        "player": player_to_dict(player),
        "total_trainings": len(attendances),
        "trainings_attended": sum(
            1 for a in attendances if a.status.value in ATTENDED_STATUSES
        ),
        **attendance_summary(attendances),
        "performance_trend": stats_service.trend(chronological),
        "recent_performances": recent,
        "upcoming_trainings": [training_to_dict(t) for t in upcoming_trainings],
        "upcoming_matches": [match_to_dict(m) for m in upcoming_matches],
    }
