"""
Training session service: scoped CRUD, lifecycle and attendance marking.
"""

import logging
from collections import defaultdict
from datetime import date, time
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import (
    Attendance,
    AttendanceStatus,
    Player,
    PlayerStatus,
    TrainingSession,
    TrainingStatus,
    User,
    UserRole,
)
from club_backend.services import user_service
from club_backend.services.access_service import (
    CallerContext,
    check_player_access,
    check_team_assignment,
    check_training_access,
    require_role,
    scope_trainings,
)
from club_backend.services.data_service import get_or_404, get_players_by_ids
from club_backend.services.player_service import attendance_summary
from club_backend.services.presenters import training_to_dict
from club_backend.utils.constants import MAX_PERFORMANCE_SCORE, MIN_PERFORMANCE_SCORE
from club_backend.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

# scheduled -> completed | cancelled; both targets are terminal
ALLOWED_TRANSITIONS = {
    TrainingStatus.SCHEDULED: {TrainingStatus.COMPLETED, TrainingStatus.CANCELLED},
    TrainingStatus.COMPLETED: set(),
    TrainingStatus.CANCELLED: set(),
}

EDITABLE_FIELDS = ("title", "description", "date", "start_time", "end_time", "location")


def check_transition(current: TrainingStatus, target: TrainingStatus) -> None:
    """
    Raise ValidationError unless current -> target is a legal lifecycle step.

    Re-submitting the current status is a no-op and always allowed.
    """
    if current == target:
        return
    if target not in ALLOWED_TRANSITIONS[current]:
        raise ValidationError(
            f"Cannot change training status from {current.value} to {target.value}",
            field="status",
        )


def _check_times(start_time: Optional[time], end_time: Optional[time]) -> None:
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise ValidationError("End time must be after start time", field="end_time")


def _attendance_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown attendance status '{value}'", field="status")


def _check_score(score: Optional[int]) -> None:
    if score is None:
        return
    if not MIN_PERFORMANCE_SCORE <= score <= MAX_PERFORMANCE_SCORE:
        raise ValidationError(
            f"Performance score must be between {MIN_PERFORMANCE_SCORE} and {MAX_PERFORMANCE_SCORE}",
            field="performance_score",
        )


async def _get_attendances(session: AsyncSession, training_id: int) -> List[Attendance]:
    result = await session.execute(
        select(Attendance)
        .where(Attendance.training_session_id == training_id)
        .order_by(Attendance.id)
    )
    return list(result.scalars().all())


async def _player_attends(session: AsyncSession, caller: CallerContext, training_id: int) -> bool:
    if caller.player_id is None:
        return False
    result = await session.execute(
        select(Attendance.id).where(
            Attendance.training_session_id == training_id,
            Attendance.player_id == caller.player_id,
        )
    )
    return result.first() is not None


async def _detail(session: AsyncSession, caller: CallerContext, training: TrainingSession) -> Dict:
    """
    Full payload: coach name, attendance rows with player names, stats.

    Players only get their own attendance row, and the stats cover that row.
    """
    attendances = await _get_attendances(session, training.id)
    if caller.is_player:
        attendances = [a for a in attendances if a.player_id == caller.player_id]
    players = await get_players_by_ids(session, [a.player_id for a in attendances])
    coach = await session.get(User, training.coach_id)
    return training_to_dict(
        training,
        coach=coach,
        attendances=attendances,
        stats=attendance_summary(attendances),
        players_by_id=players,
    )


async def list_trainings(
    session: AsyncSession,
    caller: CallerContext,
    status: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[Dict]:
    """
    Training sessions visible to the caller, most recent first.

    Each item carries attendance_rate and average_performance over its rows
    (for players, over their own row only).
    """
    query = scope_trainings(select(TrainingSession), caller)
    if status:
        query = query.where(TrainingSession.status == TrainingStatus(status))
    if from_date:
        query = query.where(TrainingSession.date >= from_date)
    if to_date:
        query = query.where(TrainingSession.date <= to_date)

    result = await session.execute(
        query.order_by(TrainingSession.date.desc(), TrainingSession.start_time.desc())
    )
    trainings = result.scalars().all()
    if not trainings:
        return []

    training_ids = [t.id for t in trainings]
    attendance_query = select(Attendance).where(Attendance.training_session_id.in_(training_ids))
    if caller.is_player:
        attendance_query = attendance_query.where(Attendance.player_id == caller.player_id)
    attendance_result = await session.execute(attendance_query)
    by_training: Dict[int, List[Attendance]] = defaultdict(list)
    for attendance in attendance_result.scalars().all():
        by_training[attendance.training_session_id].append(attendance)

    coach_ids = {t.coach_id for t in trainings}
    coach_result = await session.execute(select(User).where(User.id.in_(coach_ids)))
    coaches = {u.id: u for u in coach_result.scalars().all()}

    return [
        training_to_dict(
            t,
            coach=coaches.get(t.coach_id),
            stats={
                **attendance_summary(by_training[t.id]),
                "attendance_count": len(by_training[t.id]),
            },
        )
        for t in trainings
    ]


async def get_training(session: AsyncSession, caller: CallerContext, training_id: int) -> Dict:
    training = await get_or_404(session, TrainingSession, training_id, "Training session")
    attends = caller.is_player and await _player_attends(session, caller, training_id)
    check_training_access(caller, training, player_attends=attends)
    return await _detail(session, caller, training)


async def create_training(
    session: AsyncSession,
    caller: CallerContext,
    title: str,
    date: date,
    start_time: time,
    end_time: time,
    description: Optional[str] = None,
    location: Optional[str] = None,
    team: Optional[str] = None,
) -> Dict:
    """
    Create a scheduled session and seed one absent Attendance row per active player.

    Both writes happen in the caller's transaction, so a failure while seeding
    leaves no session behind.

    Raises:
        Forbidden: Caller is a player, or a coach naming another team
        ValidationError: end_time not after start_time, unknown team
    """
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    _check_times(start_time, end_time)

    if caller.is_coach:
        team = team or caller.team
        check_team_assignment(caller, team)
    else:
        team = user_service.validate_team(team, required=False)

    training = TrainingSession(
        coach_id=caller.user_id,
        team=team,
        title=title,
        description=description,
        date=date,
        start_time=start_time,
        end_time=end_time,
        location=location,
        status=TrainingStatus.SCHEDULED,
    )
    session.add(training)
    await session.flush()
    await session.refresh(training)

    result = await session.execute(
        select(Player.id).where(Player.status == PlayerStatus.ACTIVE).order_by(Player.id)
    )
    player_ids = result.scalars().all()
    session.add_all(
        Attendance(
            training_session_id=training.id,
            player_id=player_id,
            status=AttendanceStatus.ABSENT,
        )
        for player_id in player_ids
    )
    await session.flush()

    logger.info(
        f"Created training session {training.id} ({team}) with {len(player_ids)} attendance rows"
    )
    return await _detail(session, caller, training)


async def update_training(
    session: AsyncSession, caller: CallerContext, training_id: int, changes: Dict
) -> Dict:
    """
    Partial update. Status changes must follow the lifecycle.

    Raises:
        NotFound / Forbidden: Unknown or out-of-scope session
        ValidationError: Illegal status transition or time range
    """
    training = await get_or_404(session, TrainingSession, training_id, "Training session")
    check_training_access(caller, training, write=True)

    if changes.get("status") is not None:
        target = TrainingStatus(changes["status"])
        check_transition(training.status, target)
        training.status = target

    if "team" in changes and changes["team"] != training.team:
        check_team_assignment(caller, changes["team"])
        training.team = user_service.validate_team(changes["team"], required=False)

    _check_times(
        changes.get("start_time", training.start_time),
        changes.get("end_time", training.end_time),
    )
    for field in EDITABLE_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(training, field, changes[field])
    if "description" in changes and changes["description"] is None:
        training.description = None

    await session.flush()
    logger.info(f"Updated training session {training_id} by user {caller.user_id}")
    return await _detail(session, caller, training)


async def delete_training(session: AsyncSession, caller: CallerContext, training_id: int) -> None:
    """Delete a session after explicitly removing its attendance rows."""
    training = await get_or_404(session, TrainingSession, training_id, "Training session")
    check_training_access(caller, training, write=True)

    await session.execute(delete(Attendance).where(Attendance.training_session_id == training_id))
    await session.execute(delete(TrainingSession).where(TrainingSession.id == training_id))
    logger.info(f"Deleted training session {training_id}")


async def mark_attendance(
    session: AsyncSession, caller: CallerContext, training_id: int, records: List[Dict]
) -> Dict:
    """
    Upsert attendance for a session.

    Each record has player_id, status and optional performance_score/remarks.
    An existing (session, player) row is updated in place; otherwise a row is
    inserted. A player listed twice keeps the last entry.

    Raises:
        ValidationError: Unknown player id, unknown status, score outside 1-10
        Forbidden: A coach marking a player of another team
    """
    training = await get_or_404(session, TrainingSession, training_id, "Training session")
    check_training_access(caller, training, write=True)

    latest: Dict[int, Dict] = {}
    for record in records:
        _attendance_status(record.get("status"))
        _check_score(record.get("performance_score"))
        latest[record["player_id"]] = record

    players = await get_players_by_ids(session, latest.keys())
    missing = sorted(set(latest) - set(players))
    if missing:
        raise ValidationError(
            f"Unknown player ids: {', '.join(str(i) for i in missing)}", field="player_id"
        )
    for player in players.values():
        check_player_access(caller, player, write=True)

    existing = {a.player_id: a for a in await _get_attendances(session, training_id)}
    for player_id, record in latest.items():
        status = _attendance_status(record["status"])
        attendance = existing.get(player_id)
        if attendance is None:
            attendance = Attendance(training_session_id=training_id, player_id=player_id)
            session.add(attendance)
        attendance.status = status
        attendance.performance_score = record.get("performance_score")
        attendance.remarks = record.get("remarks")

    await session.flush()
    logger.info(f"Marked attendance for {len(latest)} players in session {training_id}")
    return await _detail(session, caller, training)
