"""
Tests for training sessions: attendance seeding, lifecycle and attendance upsert.
"""
from datetime import date, time

import pytest
from sqlalchemy import func, select

from club_backend.database.models import (
    Attendance,
    AttendanceStatus,
    PlayerStatus,
    TrainingSession,
    TrainingStatus,
    User,
)
from club_backend.services import training_service
from club_backend.utils.exceptions import Forbidden, ValidationError

from conftest import caller_for, make_player, make_training


async def _attendance_rows(session, training_id):
    result = await session.execute(
        select(Attendance).where(Attendance.training_session_id == training_id)
    )
    return result.scalars().all()


async def _create(session, caller, **overrides):
    fields = dict(
        title="Passing drills",
        date=date(2025, 4, 10),
        start_time=time(18, 0),
        end_time=time(19, 30),
        location="Main pitch",
    )
    fields.update(overrides)
    return await training_service.create_training(session, caller, **fields)


@pytest.mark.asyncio
async def test_create_seeds_one_absent_row_per_active_player(db_session, coach):
    for name in ("Amine", "Yassine", "Omar", "Karim"):
        await make_player(db_session, name)
    await make_player(db_session, "Injured", status=PlayerStatus.INJURED)

    training = await _create(db_session, caller_for(coach))

    rows = await _attendance_rows(db_session, training["id"])
    assert len(rows) == 4
    assert all(row.status == AttendanceStatus.ABSENT for row in rows)
    assert training["status"] == "scheduled"
    assert training["team"] == "U15 Masculin"
    assert len(training["attendances"]) == 4
    assert training["attendance_rate"] == 0.0
    assert training["average_performance"] is None


@pytest.mark.asyncio
async def test_create_rejects_end_before_start(db_session, coach):
    with pytest.raises(ValidationError) as exc_info:
        await _create(db_session, caller_for(coach), start_time=time(19, 0), end_time=time(18, 0))
    assert exc_info.value.field == "end_time"


@pytest.mark.asyncio
async def test_coach_cannot_create_for_other_team(db_session, coach):
    with pytest.raises(Forbidden):
        await _create(db_session, caller_for(coach), team="Seniors Masculin")


@pytest.mark.asyncio
async def test_admin_may_name_team(db_session, admin):
    training = await _create(db_session, caller_for(admin), team="U18 Féminin")
    assert training["team"] == "U18 Féminin"


@pytest.mark.asyncio
async def test_status_transitions(db_session, coach):
    caller = caller_for(coach)
    training = await _create(db_session, caller)

    updated = await training_service.update_training(
        db_session, caller, training["id"], {"status": "completed"}
    )
    assert updated["status"] == "completed"

    with pytest.raises(ValidationError):
        await training_service.update_training(
            db_session, caller, training["id"], {"status": "scheduled"}
        )
    with pytest.raises(ValidationError):
        await training_service.update_training(
            db_session, caller, training["id"], {"status": "cancelled"}
        )


def test_check_transition_table():
    training_service.check_transition(TrainingStatus.SCHEDULED, TrainingStatus.CANCELLED)
    training_service.check_transition(TrainingStatus.CANCELLED, TrainingStatus.CANCELLED)
    with pytest.raises(ValidationError):
        training_service.check_transition(TrainingStatus.CANCELLED, TrainingStatus.SCHEDULED)


@pytest.mark.asyncio
async def test_mark_attendance_updates_in_place(db_session, coach):
    caller = caller_for(coach)
    amine = await make_player(db_session, "Amine")
    yassine = await make_player(db_session, "Yassine")
    training = await _create(db_session, caller)

    records = [
        {"player_id": amine.id, "status": "present", "performance_score": 8},
        {"player_id": yassine.id, "status": "late", "performance_score": 6, "remarks": "10 min"},
    ]
    await training_service.mark_attendance(db_session, caller, training["id"], records)
    result = await training_service.mark_attendance(db_session, caller, training["id"], records)

    rows = await _attendance_rows(db_session, training["id"])
    assert len(rows) == 2
    by_player = {row.player_id: row for row in rows}
    assert by_player[amine.id].status == AttendanceStatus.PRESENT
    assert by_player[amine.id].performance_score == 8
    assert by_player[yassine.id].remarks == "10 min"
    assert result["attendance_rate"] == 100.0
    assert result["average_performance"] == 7.0


@pytest.mark.asyncio
async def test_mark_attendance_inserts_missing_row(db_session, coach):
    caller = caller_for(coach)
    training = await make_training(db_session, coach)
    amine = await make_player(db_session, "Amine")

    await training_service.mark_attendance(
        db_session, caller, training.id, [{"player_id": amine.id, "status": "excused"}]
    )

    rows = await _attendance_rows(db_session, training.id)
    assert [(r.player_id, r.status) for r in rows] == [(amine.id, AttendanceStatus.EXCUSED)]


@pytest.mark.asyncio
async def test_mark_attendance_validation(db_session, coach):
    caller = caller_for(coach)
    amine = await make_player(db_session, "Amine")
    training = await _create(db_session, caller)

    with pytest.raises(ValidationError) as exc_info:
        await training_service.mark_attendance(
            db_session, caller, training["id"], [{"player_id": 9999, "status": "present"}]
        )
    assert exc_info.value.field == "player_id"

    with pytest.raises(ValidationError) as exc_info:
        await training_service.mark_attendance(
            db_session,
            caller,
            training["id"],
            [{"player_id": amine.id, "status": "present", "performance_score": 11}],
        )
    assert exc_info.value.field == "performance_score"

    with pytest.raises(ValidationError):
        await training_service.mark_attendance(
            db_session, caller, training["id"], [{"player_id": amine.id, "status": "asleep"}]
        )


@pytest.mark.asyncio
async def test_list_is_scoped_and_ordered(db_session, coach, other_coach):
    await make_training(db_session, coach, day=date(2025, 1, 1), title="Old")
    await make_training(db_session, coach, day=date(2025, 2, 1), title="New")
    await make_training(db_session, other_coach, day=date(2025, 3, 1), title="Seniors")

    trainings = await training_service.list_trainings(db_session, caller_for(coach))
    assert [t["title"] for t in trainings] == ["New", "Old"]

    filtered = await training_service.list_trainings(
        db_session, caller_for(coach), from_date=date(2025, 1, 15)
    )
    assert [t["title"] for t in filtered] == ["New"]


@pytest.mark.asyncio
async def test_player_sees_only_sessions_with_own_attendance(db_session, coach, admin):
    amine = await make_player(db_session, "Amine")
    await _create(db_session, caller_for(admin), title="Seeded")
    hidden = await make_training(db_session, coach, title="Before joining")

    player_caller = caller_for(await db_session.get(User, amine.user_id), amine)
    trainings = await training_service.list_trainings(db_session, player_caller)
    assert [t["title"] for t in trainings] == ["Seeded"]

    with pytest.raises(Forbidden):
        await training_service.get_training(db_session, player_caller, hidden.id)


@pytest.mark.asyncio
async def test_delete_removes_attendance_rows(db_session, coach):
    caller = caller_for(coach)
    await make_player(db_session, "Amine")
    training = await _create(db_session, caller)

    await training_service.delete_training(db_session, caller, training["id"])

    assert await _attendance_rows(db_session, training["id"]) == []
    count = await db_session.execute(select(func.count(TrainingSession.id)))
    assert count.scalar_one() == 0


@pytest.mark.asyncio
async def test_player_sees_only_own_attendance_row(db_session, coach, admin):
    amine = await make_player(db_session, "Amine")
    sara = await make_player(db_session, "Sara", team="U18 Féminin")
    training = await _create(db_session, caller_for(admin))
    await training_service.mark_attendance(
        db_session,
        caller_for(admin),
        training["id"],
        [
            {"player_id": amine.id, "status": "present", "performance_score": 8},
            {"player_id": sara.id, "status": "late", "performance_score": 2, "remarks": "private"},
        ],
    )
    player_caller = caller_for(await db_session.get(User, amine.user_id), amine)

    detail = await training_service.get_training(db_session, player_caller, training["id"])
    assert [a["player_id"] for a in detail["attendances"]] == [amine.id]
    assert detail["average_performance"] == 8.0

    [listed] = await training_service.list_trainings(db_session, player_caller)
    assert listed["average_performance"] == 8.0
    assert listed["attendance_count"] == 1


@pytest.mark.asyncio
async def test_coach_cannot_mark_attendance_for_other_team(db_session, coach):
    caller = caller_for(coach)
    sara = await make_player(db_session, "Sara", team="U18 Féminin")
    training = await _create(db_session, caller)

    with pytest.raises(Forbidden):
        await training_service.mark_attendance(
            db_session,
            caller,
            training["id"],
            [{"player_id": sara.id, "status": "present", "performance_score": 9}],
        )

    [row] = await _attendance_rows(db_session, training["id"])
    assert row.status == AttendanceStatus.ABSENT
    assert row.performance_score is None
