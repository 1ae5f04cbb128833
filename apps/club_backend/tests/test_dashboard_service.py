"""
Tests for the role dashboards.
"""
from datetime import date

import pytest

from club_backend.database.models import Attendance, AttendanceStatus, PlayerStatus, User, UserRole
from club_backend.services import dashboard_service
from club_backend.services.access_service import CallerContext
from club_backend.utils.exceptions import Forbidden, NotFound

from conftest import caller_for, make_player, make_training


def _attendance(training, player, status=AttendanceStatus.PRESENT, score=None):
    return Attendance(
        training_session_id=training.id,
        player_id=player.id,
        status=status,
        performance_score=score,
    )


@pytest.mark.asyncio
async def test_admin_stats(db_session, admin, coach, other_coach):
    await make_player(db_session, "Amine")
    await make_player(db_session, "Yassine", status=PlayerStatus.INJURED)

    stats = await dashboard_service.get_admin_stats(db_session, caller_for(admin))

    assert stats["players"] == {"total": 2, "active": 1, "injured": 1, "suspended": 0}
    assert stats["users_by_role"] == {"total": 5, "admin": 1, "coach": 2, "player": 2}
    assert stats["attendance_rate"] == 0.0
    assert stats["average_performance"] is None
    assert stats["matches"]["win_rate"] == 0.0

    teams = {t["team"]: t for t in stats["teams"]}
    assert teams["U15 Masculin"] == {
        "team": "U15 Masculin",
        "player_count": 2,
        "coach_name": "Coach U15",
    }
    assert teams["Seniors Masculin"]["coach_name"] == "Coach Seniors"
    assert teams["U18 Féminin"]["coach_name"] == "Unassigned"


@pytest.mark.asyncio
async def test_admin_stats_requires_admin(db_session, coach):
    with pytest.raises(Forbidden):
        await dashboard_service.get_admin_stats(db_session, caller_for(coach))


@pytest.mark.asyncio
async def test_coach_stats_cover_own_team_and_sessions(db_session, coach):
    amine = await make_player(db_session, "Amine")
    yassine = await make_player(db_session, "Yassine")
    sara = await make_player(db_session, "Sara", team="U18 Féminin")
    first = await make_training(db_session, coach, day=date(2025, 3, 1))
    second = await make_training(db_session, coach, day=date(2025, 3, 8))
    db_session.add_all(
        [
            _attendance(first, amine, score=9),
            _attendance(second, amine, score=7),
            _attendance(first, yassine, score=5),
            _attendance(second, yassine, status=AttendanceStatus.ABSENT),
            _attendance(first, sara, score=1),
        ]
    )
    await db_session.flush()

    stats = await dashboard_service.get_coach_stats(db_session, caller_for(coach))

    assert stats["team"] == "U15 Masculin"
    assert stats["players"]["total"] == 2
    assert stats["trainings"]["total"] == 2
    assert stats["trainings"]["upcoming"] == 0
    assert stats["attendance_rate"] == 75.0
    assert stats["average_performance"] == 7.0
    assert [p["first_name"] for p in stats["top_players"]] == ["Amine", "Yassine"]
    assert stats["top_players"][0]["average_performance"] == 8.0


@pytest.mark.asyncio
async def test_player_stats(db_session, coach):
    amine = await make_player(db_session, "Amine")
    for day, score in (
        (date(2025, 1, 4), 4),
        (date(2025, 1, 11), 5),
        (date(2025, 1, 18), 8),
        (date(2025, 1, 25), 9),
    ):
        training = await make_training(db_session, coach, day=day)
        db_session.add(_attendance(training, amine, score=score))
    skipped = await make_training(db_session, coach, day=date(2025, 2, 1))
    db_session.add(_attendance(skipped, amine, status=AttendanceStatus.ABSENT))
    await make_training(db_session, coach, day=date(2099, 1, 1), title="Future")
    await db_session.flush()

    user = await db_session.get(User, amine.user_id)
    stats = await dashboard_service.get_player_stats(db_session, caller_for(user, amine))

    assert stats["player"]["id"] == amine.id
    assert stats["total_trainings"] == 5
    assert stats["trainings_attended"] == 4
    assert stats["attendance_rate"] == 80.0
    assert stats["average_performance"] == 6.5
    assert stats["performance_trend"] == "improving"
    assert [r["performance_score"] for r in stats["recent_performances"]] == [9, 8, 5, 4]
    assert [t["title"] for t in stats["upcoming_trainings"]] == ["Future"]
    assert stats["upcoming_matches"] == []


@pytest.mark.asyncio
async def test_player_stats_without_profile(db_session):
    caller = CallerContext(user_id=1, role=UserRole.PLAYER)
    with pytest.raises(NotFound):
        await dashboard_service.get_player_stats(db_session, caller)
