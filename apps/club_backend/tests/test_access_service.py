"""
Tests for role and team scoping.
"""
import pytest
from sqlalchemy import select

from club_backend.database.models import Player, TargetRole, TrainingSession, UserRole
from club_backend.services.access_service import (
    CallerContext,
    can_manage_notifications,
    check_player_access,
    check_team_assignment,
    check_training_access,
    notification_audience,
    require_role,
    scope_players,
    scope_trainings,
)
from club_backend.utils.exceptions import Forbidden, Unauthorized

from conftest import caller_for, make_player, make_training

ADMIN = CallerContext(user_id=1, role=UserRole.ADMIN)
COACH_U15 = CallerContext(user_id=2, role=UserRole.COACH, team="U15 Masculin")
PLAYER = CallerContext(user_id=3, role=UserRole.PLAYER, team="U15 Masculin", player_id=7)


class TestCallerContext:
    def test_from_user_reads_team_from_player_profile(self):
        caller = CallerContext.from_user(
            {"id": 3, "role": "player", "team": None, "player": {"id": 7, "team": "U18 Féminin"}}
        )
        assert caller.role == UserRole.PLAYER
        assert caller.team == "U18 Féminin"
        assert caller.player_id == 7

    def test_from_user_without_user_is_unauthorized(self):
        with pytest.raises(Unauthorized):
            CallerContext.from_user(None)

    def test_role_properties(self):
        assert ADMIN.is_admin and not ADMIN.is_coach
        assert COACH_U15.is_coach
        assert PLAYER.is_player


def test_require_role():
    assert require_role(ADMIN, UserRole.ADMIN) is ADMIN
    with pytest.raises(Forbidden):
        require_role(PLAYER, UserRole.ADMIN, UserRole.COACH)
    with pytest.raises(Unauthorized):
        require_role(None, UserRole.ADMIN)


@pytest.mark.asyncio
async def test_coach_sees_only_own_team(db_session, coach):
    await make_player(db_session, "Amine", team="U15 Masculin")
    await make_player(db_session, "Yassine", team="U15 Masculin")
    await make_player(db_session, "Sara", team="U18 Féminin")

    result = await db_session.execute(scope_players(select(Player), caller_for(coach)))
    players = result.scalars().all()

    assert len(players) == 2
    assert {p.team for p in players} == {"U15 Masculin"}


@pytest.mark.asyncio
async def test_coach_without_team_sees_no_players(db_session):
    await make_player(db_session, "Amine")
    caller = CallerContext(user_id=99, role=UserRole.COACH, team=None)

    result = await db_session.execute(scope_players(select(Player), caller))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_player_sees_only_self(db_session):
    me = await make_player(db_session, "Amine")
    await make_player(db_session, "Yassine")
    user_caller = CallerContext(user_id=me.user_id, role=UserRole.PLAYER, player_id=me.id)

    result = await db_session.execute(scope_players(select(Player), user_caller))
    assert [p.id for p in result.scalars().all()] == [me.id]


@pytest.mark.asyncio
async def test_check_player_access(db_session):
    own = await make_player(db_session, "Amine", team="U15 Masculin")
    other = await make_player(db_session, "Sara", team="U18 Féminin")

    check_player_access(ADMIN, other, write=True)
    check_player_access(COACH_U15, own, write=True)
    with pytest.raises(Forbidden):
        check_player_access(COACH_U15, other)

    me = CallerContext(user_id=own.user_id, role=UserRole.PLAYER, player_id=own.id)
    check_player_access(me, own)
    with pytest.raises(Forbidden):
        check_player_access(me, own, write=True)
    with pytest.raises(Forbidden):
        check_player_access(me, other)


def test_check_team_assignment():
    check_team_assignment(ADMIN, "Seniors Masculin")
    check_team_assignment(COACH_U15, "U15 Masculin")
    with pytest.raises(Forbidden):
        check_team_assignment(COACH_U15, "Seniors Masculin")
    with pytest.raises(Forbidden):
        check_team_assignment(PLAYER, "U15 Masculin")


@pytest.mark.asyncio
async def test_check_training_access(db_session, coach, other_coach):
    training = await make_training(db_session, other_coach)

    check_training_access(ADMIN, training, write=True)
    check_training_access(caller_for(other_coach), training, write=True)
    with pytest.raises(Forbidden):
        check_training_access(caller_for(coach), training)

    check_training_access(PLAYER, training, player_attends=True)
    with pytest.raises(Forbidden):
        check_training_access(PLAYER, training, player_attends=False)
    with pytest.raises(Forbidden):
        check_training_access(PLAYER, training, write=True, player_attends=True)


@pytest.mark.asyncio
async def test_coach_training_access_follows_current_team(db_session, coach):
    training = await make_training(db_session, coach)
    moved = CallerContext(user_id=coach.id, role=UserRole.COACH, team="U18 Féminin")
    teamless = CallerContext(user_id=coach.id, role=UserRole.COACH)

    with pytest.raises(Forbidden):
        check_training_access(moved, training, write=True)
    check_training_access(teamless, training, write=True)

    listed = await db_session.execute(
        scope_trainings(select(TrainingSession), moved).where(TrainingSession.id == training.id)
    )
    assert listed.scalar_one_or_none() is None


def test_notification_audience():
    assert notification_audience(PLAYER) == [TargetRole.ALL, TargetRole.PLAYER]
    assert notification_audience(COACH_U15) == [TargetRole.ALL, TargetRole.COACH]
    assert can_manage_notifications(ADMIN)
    assert can_manage_notifications(COACH_U15)
    assert not can_manage_notifications(PLAYER)
