"""
Tests for notification service: audience filtering and per-user read tracking.
"""
import pytest
from sqlalchemy import func, select

from club_backend.database.models import NotificationRead, UserRole
from club_backend.services import notification_service
from club_backend.services.access_service import CallerContext
from club_backend.utils.exceptions import Forbidden

from conftest import caller_for, make_player


async def _seed(session, author):
    caller = caller_for(author)
    created = {}
    for title, target, active in (
        ("Everyone", "all", True),
        ("Players", "player", True),
        ("Coaches", "coach", True),
        ("Archived", "all", False),
    ):
        notification = await notification_service.create_notification(
            session,
            caller,
            title=title,
            message=f"{title} message",
            target_role=target,
            is_active=active,
        )
        created[title] = notification["id"]
    return created


async def _player_caller(session, first_name="Amine"):
    player = await make_player(session, first_name)
    return CallerContext(user_id=player.user_id, role=UserRole.PLAYER, player_id=player.id)


@pytest.mark.asyncio
async def test_player_sees_active_notifications_for_all_and_players(db_session, admin):
    await _seed(db_session, admin)
    caller = await _player_caller(db_session)

    notifications = await notification_service.list_notifications(db_session, caller)

    assert {n["title"] for n in notifications} == {"Everyone", "Players"}
    assert all(n["is_read"] is False for n in notifications)
    assert all(n["creator_name"] == "Club Admin" for n in notifications)


@pytest.mark.asyncio
async def test_staff_see_every_notification(db_session, admin, coach):
    await _seed(db_session, admin)
    notifications = await notification_service.list_notifications(db_session, caller_for(coach))
    assert len(notifications) == 4


@pytest.mark.asyncio
async def test_player_cannot_open_notification_for_coaches(db_session, admin):
    ids = await _seed(db_session, admin)
    caller = await _player_caller(db_session)

    with pytest.raises(Forbidden):
        await notification_service.get_notification(db_session, caller, ids["Coaches"])
    with pytest.raises(Forbidden):
        await notification_service.mark_as_read(db_session, caller, ids["Archived"])


@pytest.mark.asyncio
async def test_mark_as_read_is_idempotent(db_session, admin):
    ids = await _seed(db_session, admin)
    caller = await _player_caller(db_session)

    first = await notification_service.mark_as_read(db_session, caller, ids["Everyone"])
    second = await notification_service.mark_as_read(db_session, caller, ids["Everyone"])

    assert first["is_read"] is True
    assert second["read_at"] == first["read_at"]
    count = await db_session.execute(select(func.count(NotificationRead.id)))
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_mark_all_as_read_twice_creates_no_duplicates(db_session, admin):
    await _seed(db_session, admin)
    caller = await _player_caller(db_session)

    assert await notification_service.get_unread_count(db_session, caller) == 2
    assert await notification_service.mark_all_as_read(db_session, caller) == 2
    assert await notification_service.mark_all_as_read(db_session, caller) == 0

    count = await db_session.execute(
        select(func.count(NotificationRead.id)).where(NotificationRead.user_id == caller.user_id)
    )
    assert count.scalar_one() == 2
    assert await notification_service.get_unread_count(db_session, caller) == 0

    notifications = await notification_service.list_notifications(db_session, caller)
    assert all(n["is_read"] for n in notifications)


@pytest.mark.asyncio
async def test_read_state_is_per_user(db_session, admin):
    ids = await _seed(db_session, admin)
    amine = await _player_caller(db_session, "Amine")
    sara = await _player_caller(db_session, "Sara")

    await notification_service.mark_as_read(db_session, amine, ids["Players"])

    assert await notification_service.get_unread_count(db_session, amine) == 1
    assert await notification_service.get_unread_count(db_session, sara) == 2


@pytest.mark.asyncio
async def test_update_and_delete(db_session, admin, coach):
    ids = await _seed(db_session, admin)
    staff = caller_for(coach)
    player = await _player_caller(db_session)
    await notification_service.mark_as_read(db_session, player, ids["Everyone"])

    updated = await notification_service.update_notification(
        db_session, staff, ids["Everyone"], {"type": "urgent", "is_active": False}
    )
    assert updated["type"] == "urgent"
    assert updated["is_active"] is False

    with pytest.raises(Forbidden):
        await notification_service.delete_notification(db_session, player, ids["Players"])

    await notification_service.delete_notification(db_session, staff, ids["Everyone"])
    count = await db_session.execute(select(func.count(NotificationRead.id)))
    assert count.scalar_one() == 0
