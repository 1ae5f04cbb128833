"""
Notification service layer for role-targeted notifications and per-user read tracking.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import (
    Notification,
    NotificationRead,
    NotificationType,
    TargetRole,
    User,
    UserRole,
)
from club_backend.services.access_service import (
    CallerContext,
    can_manage_notifications,
    notification_audience,
    require_role,
)
from club_backend.services.data_service import get_or_404
from club_backend.services.presenters import notification_to_dict
from club_backend.utils.datetime_utils import utcnow
from club_backend.utils.exceptions import Forbidden

logger = logging.getLogger(__name__)


def _addressed_to(caller: CallerContext):
    """Predicate: active notifications whose target_role reaches the caller."""
    return and_(
        Notification.is_active == True,  # noqa: E712
        Notification.target_role.in_(notification_audience(caller)),
    )


def _unread_by(caller: CallerContext):
    """Predicate: no read receipt exists for the caller."""
    return ~(
        select(NotificationRead.id)
        .where(
            NotificationRead.notification_id == Notification.id,
            NotificationRead.user_id == caller.user_id,
        )
        .exists()
    )


def is_visible(caller: CallerContext, notification: Notification) -> bool:
    if can_manage_notifications(caller):
        return True
    return notification.is_active and notification.target_role in notification_audience(caller)


async def _get_visible(
    session: AsyncSession, caller: CallerContext, notification_id: int
) -> Notification:
    notification = await get_or_404(session, Notification, notification_id, "Notification")
    if not is_visible(caller, notification):
        raise Forbidden("Notification is not addressed to you")
    return notification


async def _get_read(
    session: AsyncSession, notification_id: int, user_id: int
) -> Optional[NotificationRead]:
    result = await session.execute(
        select(NotificationRead).where(
            NotificationRead.notification_id == notification_id,
            NotificationRead.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def _present(
    session: AsyncSession, caller: CallerContext, notification: Notification
) -> Dict:
    creator = await session.get(User, notification.created_by)
    read = await _get_read(session, notification.id, caller.user_id)
    return notification_to_dict(notification, creator=creator, read=read)


async def list_notifications(session: AsyncSession, caller: CallerContext) -> List[Dict]:
    """
    Notifications for the caller, newest first, with is_read/read_at derived
    from the caller's read receipts.

    Admins and coaches see every notification; players see the active ones
    targeted at everyone or at players.
    """
    query = (
        select(Notification, NotificationRead, User)
        .outerjoin(
            NotificationRead,
            and_(
                NotificationRead.notification_id == Notification.id,
                NotificationRead.user_id == caller.user_id,
            ),
        )
        .outerjoin(User, User.id == Notification.created_by)
    )
    if not can_manage_notifications(caller):
        query = query.where(_addressed_to(caller))

    result = await session.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return [
        notification_to_dict(notification, creator=creator, read=read)
        for notification, read, creator in result.all()
    ]


async def get_notification(
    session: AsyncSession, caller: CallerContext, notification_id: int
) -> Dict:
    notification = await _get_visible(session, caller, notification_id)
    return await _present(session, caller, notification)


async def create_notification(
    session: AsyncSession,
    caller: CallerContext,
    title: str,
    message: str,
    type: Optional[str] = None,
    target_role: Optional[str] = None,
    is_active: bool = True,
) -> Dict:
    """Create a notification authored by the caller (admin or coach)."""
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    notification = Notification(
        created_by=caller.user_id,
        title=title,
        message=message,
        type=NotificationType(type or NotificationType.INFO),
        target_role=TargetRole(target_role or TargetRole.ALL),
        is_active=is_active,
    )
    session.add(notification)
    await session.flush()
    await session.refresh(notification)
    logger.info(
        f"Created notification {notification.id} for {notification.target_role.value} "
        f"by user {caller.user_id}"
    )
    return await _present(session, caller, notification)


async def update_notification(
    session: AsyncSession, caller: CallerContext, notification_id: int, changes: Dict
) -> Dict:
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    notification = await get_or_404(session, Notification, notification_id, "Notification")

    if changes.get("title") is not None:
        notification.title = changes["title"]
    if changes.get("message") is not None:
        notification.message = changes["message"]
    if changes.get("type") is not None:
        notification.type = NotificationType(changes["type"])
    if changes.get("target_role") is not None:
        notification.target_role = TargetRole(changes["target_role"])
    if changes.get("is_active") is not None:
        notification.is_active = changes["is_active"]

    await session.flush()
    logger.info(f"Updated notification {notification_id}")
    return await _present(session, caller, notification)


async def delete_notification(
    session: AsyncSession, caller: CallerContext, notification_id: int
) -> None:
    """Delete a notification and its read receipts."""
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    await get_or_404(session, Notification, notification_id, "Notification")
    await session.execute(
        delete(NotificationRead).where(NotificationRead.notification_id == notification_id)
    )
    await session.execute(delete(Notification).where(Notification.id == notification_id))
    logger.info(f"Deleted notification {notification_id}")


async def mark_as_read(
    session: AsyncSession, caller: CallerContext, notification_id: int
) -> Dict:
    """
    Record a read receipt for the caller. Marking an already-read notification
    keeps the original read_at.
    """
    notification = await _get_visible(session, caller, notification_id)
    if await _get_read(session, notification_id, caller.user_id) is None:
        session.add(
            NotificationRead(
                notification_id=notification_id,
                user_id=caller.user_id,
                read_at=utcnow(),
            )
        )
        await session.flush()
    return await _present(session, caller, notification)


async def mark_all_as_read(session: AsyncSession, caller: CallerContext) -> int:
    """
    Upsert a read receipt for every notification addressed to the caller.

    Only notifications without a receipt get one, so repeated calls never
    create duplicate rows.

    Returns:
        Number of receipts created by this call
    """
    result = await session.execute(
        select(Notification.id).where(_addressed_to(caller), _unread_by(caller))
    )
    unread_ids = result.scalars().all()

    now = utcnow()
    session.add_all(
        NotificationRead(notification_id=notification_id, user_id=caller.user_id, read_at=now)
        for notification_id in unread_ids
    )
    await session.flush()
    logger.info(f"Marked {len(unread_ids)} notifications as read for user {caller.user_id}")
    return len(unread_ids)


async def get_unread_count(session: AsyncSession, caller: CallerContext) -> int:
    """Number of active notifications addressed to the caller without a read receipt."""
    result = await session.execute(
        select(func.count(Notification.id)).where(_addressed_to(caller), _unread_by(caller))
    )
    return result.scalar_one()
