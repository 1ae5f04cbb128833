"""
Shared data-access helpers used by the domain services.
"""

import logging
from typing import Dict, Iterable, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import Player, User
from club_backend.utils.exceptions import Conflict, NotFound

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


async def get_or_404(
    session: AsyncSession, model: Type[ModelT], entity_id: int, label: Optional[str] = None
) -> ModelT:
    """
    Fetch a row by primary key.

    Raises:
        NotFound: If no row has this id
    """
    entity = await session.get(model, entity_id)
    if entity is None:
        raise NotFound(f"{label or model.__name__} {entity_id} not found")
    return entity


async def flush_or_conflict(session: AsyncSession, field: str, detail: str) -> None:
    """
    Flush pending writes, translating a uniqueness violation into Conflict.

    The session is unusable after a failed flush; the request boundary rolls
    the whole transaction back when the Conflict propagates.
    """
    try:
        await session.flush()
    except IntegrityError as e:
        logger.info(f"Uniqueness violation on {field}: {e.orig}")
        raise Conflict(detail, field=field)


async def email_taken(
    session: AsyncSession, email: str, exclude_user_id: Optional[int] = None
) -> bool:
    query = select(User.id).where(User.email == email.strip().lower())
    if exclude_user_id is not None:
        query = query.where(User.id != exclude_user_id)
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def jersey_taken(
    session: AsyncSession, jersey_number: Optional[int], exclude_player_id: Optional[int] = None
) -> bool:
    if jersey_number is None:
        return False
    query = select(Player.id).where(Player.jersey_number == jersey_number)
    if exclude_player_id is not None:
        query = query.where(Player.id != exclude_player_id)
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def get_players_by_ids(session: AsyncSession, player_ids: Iterable[int]) -> Dict[int, Player]:
    """Map of id -> Player for the given ids (missing ids are simply absent)."""
    ids = set(player_ids)
    if not ids:
        return {}
    result = await session.execute(select(Player).where(Player.id.in_(ids)))
    return {p.id: p for p in result.scalars().all()}


async def get_player_by_user_id(session: AsyncSession, user_id: int) -> Optional[Player]:
    result = await session.execute(select(Player).where(Player.user_id == user_id))
    return result.scalar_one_or_none()
