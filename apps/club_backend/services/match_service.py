"""
Match service: CRUD, result derivation, per-player stats and season summary.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from club_backend.database.models import (
    Match,
    MatchPlayer,
    MatchResult,
    MatchStatus,
    MatchType,
    UserRole,
)
from club_backend.services import stats_service
from club_backend.services.access_service import CallerContext, require_role
from club_backend.services.data_service import get_or_404, get_players_by_ids
from club_backend.services.presenters import match_to_dict
from club_backend.utils.constants import MAX_MATCH_RATING, MIN_MATCH_RATING
from club_backend.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "opponent_team",
    "match_date",
    "match_time",
    "location",
    "our_score",
    "opponent_score",
    "notes",
)

STAT_FIELDS = ("is_starter", "minutes_played", "goals", "assists", "yellow_cards", "red_cards")


def _check_rating(rating) -> None:
    if rating is None:
        return
    if not MIN_MATCH_RATING <= float(rating) <= MAX_MATCH_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_MATCH_RATING} and {MAX_MATCH_RATING}", field="rating"
        )


def apply_result(match: Match) -> None:
    """Set match.result from the scores currently on the row."""
    match.result = MatchResult(stats_service.derive_result(match.our_score, match.opponent_score))


async def _get_player_stats(session: AsyncSession, match_id: int) -> List[MatchPlayer]:
    result = await session.execute(
        select(MatchPlayer).where(MatchPlayer.match_id == match_id).order_by(MatchPlayer.id)
    )
    return list(result.scalars().all())


async def _detail(session: AsyncSession, match: Match) -> Dict:
    rows = await _get_player_stats(session, match.id)
    players = await get_players_by_ids(session, [r.player_id for r in rows])
    return match_to_dict(match, player_stats=rows, players_by_id=players)


async def list_matches(
    session: AsyncSession,
    status: Optional[str] = None,
    result: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[Dict]:
    """Matches, most recent first. Every authenticated role may read the fixture list."""
    query = select(Match)
    if status:
        query = query.where(Match.status == MatchStatus(status))
    if result:
        query = query.where(Match.result == MatchResult(result))
    if from_date:
        query = query.where(Match.match_date >= from_date)
    if to_date:
        query = query.where(Match.match_date <= to_date)

    rows = await session.execute(query.order_by(Match.match_date.desc(), Match.match_time.desc()))
    return [match_to_dict(m) for m in rows.scalars().all()]


async def get_match(session: AsyncSession, match_id: int) -> Dict:
    match = await get_or_404(session, Match, match_id, "Match")
    return await _detail(session, match)


async def create_match(
    session: AsyncSession,
    caller: CallerContext,
    opponent_team: str,
    match_date: date,
    match_time,
    location: str,
    match_type: Optional[str] = None,
    our_score: Optional[int] = None,
    opponent_score: Optional[int] = None,
    status: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict:
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    match = Match(
        opponent_team=opponent_team,
        match_date=match_date,
        match_time=match_time,
        location=location,
        match_type=MatchType(match_type or MatchType.FRIENDLY),
        our_score=our_score,
        opponent_score=opponent_score,
        status=MatchStatus(status or MatchStatus.SCHEDULED),
        notes=notes,
    )
    apply_result(match)
    session.add(match)
    await session.flush()
    await session.refresh(match)
    logger.info(f"Created match {match.id} vs {opponent_team}")
    return await _detail(session, match)


async def update_match(
    session: AsyncSession, caller: CallerContext, match_id: int, changes: Dict
) -> Dict:
    """
    Partial update.

    The new scores are flushed first; result is then recomputed from the
    persisted row, so it never lags behind the scores.
    """
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    match = await get_or_404(session, Match, match_id, "Match")

    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(match, field, changes[field])
    if changes.get("match_type") is not None:
        match.match_type = MatchType(changes["match_type"])
    if changes.get("status") is not None:
        match.status = MatchStatus(changes["status"])
    await session.flush()

    if "our_score" in changes or "opponent_score" in changes:
        await session.refresh(match)
        apply_result(match)
        await session.flush()

    logger.info(f"Updated match {match_id}: result={match.result.value}")
    return await _detail(session, match)


async def delete_match(session: AsyncSession, caller: CallerContext, match_id: int) -> None:
    """Delete a match after explicitly removing its per-player stats."""
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    await get_or_404(session, Match, match_id, "Match")
    await session.execute(delete(MatchPlayer).where(MatchPlayer.match_id == match_id))
    await session.execute(delete(Match).where(Match.id == match_id))
    logger.info(f"Deleted match {match_id}")


async def add_players(
    session: AsyncSession, caller: CallerContext, match_id: int, entries: List[Dict]
) -> Dict:
    """
    Upsert per-player stats for a match, one row per (player, match).

    Raises:
        ValidationError: Unknown player id or rating outside 0-10
    """
    require_role(caller, UserRole.ADMIN, UserRole.COACH)
    match = await get_or_404(session, Match, match_id, "Match")

    latest: Dict[int, Dict] = {}
    for entry in entries:
        _check_rating(entry.get("rating"))
        latest[entry["player_id"]] = entry

    players = await get_players_by_ids(session, latest.keys())
    missing = sorted(set(latest) - set(players))
    if missing:
        raise ValidationError(
            f"Unknown player ids: {', '.join(str(i) for i in missing)}", field="player_id"
        )

    existing = {row.player_id: row for row in await _get_player_stats(session, match_id)}
    for player_id, entry in latest.items():
        row = existing.get(player_id)
        if row is None:
            row = MatchPlayer(match_id=match_id, player_id=player_id)
            session.add(row)
        for field in STAT_FIELDS:
            if entry.get(field) is not None:
                setattr(row, field, entry[field])
        if "rating" in entry:
            rating = entry["rating"]
            row.rating = Decimal(str(rating)) if rating is not None else None

    await session.flush()
    logger.info(f"Recorded stats for {len(latest)} players in match {match_id}")
    return await _detail(session, match)


async def get_summary(session: AsyncSession) -> Dict:
    """
    Totals over all matches.

    Returns:
        Dict with total/completed/scheduled counts, wins/losses/draws,
        goals scored and conceded, and win_rate (percentage of completed)
    """
    result = await session.execute(select(Match))
    matches = result.scalars().all()

    results = stats_service.group_counts(matches, "result")
    statuses = stats_service.group_counts(matches, "status")
    return {
        "total_matches": len(matches),
        "completed": statuses.get(MatchStatus.COMPLETED.value, 0),
        "scheduled": statuses.get(MatchStatus.SCHEDULED.value, 0),
        "cancelled": statuses.get(MatchStatus.CANCELLED.value, 0),
        "wins": results.get(MatchResult.WIN.value, 0),
        "losses": results.get(MatchResult.LOSS.value, 0),
        "draws": results.get(MatchResult.DRAW.value, 0),
        "goals_scored": sum(m.our_score or 0 for m in matches),
        "goals_conceded": sum(m.opponent_score or 0 for m in matches),
        "win_rate": stats_service.win_rate(matches),
    }
