"""
Presentation helpers: ORM rows -> response dicts.

Relationships are never lazy-loaded here (async sessions cannot); callers load
related rows themselves and pass them in (coach, players_by_id, creator, read).
"""

import os
from typing import Dict, Iterable, List, Optional

from club_backend.database.models import (
    Attendance,
    Match,
    MatchPlayer,
    Notification,
    NotificationRead,
    Player,
    TrainingSession,
    User,
)
from club_backend.utils.datetime_utils import calculate_age, isoformat_or_none

MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "/storage").rstrip("/")


def _value(raw):
    return getattr(raw, "value", raw)


def media_url(path: Optional[str]) -> Optional[str]:
    """Public URL for a blob storage path."""
    if not path:
        return None
    return f"{MEDIA_BASE_URL}/{path.lstrip('/')}"


def user_to_dict(user: User, player: Optional[Player] = None) -> Dict:
    """User payload (never includes the password hash)."""
    data = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": _value(user.role),
        "team": user.team,
        "phone": user.phone,
        "avatar": user.avatar,
        "avatar_url": media_url(user.avatar),
        "speciality": user.speciality,
        "is_active": user.is_active,
        "created_at": isoformat_or_none(user.created_at),
        "player": None,
    }
    if player is not None:
        data["player"] = player_to_dict(player)
    return data


def player_to_dict(player: Player, stats: Optional[Dict] = None) -> Dict:
    """
    Player payload with derived display fields.

    Args:
        player: Player row
        stats: Optional dict with attendance_rate / average_performance to merge in
    """
    data = {
        "id": player.id,
        "user_id": player.user_id,
        "first_name": player.first_name,
        "last_name": player.last_name,
        "full_name": player.full_name,
        "date_of_birth": isoformat_or_none(player.date_of_birth),
        "age": calculate_age(player.date_of_birth),
        "position": player.position,
        "jersey_number": player.jersey_number,
        "team": player.team,
        "status": _value(player.status),
        "photo_url": media_url(player.photo),
        "cv_url": media_url(player.cv_pdf),
        "address": player.address,
        "emergency_contact": player.emergency_contact,
        "emergency_phone": player.emergency_phone,
        "created_at": isoformat_or_none(player.created_at),
    }
    if stats:
        data.update(stats)
    return data


def attendance_to_dict(
    attendance: Attendance,
    player: Optional[Player] = None,
    training: Optional[TrainingSession] = None,
) -> Dict:
    data = {
        "id": attendance.id,
        "training_session_id": attendance.training_session_id,
        "player_id": attendance.player_id,
        "status": _value(attendance.status),
        "performance_score": attendance.performance_score,
        "remarks": attendance.remarks,
    }
    if player is not None:
        data["player_name"] = player.full_name
        data["jersey_number"] = player.jersey_number
    if training is not None:
        data["training_title"] = training.title
        data["training_date"] = isoformat_or_none(training.date)
    return data


def training_to_dict(
    training: TrainingSession,
    coach: Optional[User] = None,
    attendances: Optional[Iterable[Attendance]] = None,
    stats: Optional[Dict] = None,
    players_by_id: Optional[Dict[int, Player]] = None,
) -> Dict:
    data = {
        "id": training.id,
        "coach_id": training.coach_id,
        "coach_name": coach.name if coach is not None else None,
        "team": training.team,
        "title": training.title,
        "description": training.description,
        "date": isoformat_or_none(training.date),
        "start_time": isoformat_or_none(training.start_time),
        "end_time": isoformat_or_none(training.end_time),
        "location": training.location,
        "status": _value(training.status),
        "created_at": isoformat_or_none(training.created_at),
    }
    if attendances is not None:
        players_by_id = players_by_id or {}
        data["attendances"] = [
            attendance_to_dict(a, player=players_by_id.get(a.player_id)) for a in attendances
        ]
    if stats:
        data.update(stats)
    return data


def match_player_to_dict(row: MatchPlayer, player: Optional[Player] = None) -> Dict:
    data = {
        "player_id": row.player_id,
        "match_id": row.match_id,
        "is_starter": row.is_starter,
        "minutes_played": row.minutes_played,
        "goals": row.goals,
        "assists": row.assists,
        "yellow_cards": row.yellow_cards,
        "red_cards": row.red_cards,
        "rating": float(row.rating) if row.rating is not None else None,
    }
    if player is not None:
        data["player_name"] = player.full_name
        data["jersey_number"] = player.jersey_number
    return data


def match_to_dict(
    match: Match,
    player_stats: Optional[List[MatchPlayer]] = None,
    players_by_id: Optional[Dict[int, Player]] = None,
) -> Dict:
    data = {
        "id": match.id,
        "opponent_team": match.opponent_team,
        "match_date": isoformat_or_none(match.match_date),
        "match_time": isoformat_or_none(match.match_time),
        "location": match.location,
        "match_type": _value(match.match_type),
        "our_score": match.our_score,
        "opponent_score": match.opponent_score,
        "result": _value(match.result),
        "status": _value(match.status),
        "notes": match.notes,
        "created_at": isoformat_or_none(match.created_at),
    }
    if player_stats is not None:
        players_by_id = players_by_id or {}
        data["players"] = [
            match_player_to_dict(row, players_by_id.get(row.player_id)) for row in player_stats
        ]
    return data


def notification_to_dict(
    notification: Notification,
    creator: Optional[User] = None,
    read: Optional[NotificationRead] = None,
) -> Dict:
    """Notification payload; is_read/read_at come from the caller's read receipt."""
    return {
        "id": notification.id,
        "created_by": notification.created_by,
        "creator_name": creator.name if creator is not None else None,
        "title": notification.title,
        "message": notification.message,
        "type": _value(notification.type),
        "target_role": _value(notification.target_role),
        "is_active": notification.is_active,
        "is_read": read is not None,
        "read_at": isoformat_or_none(read.read_at) if read is not None else None,
        "created_at": isoformat_or_none(notification.created_at),
    }
