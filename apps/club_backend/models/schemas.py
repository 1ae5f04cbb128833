"""
Pydantic models for API request/response validation.
"""

import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, model_validator

from club_backend.database.models import (
    AttendanceStatus,
    MatchStatus,
    MatchType,
    NotificationType,
    PlayerStatus,
    TargetRole,
    TrainingStatus,
)
from club_backend.utils.constants import (
    MAX_MATCH_RATING,
    MAX_PERFORMANCE_SCORE,
    MIN_MATCH_RATING,
    MIN_PASSWORD_LENGTH,
    MIN_PERFORMANCE_SCORE,
)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


# Authentication schemas


class LoginRequest(BaseModel):
    """Request to login with email and password."""

    email: str
    password: str


class AuthResponse(BaseModel):
    """Authentication response with JWT token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


class ProfileUpdate(BaseModel):
    """Request to update the caller's own profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class ChangePasswordRequest(BaseModel):
    """Request to change the caller's password."""

    current_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    new_password_confirmation: Optional[str] = None

    @model_validator(mode="after")
    def validate_confirmation(self):
        """When a confirmation is sent it must match."""
        if (
            self.new_password_confirmation is not None
            and self.new_password_confirmation != self.new_password
        ):
            raise ValueError("Password confirmation does not match")
        return self


# Player schemas


class PlayerCreate(BaseModel):
    """Request to create a player together with its user account."""

    email: str = Field(max_length=255)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: datetime.date
    team: Optional[str] = None  # coaches default to their own team
    phone: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=50)
    jersey_number: Optional[int] = Field(None, ge=0, le=999)
    status: Optional[PlayerStatus] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=50)
    photo: Optional[str] = None
    cv_pdf: Optional[str] = None


class PlayerUpdate(BaseModel):
    """Partial player update; only sent fields are applied."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[datetime.date] = None
    team: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=50)
    jersey_number: Optional[int] = Field(None, ge=0, le=999)
    status: Optional[PlayerStatus] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=50)
    photo: Optional[str] = None
    cv_pdf: Optional[str] = None


# Training schemas


class TrainingCreate(BaseModel):
    """Request to create a training session."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    location: Optional[str] = Field(None, max_length=255)
    team: Optional[str] = None


class TrainingUpdate(BaseModel):
    """Partial training update; status changes follow the lifecycle."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    start_time: Optional[datetime.time] = None
    end_time: Optional[datetime.time] = None
    location: Optional[str] = Field(None, max_length=255)
    team: Optional[str] = None
    status: Optional[TrainingStatus] = None


class AttendanceEntry(BaseModel):
    """Attendance for one player."""

    player_id: int
    status: AttendanceStatus
    performance_score: Optional[int] = Field(
        None, ge=MIN_PERFORMANCE_SCORE, le=MAX_PERFORMANCE_SCORE
    )
    remarks: Optional[str] = None


class AttendanceRequest(BaseModel):
    """Bulk attendance marking for a training session."""

    attendances: List[AttendanceEntry] = Field(min_length=1)


# Match schemas


class MatchCreate(BaseModel):
    """Request to create a match."""

    opponent_team: str = Field(min_length=1, max_length=255)
    match_date: datetime.date
    match_time: datetime.time
    location: str = Field(min_length=1, max_length=255)
    match_type: Optional[MatchType] = None
    our_score: Optional[int] = Field(None, ge=0)
    opponent_score: Optional[int] = Field(None, ge=0)
    status: Optional[MatchStatus] = None
    notes: Optional[str] = None


class MatchUpdate(BaseModel):
    """Partial match update. Result is always derived from the scores."""

    opponent_team: Optional[str] = Field(None, min_length=1, max_length=255)
    match_date: Optional[datetime.date] = None
    match_time: Optional[datetime.time] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    match_type: Optional[MatchType] = None
    our_score: Optional[int] = Field(None, ge=0)
    opponent_score: Optional[int] = Field(None, ge=0)
    status: Optional[MatchStatus] = None
    notes: Optional[str] = None


class MatchPlayerEntry(BaseModel):
    """Stats for one player in one match."""

    player_id: int
    is_starter: Optional[bool] = None
    minutes_played: Optional[int] = Field(None, ge=0, le=200)
    goals: Optional[int] = Field(None, ge=0)
    assists: Optional[int] = Field(None, ge=0)
    yellow_cards: Optional[int] = Field(None, ge=0, le=2)
    red_cards: Optional[int] = Field(None, ge=0, le=1)
    rating: Optional[float] = Field(None, ge=MIN_MATCH_RATING, le=MAX_MATCH_RATING)


class MatchPlayersRequest(BaseModel):
    """Bulk per-player stats for a match."""

    players: List[MatchPlayerEntry] = Field(min_length=1)


class MatchSummaryResponse(BaseModel):
    """Season totals over all matches."""

    total_matches: int
    completed: int
    scheduled: int
    cancelled: int
    wins: int
    losses: int
    draws: int
    goals_scored: int
    goals_conceded: int
    win_rate: float


# Notification schemas


class NotificationCreate(BaseModel):
    """Request to create a notification."""

    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: Optional[NotificationType] = None
    target_role: Optional[TargetRole] = None
    is_active: bool = True


class NotificationUpdate(BaseModel):
    """Partial notification update."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)
    type: Optional[NotificationType] = None
    target_role: Optional[TargetRole] = None
    is_active: Optional[bool] = None


class NotificationResponse(BaseModel):
    """Notification with the caller's read state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_by: int
    creator_name: Optional[str] = None
    title: str
    message: str
    type: str
    target_role: str
    is_active: bool
    is_read: bool
    read_at: Optional[str] = None
    created_at: Optional[str] = None


class UnreadCountResponse(BaseModel):
    """Number of unread notifications for the caller."""

    count: int


# Coach schemas


class CoachCreate(BaseModel):
    """Request to create a coach account."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    team: str
    phone: Optional[str] = Field(None, max_length=50)
    speciality: Optional[str] = Field(None, max_length=255)


class CoachUpdate(BaseModel):
    """Partial coach update."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    team: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    speciality: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None
