"""
SQLAlchemy ORM models for the sports club management system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Numeric,
    Date,
    Time,
    DateTime,
    Enum,
    ForeignKey,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from club_backend.database.db import Base


def _enum_column(enum_cls):
    """Store enum values (lowercase strings), not member names."""
    return Enum(
        enum_cls,
        values_callable=lambda x: [e.value for e in x],
        name=enum_cls.__name__.lower(),
    )


class UserRole(str, enum.Enum):
    """Closed set of caller roles."""

    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"


class PlayerStatus(str, enum.Enum):
    """Player availability."""

    ACTIVE = "active"
    INJURED = "injured"
    SUSPENDED = "suspended"


class TrainingStatus(str, enum.Enum):
    """Training session lifecycle."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, enum.Enum):
    """Attendance outcome for one player at one session."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class MatchType(str, enum.Enum):
    FRIENDLY = "friendly"
    LEAGUE = "league"
    CUP = "cup"
    TOURNAMENT = "tournament"


class MatchResult(str, enum.Enum):
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"
    PENDING = "pending"


class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, enum.Enum):
    """Notification severity."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    URGENT = "urgent"


class TargetRole(str, enum.Enum):
    """Audience selector on a notification."""

    ALL = "all"
    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"


class User(Base):
    """User accounts (admins, coaches, players) with email/password authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    role = Column(_enum_column(UserRole), nullable=False)
    team = Column(String(100), nullable=True)  # coaches only
    phone = Column(String(50), nullable=True)
    avatar = Column(String(500), nullable=True)  # blob storage path
    speciality = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    player = relationship("Player", back_populates="user", uselist=False)
    training_sessions = relationship("TrainingSession", back_populates="coach")
    created_notifications = relationship("Notification", back_populates="creator")

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_role", "role"),
        Index("idx_users_role_team", "role", "team"),
    )


class Player(Base):
    """Player profiles, owned 1:1 by a user with the player role."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    position = Column(String(50), nullable=True)
    jersey_number = Column(Integer, nullable=True, unique=True)
    team = Column(String(100), nullable=True)
    photo = Column(String(500), nullable=True)  # blob storage path
    cv_pdf = Column(String(500), nullable=True)  # blob storage path
    address = Column(Text, nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    emergency_phone = Column(String(50), nullable=True)
    status = Column(_enum_column(PlayerStatus), default=PlayerStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="player")
    attendances = relationship("Attendance", back_populates="player")
    match_stats = relationship("MatchPlayer", back_populates="player")

    __table_args__ = (
        Index("idx_players_team", "team"),
        Index("idx_players_status", "status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TrainingSession(Base):
    """Training sessions authored by a coach (or admin)."""

    __tablename__ = "training_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    team = Column(String(100), nullable=True)  # defaults to the coach's team
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    location = Column(String(255), nullable=True)
    status = Column(
        _enum_column(TrainingStatus), default=TrainingStatus.SCHEDULED, nullable=False
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    coach = relationship("User", back_populates="training_sessions")
    attendances = relationship("Attendance", back_populates="training_session")

    __table_args__ = (
        Index("idx_training_sessions_date", "date"),
        Index("idx_training_sessions_team_status", "team", "status"),
    )


class Attendance(Base):
    """One player's attendance at one training session."""

    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    training_session_id = Column(Integer, ForeignKey("training_sessions.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    status = Column(
        _enum_column(AttendanceStatus), default=AttendanceStatus.ABSENT, nullable=False
    )
    performance_score = Column(Integer, nullable=True)  # 1..10
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    training_session = relationship("TrainingSession", back_populates="attendances")
    player = relationship("Player", back_populates="attendances")

    __table_args__ = (
        UniqueConstraint("training_session_id", "player_id", name="uq_attendance_session_player"),
        Index("idx_attendances_player", "player_id"),
    )


class Match(Base):
    """Matches played (or scheduled) by the club."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    opponent_team = Column(String(255), nullable=False)
    match_date = Column(Date, nullable=False)
    match_time = Column(Time, nullable=False)
    location = Column(String(255), nullable=False)
    match_type = Column(_enum_column(MatchType), default=MatchType.FRIENDLY, nullable=False)
    our_score = Column(Integer, nullable=True)
    opponent_score = Column(Integer, nullable=True)
    result = Column(_enum_column(MatchResult), default=MatchResult.PENDING, nullable=False)
    status = Column(_enum_column(MatchStatus), default=MatchStatus.SCHEDULED, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    player_stats = relationship("MatchPlayer", back_populates="match")

    __table_args__ = (
        Index("idx_matches_date", "match_date"),
        Index("idx_matches_status_result", "status", "result"),
    )


class MatchPlayer(Base):
    """Per-player, per-match statistics."""

    __tablename__ = "match_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False)
    is_starter = Column(Boolean, default=False, nullable=False)
    minutes_played = Column(Integer, nullable=True)
    goals = Column(Integer, default=0, nullable=False)
    assists = Column(Integer, default=0, nullable=False)
    yellow_cards = Column(Integer, default=0, nullable=False)
    red_cards = Column(Integer, default=0, nullable=False)
    rating = Column(Numeric(4, 2), nullable=True)  # 0..10, e.g. 7.50
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    player = relationship("Player", back_populates="match_stats")
    match = relationship("Match", back_populates="player_stats")

    __table_args__ = (
        UniqueConstraint("player_id", "match_id", name="uq_match_player"),
        Index("idx_match_players_match", "match_id"),
    )


class Notification(Base):
    """Club-wide notifications addressed to a role (or everyone)."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(_enum_column(NotificationType), default=NotificationType.INFO, nullable=False)
    target_role = Column(_enum_column(TargetRole), default=TargetRole.ALL, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    creator = relationship("User", back_populates="created_notifications")
    reads = relationship("NotificationRead", back_populates="notification")

    __table_args__ = (
        Index("idx_notifications_target_active", "target_role", "is_active", "created_at"),
    )


class NotificationRead(Base):
    """Per-user read receipt for a notification."""

    __tablename__ = "notification_reads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(Integer, ForeignKey("notifications.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    notification = relationship("Notification", back_populates="reads")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_read_user"),
        Index("idx_notification_reads_user", "user_id"),
    )
