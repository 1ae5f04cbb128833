"""
Shared pytest configuration for club backend tests.

Service tests run against a fresh in-memory SQLite database per test; route
tests use TestClient with monkeypatched authentication and services.
"""

import os

# Must be set before club_backend is imported: the engine and the rate limiter
# read them at import time.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import date, time  # noqa: E402

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402

from club_backend.database.db import Base  # noqa: E402
from club_backend.database.models import (  # noqa: E402
    Player,
    PlayerStatus,
    TrainingSession,
    TrainingStatus,
    User,
    UserRole,
)
from club_backend.services.access_service import CallerContext  # noqa: E402


@pytest_asyncio.fixture
async def db_session():
    """Create a test database session."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        yield session

    # Cleanup
    await engine.dispose()


async def make_user(session, name="Test User", email=None, role=UserRole.ADMIN, team=None):
    """Insert a user directly (no bcrypt round-trip)."""
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@club.test",
        password_hash="not-a-real-hash",
        role=role,
        team=team,
        is_active=True,
    )
    session.add(user)
    await session.flush()
    return user


async def make_player(
    session,
    first_name,
    last_name="Player",
    team="U15 Masculin",
    status=PlayerStatus.ACTIVE,
    jersey_number=None,
    date_of_birth=date(2010, 5, 1),
):
    """Insert a player together with its owning user."""
    user = await make_user(
        session,
        name=f"{first_name} {last_name}",
        email=f"{first_name.lower()}.{last_name.lower()}@club.test",
        role=UserRole.PLAYER,
    )
    player = Player(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        team=team,
        status=status,
        jersey_number=jersey_number,
    )
    session.add(player)
    await session.flush()
    return player


async def make_training(session, coach, team=None, day=date(2025, 3, 1), title="Session"):
    """Insert a bare training session (no attendance seeding)."""
    training = TrainingSession(
        coach_id=coach.id,
        team=team if team is not None else coach.team,
        title=title,
        date=day,
        start_time=time(18, 0),
        end_time=time(19, 30),
        status=TrainingStatus.SCHEDULED,
    )
    session.add(training)
    await session.flush()
    return training


def caller_for(user, player=None):
    """CallerContext for a user row (and its player row, for players)."""
    return CallerContext(
        user_id=user.id,
        role=UserRole(user.role),
        team=user.team or (player.team if player is not None else None),
        player_id=player.id if player is not None else None,
    )


@pytest_asyncio.fixture
async def admin(db_session):
    return await make_user(db_session, name="Club Admin", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def coach(db_session):
    return await make_user(db_session, name="Coach U15", role=UserRole.COACH, team="U15 Masculin")


@pytest_asyncio.fixture
async def other_coach(db_session):
    return await make_user(
        db_session, name="Coach Seniors", role=UserRole.COACH, team="Seniors Masculin"
    )
