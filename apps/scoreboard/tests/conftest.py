"""
Shared pytest configuration for scoreboard tests.

Service tests run against an in-memory SQLite database through aiosqlite.
Set TEST_DATABASE_URL to run them against another database instead; its
name must contain "test" because every table is dropped after each test.
"""

import os
import tempfile

# Must be set before any scoreboard module is imported
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "scoreboard-test-uploads"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from scoreboard.database.db import Base  # noqa: E402
from scoreboard.database.models import (  # noqa: E402
    Player,
    Scoreboard,
    ScoreboardTeam,
    ScorerAssignment,
    Team,
    TeamMembership,
    User,
)

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

if not TEST_DATABASE_URL.startswith("sqlite"):
    db_name = TEST_DATABASE_URL.rsplit("/", 1)[-1].split("?")[0]
    if "test" not in db_name.lower():
        raise RuntimeError(
            f"Refusing to run tests against database '{db_name}': "
            f"the database name must contain 'test'."
        )


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a fresh schema for one test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_kwargs(TEST_DATABASE_URL))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Code that opens its own sessions (init_defaults) uses the test engine too
    from scoreboard.database import db

    original_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    yield engine

    db.AsyncSessionLocal = original_session_local
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Database session bound to the per-test schema."""
    session_maker = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


#
# Domain fixtures
#


async def _add(session, instance):
    session.add(instance)
    await session.commit()
    await session.refresh(instance)
    return instance


def as_actor(user: User) -> dict:
    """The user dict routes hand to services."""
    return {"id": user.id, "email": user.email, "name": user.name, "role": user.role}


@pytest_asyncio.fixture
async def admin(db_session):
    user = await _add(
        db_session, User(email="admin@example.com", password_hash="x", name="Admin", role="admin")
    )
    return as_actor(user)


@pytest_asyncio.fixture
async def scorer(db_session):
    user = await _add(
        db_session, User(email="scorer@example.com", password_hash="x", name="Sam Scorer", role="scorer")
    )
    return as_actor(user)


@pytest_asyncio.fixture
async def outsider(db_session):
    """A scorer with no scoreboard assignments."""
    user = await _add(
        db_session, User(email="other@example.com", password_hash="x", name="Other", role="scorer")
    )
    return as_actor(user)


@pytest_asyncio.fixture
async def league(db_session, admin, scorer):
    """
    Scoreboard "champ" with teams Alpha {P1, P2} and Beta {P3}, plus an
    unassigned team Gamma {P4}. The scorer fixture is assigned to "champ".
    """
    p1, p2, p3, p4 = [Player(name=name) for name in ("P1", "P2", "P3", "P4")]
    alpha, beta, gamma = Team(name="Alpha"), Team(name="Beta"), Team(name="Gamma")
    db_session.add_all([p1, p2, p3, p4, alpha, beta, gamma])
    await db_session.flush()

    champ = Scoreboard(name="Champ", public_slug="champ", status="active", created_by=admin["id"])
    db_session.add(champ)
    await db_session.flush()

    db_session.add_all(
        [
            TeamMembership(team_id=alpha.id, player_id=p1.id),
            TeamMembership(team_id=alpha.id, player_id=p2.id),
            TeamMembership(team_id=beta.id, player_id=p3.id),
            TeamMembership(team_id=gamma.id, player_id=p4.id),
            ScoreboardTeam(scoreboard_id=champ.id, team_id=alpha.id),
            ScoreboardTeam(scoreboard_id=champ.id, team_id=beta.id),
            ScorerAssignment(user_id=scorer["id"], scoreboard_id=champ.id, role="scorer"),
        ]
    )
    await db_session.commit()

    return {
        "scoreboard_id": champ.id,
        "alpha": alpha.id,
        "beta": beta.id,
        "gamma": gamma.id,
        "p1": p1.id,
        "p2": p2.id,
        "p3": p3.id,
        "p4": p4.id,
    }
