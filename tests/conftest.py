"""Shared test fixtures.

Tests run against a throwaway SQLite database (aiosqlite) built from the
ORM metadata, so no PostgreSQL or Redis server is needed. Redis is either
passed as None or replaced by the in-process preference broker.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("FQ_JWT_SECRET", "test-secret-for-fitquest-tokens-0123456789")
os.environ.setdefault("FQ_LOG_FORMAT", "console")
os.environ.setdefault("FQ_PREFERENCE_SYNC_BACKEND", "local")

from fitquest.achievements.catalog import AchievementCatalog, load_catalog  # noqa: E402
from fitquest.config import get_settings  # noqa: E402
from fitquest.db.base import Base  # noqa: E402
from fitquest.db.models import Workout, WorkoutProgress  # noqa: E402

get_settings.cache_clear()

USER_ID = "8d0c6d8e-3f1a-4d36-9a53-6f5b1c1d2e01"
OTHER_USER_ID = "1b7e2f40-5c9d-4e1a-8f3b-2a6c7d8e9f10"


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fitquest.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for test assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def catalog() -> AchievementCatalog:
    return load_catalog()


@pytest.fixture
def user_id() -> str:
    return USER_ID


async def seed_workouts(db: AsyncSession, count: int = 25, advanced_every: int = 0) -> list[str]:
    """Insert ``count`` workout templates; every ``advanced_every``-th one is advanced."""
    ids = []
    for i in range(count):
        difficulty = "advanced" if advanced_every and i % advanced_every == 0 else "beginner"
        workout_id = f"w-{i:03d}"
        db.add(Workout(id=workout_id, title=f"Workout {i}", difficulty=difficulty, duration_seconds=1800))
        ids.append(workout_id)
    await db.commit()
    return ids


async def add_completions(
    db: AsyncSession,
    user_id: str,
    workout_ids: list[str],
    duration_seconds: int = 600,
    days_ago: list[int] | None = None,
) -> None:
    """Record one completion per workout id, optionally spread over past days."""
    now = datetime.now(timezone.utc)
    for i, workout_id in enumerate(workout_ids):
        offset = days_ago[i] if days_ago else 0
        db.add(WorkoutProgress(
            user_id=user_id,
            workout_id=workout_id,
            completed_at=now - timedelta(days=offset),
            duration_seconds=duration_seconds,
        ))
    await db.commit()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the SQLite test database."""
    from fitquest.database import get_session
    from fitquest.main import create_app
    from fitquest.notifications.sync import LocalPreferenceBroker, PreferenceSync

    app = create_app()

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.state.preference_sync = PreferenceSync(LocalPreferenceBroker(), session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.app = app  # expose for test access
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    from fitquest.auth.jwt import create_access_token

    return {"Authorization": f"Bearer {create_access_token(USER_ID)}"}
