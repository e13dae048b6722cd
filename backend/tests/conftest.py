"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite) with all
tables created from the models.
"""

from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from runsocial.db.session import import_models
from runsocial.models.base import Base


@pytest.fixture
async def db_engine():
    """In-memory database shared by all connections of one test."""
    import_models()
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(db_engine):
    """Async session, same settings as the application's."""
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    """Factory creating a committed user."""
    from runsocial.features.users.models import User

    async def _make_user(**values) -> User:
        user = User(**values)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_achievement(db):
    """Factory creating a committed achievement rule."""
    from runsocial.features.achievements.models import Achievement

    async def _make_achievement(name, type, threshold, xp_reward) -> Achievement:
        achievement = Achievement(
            name=name,
            description=name,
            type=type.value if hasattr(type, "value") else type,
            threshold=threshold,
            xp_reward=xp_reward,
        )
        db.add(achievement)
        await db.commit()
        await db.refresh(achievement)
        return achievement

    return _make_achievement


@pytest.fixture
def fetch(db):
    """Re-read an entity from the database, bypassing the identity map."""

    async def _fetch(model, entity_id):
        result = await db.execute(
            select(model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.unique().scalar_one_or_none()

    return _fetch


@pytest.fixture
def now():
    return datetime(2026, 10, 18, 12, 0, 0)
