"""Root conftest — shared test configuration."""

import os

# Never point tests at a real database
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from uuid import uuid4
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from redemption.core.domain_types import Actor, ActorId, ActorRole
from redemption.db.base import Base
from redemption.infrastructure.code_store import SqlCodeStore
import redemption.models  # noqa: F401


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def store(test_db):
    return SqlCodeStore(test_db)


@pytest.fixture
async def file_session_factory(tmp_path):
    """File-backed SQLite: separate connections, real write locking."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'codes.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
    await engine.dispose()


@pytest.fixture
def admin():
    return Actor(ActorId(uuid4()), ActorRole.SUPER_ADMIN)


@pytest.fixture
def manufacturer():
    return Actor(ActorId(uuid4()), ActorRole.MANUFACTURER)


@pytest.fixture
def other_manufacturer():
    return Actor(ActorId(uuid4()), ActorRole.MANUFACTURER)


@pytest.fixture
def app_user():
    return Actor(ActorId(uuid4()), ActorRole.APP_USER)
