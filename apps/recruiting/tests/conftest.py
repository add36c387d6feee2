"""
Shared pytest configuration for recruiting tests.

Service tests run against an in-memory SQLite database (aiosqlite) created
fresh for every test. Route tests either stub the service layer with
monkeypatch or point ``get_db_session`` at the same in-memory database.
"""

import os

# Must be set before the app modules are imported: the limiter becomes a
# no-op and the engine in db.py never targets PostgreSQL.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from recruiting.database.db import Base  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database per test."""
    # StaticPool keeps the single in-memory connection alive across sessions
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        from recruiting.database import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)

    # Code that opens its own sessions (scripts) must see the test database
    from recruiting.database import db

    test_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    original_async_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = test_session_maker

    yield engine

    db.AsyncSessionLocal = original_async_session_local
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker):
    """Database session for one test."""
    async with session_maker() as session:
        yield session
