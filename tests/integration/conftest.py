"""Pytest fixtures for integration tests.

Provides async database fixtures for testing query functions and API
routes against an in-memory SQLite database. Production runs on PostgreSQL;
the models only use portable column types, so the same schema is created
here with ``create_all``.
"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from learnd.config import LearndConfig
from learnd.database.models import Base, Profile
from learnd.database.queries.profile import create_profile
from learnd.web.app import create_app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend for pytest-asyncio.

    Returns:
        The name of the async backend to use.
    """
    return "asyncio"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite async engine for testing.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.

    Yields:
        Configured AsyncEngine instance using in-memory SQLite.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a new async database session for each test.

    Yields:
        AsyncSession instance for the test.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def profile(db_session: AsyncSession) -> Profile:
    """A basic user on the free plan."""
    return await create_profile(
        db_session, email="ada@example.com", first_name="Ada", last_name="Lovelace"
    )


@pytest_asyncio.fixture
async def team_profile(db_session: AsyncSession) -> Profile:
    """A basic user on the team plan (exports, no advanced analytics)."""
    return await create_profile(db_session, email="grace@example.com", subscription_tier="team")


@pytest_asyncio.fixture
async def business_profile(db_session: AsyncSession) -> Profile:
    """A power user on the business plan."""
    return await create_profile(
        db_session,
        email="linus@example.com",
        role="power_user",
        subscription_tier="business",
    )


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """FastAPI app wired to the test database.

    ASGITransport does not run the lifespan, so the session factory is
    injected directly.
    """
    test_app = create_app(LearndConfig())
    test_app.state.session_factory = session_factory
    return test_app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the test app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


