"""Integration test fixtures for database and HTTP client operations.

Uses an in-memory SQLite database shared through a StaticPool, so every
session in a test sees the same tables without an external server.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import src.persona.models  # noqa: F401 - registers tables on SQLModel.metadata
from src.persona.api.dependencies import get_db_session, get_identity_provider
from src.persona.core.db import get_session
from src.persona.main import create_app
from src.persona.repositories import SqlIdentityRepository, SqlSessionRepository
from src.persona.services.oauth import OAuthUserInfo
from tests.helpers import INTERNAL_SECRET, FakeIdentityProvider


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session for arranging and inspecting data. Repositories commit their own writes."""
    async with get_session(engine) as session:
        yield session


@pytest.fixture
def sql_identity_repo(db_session: AsyncSession) -> SqlIdentityRepository:
    return SqlIdentityRepository(db_session)


@pytest.fixture
def sql_session_repo(db_session: AsyncSession) -> SqlSessionRepository:
    return SqlSessionRepository(db_session)


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider(
        OAuthUserInfo(id="google-sub-1", email="ada@example.com", name="Ada Lovelace")
    )


@pytest.fixture
def app(engine: AsyncEngine, identity_provider: FakeIdentityProvider) -> FastAPI:
    application = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession]:
        async with get_session(engine) as session:
            yield session

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_identity_provider] = lambda: identity_provider
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def internal_headers() -> dict[str, str]:
    return {"X-Internal-Secret": INTERNAL_SECRET}
