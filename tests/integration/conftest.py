"""Pytest fixtures for integration tests.

Every test gets its own SQLite database file (through aiosqlite) with the
full schema created from the ORM metadata, so query, service and API tests
run against real SQL without a PostgreSQL server.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskhub.auth.passwords import hash_password
from taskhub.auth.tokens import create_access_token
from taskhub.config import AuthConfig, DatabaseConfig, TaskhubConfig
from taskhub.database import queries
from taskhub.database.connection import create_schema, get_engine, get_session_factory
from taskhub.database.models import User, UserRole
from taskhub.web.app import create_app

TEST_PASSWORD = "Secret123"

UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture
def config(tmp_path: Path) -> TaskhubConfig:
    """Configuration pointing at a per-test SQLite file with cheap bcrypt."""
    return TaskhubConfig(
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'taskhub.db'}"),
        auth=AuthConfig(secret_key="integration-test-secret-key-0123", bcrypt_rounds=4),
    )


@pytest_asyncio.fixture
async def engine(config: TaskhubConfig) -> AsyncGenerator[AsyncEngine, None]:
    test_engine = get_engine(config.database)
    await create_schema(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """A session shared by the test body and the services it calls."""
    async with session_factory() as db_session:
        yield db_session


@pytest_asyncio.fixture
async def make_user(session: AsyncSession) -> UserFactory:
    """Create and commit users in the shared session."""
    counter = 0

    async def _make_user(
        first_name: str = "Test",
        last_name: str = "User",
        email: str | None = None,
        roles: tuple[UserRole, ...] = (UserRole.member,),
        password: str = TEST_PASSWORD,
    ) -> User:
        nonlocal counter
        counter += 1
        user = await queries.create_user(
            session,
            email=email or f"user{counter}@example.com",
            first_name=first_name,
            last_name=last_name,
            password_hash=hash_password(password, rounds=4),
            roles=roles,
        )
        await session.commit()
        return user

    return _make_user


@pytest.fixture
def app(
    config: TaskhubConfig,
    engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
) -> FastAPI:
    """Application wired to the test database.

    ASGITransport does not run the lifespan, so the engine and session
    factory are placed on app.state directly.
    """
    application = create_app(config)
    application.state.engine = engine
    application.state.session_factory = session_factory
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(config: TaskhubConfig) -> Callable[[User], dict[str, str]]:
    """Build a bearer Authorization header for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user, config.auth).token
        return {"Authorization": f"Bearer {token}"}

    return _headers
