"""Engine and session factories for the entity store.

PostgreSQL runs on asyncpg with a sized, pre-pinged pool. SQLite runs on
aiosqlite for development and tests; its pool classes take no sizing
arguments.

Sessions keep attribute values after commit (``expire_on_commit=False``):
in async code an expired attribute would need an implicit reload, which
SQLAlchemy refuses outside a greenlet.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from taskhub.config import DatabaseConfig
from taskhub.database.models import Base


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create the async engine described by the ``[database]`` section."""
    options: dict[str, Any] = {"echo": config.echo}
    if not config.is_sqlite:
        options.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(config.url, **options)


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create whichever tables are missing.

    Used by ``taskhub db init`` and the test fixtures; PostgreSQL
    deployments run ``alembic upgrade head`` instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
