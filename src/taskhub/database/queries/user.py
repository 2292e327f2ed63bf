"""User query functions for Taskhub.

Provides async functions for creating and reading User records. Lookups
only return users that have not been soft-deleted.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database.models.user import User, UserRole

logger = structlog.get_logger(__name__)


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address for storage and lookup."""
    return email.strip().lower()


async def create_user(
    session: AsyncSession,
    email: str,
    first_name: str,
    last_name: str,
    password_hash: str,
    preferred_language: str = "en",
    roles: Iterable[UserRole] = (UserRole.member,),
    profile_picture_url: str | None = None,
) -> User:
    """Add a new user to the session and flush it.

    The caller owns the transaction and must commit.

    Args:
        session: Active async database session.
        email: Login email; stored lower-cased.
        first_name: Given name.
        last_name: Family name.
        password_hash: bcrypt hash of the password.
        preferred_language: UI language code.
        roles: Capability labels for the user.
        profile_picture_url: Optional avatar URL.

    Returns:
        The pending User instance with its id assigned.
    """
    user = User(
        email=normalize_email(email),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        password_hash=password_hash,
        preferred_language=preferred_language,
        roles=frozenset(roles),
        profile_picture_url=profile_picture_url,
    )
    session.add(user)
    await session.flush()

    logger.info("user_created", user_id=str(user.id), roles=sorted(r.value for r in user.roles))
    return user


async def get_user(session: AsyncSession, user_id: UUID) -> User | None:
    """Retrieve a non-deleted user by ID.

    Args:
        session: Active async database session.
        user_id: UUID of the user.

    Returns:
        The User if found and not deleted, None otherwise.
    """
    stmt = select(User).where(User.id == user_id, User.active_only())
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Retrieve a non-deleted user by email, case-insensitively."""
    stmt = select(User).where(User.email == normalize_email(email), User.active_only())
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def email_exists(session: AsyncSession, email: str) -> bool:
    """True if any user row, deleted or not, already holds this email."""
    stmt = select(func.count()).select_from(User).where(User.email == normalize_email(email))
    result = await session.execute(stmt)
    return result.scalar_one() > 0


async def list_users(session: AsyncSession) -> list[User]:
    """List non-deleted users ordered by email."""
    stmt = select(User).where(User.active_only()).order_by(User.email)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_users(session: AsyncSession) -> int:
    """Count non-deleted users."""
    stmt = select(func.count()).select_from(User).where(User.active_only())
    result = await session.execute(stmt)
    return result.scalar_one()
