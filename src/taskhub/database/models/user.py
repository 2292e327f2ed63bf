"""User model for Taskhub.

Defines the users table, the closed UserRole enum, and the RoleSet column
type that stores a user's roles as a JSON list while exposing them to Python
as a frozenset of UserRole members.

Users are never hard-deleted; deactivation goes through the soft-delete
columns and login refuses inactive or deleted accounts.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from taskhub.database.models.base import Base, SoftDeleteMixin, TimestampMixin

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "fr", "es", "de", "pt")


class UserRole(enum.Enum):
    """Capability labels attached to users and project memberships.

    Roles are labels, not a hierarchy: an admin is not implicitly a manager.

    States:
        member: Regular contributor.
        manager: May coordinate projects.
        admin: System administration (seeding, statistics).
    """

    member = "member"
    manager = "manager"
    admin = "admin"


class RoleSet(TypeDecorator[frozenset[UserRole]]):
    """Stores a set of UserRole values as a sorted JSON list."""

    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: Iterable[UserRole | str] | None, dialect: Dialect
    ) -> list[str]:
        if value is None:
            return []
        return sorted({UserRole(r).value for r in value})

    def process_result_value(self, value: Any, dialect: Dialect) -> frozenset[UserRole]:
        return frozenset(UserRole(r) for r in (value or []))


class User(TimestampMixin, SoftDeleteMixin, Base):
    """A registered Taskhub user.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        email: Unique login email, stored lower-cased.
        first_name: Given name.
        last_name: Family name.
        password_hash: bcrypt hash of the user's password.
        preferred_language: UI language code (en, fr, es, de, pt).
        profile_picture_url: Optional avatar URL.
        roles: Set of UserRole capability labels.
        version: Optimistic concurrency token.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    preferred_language: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="en",
    )
    profile_picture_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    roles: Mapped[frozenset[UserRole]] = mapped_column(
        RoleSet,
        nullable=False,
        default=lambda: frozenset({UserRole.member}),
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def full_name(self) -> str:
        """First and last name joined, without stray whitespace."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def can_login(self) -> bool:
        """True if the account is active and not soft-deleted."""
        return self.is_active and not self.is_deleted

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
