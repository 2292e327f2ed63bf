"""SQLAlchemy declarative base and common column mixins for Taskhub.

This module defines the DeclarativeBase class, the timestamp helpers used
for audit columns, and two mixins:

- TimestampMixin: id, created_at and updated_at columns.
- SoftDeleteMixin: is_deleted, deleted_at and is_active columns plus the
  ``active_only`` predicate every read path applies explicitly.

Identifiers and timestamps are generated in Python rather than by the
database so the same models behave identically on PostgreSQL and SQLite.

Versioned models declare their own ``version`` column and map it with
``__mapper_args__ = {"version_id_col": version}``; SQLAlchemy then adds
``WHERE version = :loaded`` to every UPDATE and raises StaleDataError when
another writer got there first.

Example:
    >>> class MyModel(TimestampMixin, SoftDeleteMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(Text, nullable=False)
    ...     version: Mapped[int] = mapped_column(Integer, nullable=False)
    ...     __mapper_args__ = {"version_id_col": version}
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Uuid, false
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.elements import ColumnElement


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from backends without tz support.

    SQLite returns naive datetimes even for ``DateTime(timezone=True)``
    columns; all values Taskhub writes are UTC, so tagging them is lossless.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all Taskhub models."""

    pass


class TimestampMixin:
    """Mixin providing id (UUID), created_at, and updated_at columns.

    This mixin should be listed before Base in the class hierarchy
    to ensure the columns are included in the model's table definition.

    Attributes:
        id: UUID primary key generated with uuid4.
        created_at: Timestamp set on row creation.
        updated_at: Timestamp set on row creation and refreshed on each
                    modification.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def touch(self, now: datetime | None = None) -> None:
        """Bump updated_at, marking the row dirty even if nothing else changed."""
        self.updated_at = now or utcnow()


class SoftDeleteMixin:
    """Mixin providing soft-delete and activation flags.

    Rows are never physically removed by Taskhub; ``soft_delete`` flags them
    and every query function filters them out through ``active_only``.

    Attributes:
        is_deleted: True once the row has been soft-deleted.
        deleted_at: When the row was soft-deleted.
        is_active: Administrative activation flag.
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def soft_delete(self, now: datetime | None = None) -> None:
        """Flag the row as deleted and stamp deleted_at/updated_at."""
        now = now or utcnow()
        self.is_deleted = True
        self.deleted_at = now
        self.updated_at = now  # type: ignore[attr-defined]

    @classmethod
    def active_only(cls) -> ColumnElement[bool]:
        """SQL predicate selecting rows that have not been soft-deleted."""
        return cls.is_deleted == false()  # type: ignore[attr-defined]

