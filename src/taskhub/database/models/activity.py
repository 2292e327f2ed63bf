"""ActivityLog model for Taskhub.

The activity log is append-only: rows are inserted by the ActivityRecorder
and never updated or deleted. Each row carries a database-assigned
``sequence`` so entries written within the same clock tick still read back
in insertion order.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.database.models.base import Base, utcnow


class ActivityType(enum.Enum):
    """Kinds of mutation recorded in the activity log."""

    task_created = "task_created"
    task_updated = "task_updated"
    task_assigned = "task_assigned"
    task_status_changed = "task_status_changed"
    task_deleted = "task_deleted"
    comment_added = "comment_added"
    project_created = "project_created"
    project_updated = "project_updated"
    user_joined_project = "user_joined_project"
    user_left_project = "user_left_project"


class ActivityLog(Base):
    """One recorded mutation.

    Attributes:
        sequence: Monotonic surrogate key, used as the ordering tie-breaker.
        id: Public UUID identifier.
        user_id: Acting user.
        activity_type: What happened.
        description: Human-readable summary.
        old_value: Serialized state before the change, if any.
        new_value: Serialized state after the change, if any.
        metadata_json: Optional structured extras (column ``metadata``).
        task_id: Related task, if any.
        project_id: Related project, if any.
        created_at: When the entry was recorded.
    """

    __tablename__ = "activity_logs"

    sequence: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        default=uuid.uuid4,
        nullable=False,
        unique=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    activity_type: Mapped[ActivityType] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    old_value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    new_value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )
    task_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ActivityLog seq={self.sequence} type={self.activity_type.value}>"
