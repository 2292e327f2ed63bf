"""Task model for Taskhub.

Defines the tasks table and the TaskStatus / TaskPriority enums. Tasks
belong to exactly one project, record an immutable creator, and carry an
optional assignee.

``completed_at`` is derived state: the lifecycle layer keeps it non-null
exactly when the status is ``done``.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    ensure_utc,
    utcnow,
)
from taskhub.database.models.project import Project
from taskhub.database.models.user import User


class TaskStatus(enum.Enum):
    """Task workflow states.

    Any state may move to any other; ``done`` is the only state with a
    side effect (``completed_at``).

    States:
        todo: Not started.
        in_progress: Being worked on.
        done: Finished.
        cancelled: Abandoned; may be reopened.
        on_hold: Paused.
    """

    todo = "todo"
    in_progress = "in_progress"
    done = "done"
    cancelled = "cancelled"
    on_hold = "on_hold"


class TaskPriority(enum.Enum):
    """Task urgency levels, lowest to highest."""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class Task(TimestampMixin, SoftDeleteMixin, Base):
    """A unit of work within a project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Parent project.
        title: Short task title.
        description: Detailed description.
        status: Current workflow state.
        priority: Urgency level.
        due_date: Optional deadline.
        completed_at: Set while status is done, cleared otherwise.
        estimated_hours: Estimated effort.
        actual_hours: Effort spent so far.
        tags: Free-text, comma separated tags.
        created_by_id: Creating user; immutable.
        assigned_to_id: Optional assignee.
        version: Optimistic concurrency token.
        project: Relationship to the parent Project.
        created_by: Relationship to the creating User.
        assigned_to: Relationship to the assigned User.
    """

    __tablename__ = "tasks"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    status: Mapped[TaskStatus] = mapped_column(
        default=TaskStatus.todo,
        nullable=False,
        index=True,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        default=TaskPriority.medium,
        nullable=False,
    )
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    estimated_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    actual_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    assigned_to_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    project: Mapped[Project] = relationship("Project", lazy="selectin")
    created_by: Mapped[User] = relationship(
        "User",
        foreign_keys="Task.created_by_id",
        lazy="selectin",
    )
    assigned_to: Mapped[User | None] = relationship(
        "User",
        foreign_keys="Task.assigned_to_id",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_overdue(self) -> bool:
        """True if the due date has passed and the task is not done."""
        due = ensure_utc(self.due_date)
        return due is not None and due < utcnow() and self.status != TaskStatus.done

    @property
    def project_name(self) -> str:
        return self.project.name

    @property
    def tag_list(self) -> list[str]:
        """Tags split on commas, stripped, empties dropped."""
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]

    def __repr__(self) -> str:
        return f"<Task id={self.id} title={self.title!r} status={self.status.value}>"
