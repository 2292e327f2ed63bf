"""Project and ProjectMember models for Taskhub.

Defines the projects table, the project_members join table and the
ProjectStatus enum.

A project's owner is an implicit member with full rights and never needs a
ProjectMember row. Explicit memberships are soft-deleted on removal; a
partial unique index keeps at most one non-deleted row per (project, user)
pair while allowing any number of historical, deleted rows.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.database.models.base import Base, SoftDeleteMixin, TimestampMixin, utcnow
from taskhub.database.models.user import User, UserRole


class ProjectStatus(enum.Enum):
    """Lifecycle status for a project.

    States:
        planning: Initial state, project is being defined.
        active: Project is actively being worked on.
        on_hold: Work temporarily suspended.
        completed: Project finished.
        cancelled: Project abandoned.
    """

    planning = "planning"
    active = "active"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"


class Project(TimestampMixin, SoftDeleteMixin, Base):
    """A project grouping tasks and members.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        description: Free-text description.
        status: Current lifecycle status.
        start_date: Optional planned start.
        end_date: Optional planned end.
        color: Optional ``#RRGGBB`` display color.
        owner_id: Owning user; immutable after creation.
        version: Optimistic concurrency token.
        owner: Relationship to the owning User.
        members: All membership rows, including soft-deleted ones.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    status: Mapped[ProjectStatus] = mapped_column(
        default=ProjectStatus.planning,
        nullable=False,
    )
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    owner: Mapped[User] = relationship("User", lazy="selectin")
    members: Mapped[list[ProjectMember]] = relationship(
        "ProjectMember",
        back_populates="project",
        lazy="selectin",
        order_by="ProjectMember.joined_at",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def active_members(self) -> list[ProjectMember]:
        """Membership rows that have not been soft-deleted."""
        return [m for m in self.members if not m.is_deleted]

    def find_active_member(self, user_id: uuid.UUID) -> ProjectMember | None:
        """Return the non-deleted membership row for user_id, if any."""
        for member in self.members:
            if member.user_id == user_id and not member.is_deleted:
                return member
        return None

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r}>"


class ProjectMember(TimestampMixin, SoftDeleteMixin, Base):
    """Membership of a user in a project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Parent project.
        user_id: Member user.
        role: Role within the project.
        joined_at: When this membership row was created.
        version: Optimistic concurrency token.
    """

    __tablename__ = "project_members"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(default=UserRole.member, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    project: Mapped[Project] = relationship("Project", back_populates="members")
    user: Mapped[User] = relationship("User", lazy="selectin")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<ProjectMember project_id={self.project_id} user_id={self.user_id} "
            f"deleted={self.is_deleted}>"
        )


Index(
    "uq_project_members_active",
    ProjectMember.project_id,
    ProjectMember.user_id,
    unique=True,
    postgresql_where=ProjectMember.is_deleted == false(),
    sqlite_where=ProjectMember.is_deleted == false(),
)
