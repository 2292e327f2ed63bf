"""SQLAlchemy ORM models for Taskhub.

This module defines the schema: users, projects, project memberships,
tasks, task comments and the append-only activity log.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from taskhub.database.models.activity import ActivityLog, ActivityType
from taskhub.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    ensure_utc,
    utcnow,
)
from taskhub.database.models.comment import Comment
from taskhub.database.models.project import Project, ProjectMember, ProjectStatus
from taskhub.database.models.task import Task, TaskPriority, TaskStatus
from taskhub.database.models.user import SUPPORTED_LANGUAGES, User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "ensure_utc",
    "utcnow",
    "User",
    "UserRole",
    "SUPPORTED_LANGUAGES",
    "Project",
    "ProjectMember",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Comment",
    "ActivityLog",
    "ActivityType",
]
