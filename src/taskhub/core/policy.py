"""Access policy for Taskhub.

Pure functions deciding who may read or write which entity. They inspect
already-loaded model instances, perform no I/O and never raise: any missing
input (no user id, no entity, a soft-deleted entity, a parent relationship
that was never loaded) yields ``False``.

Rules:
    1. A user may always read and write their own User record.
    2. A user may read and write a Project if they own it or hold a
       non-deleted membership row for it.
    3. A user may read, create and update a Task if they can read its
       parent Project.
    4. A user may change a Task's status if they can read its parent
       Project or are the Task's current assignee.
    5. Comments and activity follow their parent Task or Project.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import inspect

from taskhub.database.models.project import Project
from taskhub.database.models.task import Task
from taskhub.database.models.user import User, UserRole


def _is_loaded(instance: object, attribute: str) -> bool:
    return attribute not in inspect(instance).unloaded


def can_access_user(user_id: UUID | None, user: User | None) -> bool:
    """True if user_id refers to the given, non-deleted user record."""
    if user_id is None or user is None or user.is_deleted:
        return False
    return user.id == user_id


def can_access_project(user_id: UUID | None, project: Project | None) -> bool:
    """True if user_id owns the project or is one of its active members."""
    if user_id is None or project is None or project.is_deleted:
        return False
    if project.owner_id == user_id:
        return True
    if not _is_loaded(project, "members"):
        return False
    return project.find_active_member(user_id) is not None


def can_access_task(user_id: UUID | None, task: Task | None) -> bool:
    """True if user_id can read the task's parent project."""
    if user_id is None or task is None or task.is_deleted:
        return False
    if not _is_loaded(task, "project"):
        return False
    return can_access_project(user_id, task.project)


def can_mutate_task_status(user_id: UUID | None, task: Task | None) -> bool:
    """True if user_id can read the task's project or is its current assignee."""
    if user_id is None or task is None or task.is_deleted:
        return False
    if task.assigned_to_id is not None and task.assigned_to_id == user_id:
        return True
    return can_access_task(user_id, task)


def can_delete_project(user_id: UUID | None, project: Project | None) -> bool:
    """Only the owner may delete a project."""
    if user_id is None or project is None or project.is_deleted:
        return False
    return project.owner_id == user_id


def has_role(user: User | None, role: UserRole) -> bool:
    """True if the user is active and carries the given role label."""
    if user is None or not user.can_login:
        return False
    return role in (user.roles or frozenset())
