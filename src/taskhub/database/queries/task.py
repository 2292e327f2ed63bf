"""Task query functions for Taskhub.

Provides async functions for creating and reading Task records. A task is
readable only while both it and its parent project are non-deleted, so the
visibility reads join the project and apply both ``active_only``
predicates.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database.models.project import Project
from taskhub.database.models.task import Task, TaskPriority, TaskStatus
from taskhub.database.models.user import User
from taskhub.database.queries.project import visible_to

logger = structlog.get_logger(__name__)


async def create_task(
    session: AsyncSession,
    project: Project,
    created_by: User,
    title: str,
    description: str = "",
    priority: TaskPriority = TaskPriority.medium,
    due_date: datetime | None = None,
    estimated_hours: int = 0,
    tags: str | None = None,
    assigned_to: User | None = None,
) -> Task:
    """Add a new ``todo`` task to a project and flush it.

    The caller owns the transaction and must commit.

    Args:
        session: Active async database session.
        project: Parent project.
        created_by: Creating user.
        title: Short task title.
        description: Detailed description.
        priority: Urgency level.
        due_date: Optional deadline.
        estimated_hours: Estimated effort.
        tags: Free-text, comma separated tags.
        assigned_to: Optional initial assignee.

    Returns:
        The pending Task instance with its id assigned.
    """
    task = Task(
        project_id=project.id,
        project=project,
        created_by_id=created_by.id,
        created_by=created_by,
        assigned_to_id=assigned_to.id if assigned_to is not None else None,
        assigned_to=assigned_to,
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        estimated_hours=estimated_hours,
        tags=tags,
        status=TaskStatus.todo,
    )
    session.add(task)
    await session.flush()

    logger.info("task_row_added", task_id=str(task.id), project_id=str(project.id))
    return task


async def get_task(session: AsyncSession, task_id: UUID) -> Task | None:
    """Retrieve a non-deleted task whose project is also non-deleted."""
    stmt = (
        select(Task)
        .join(Project, Task.project_id == Project.id)
        .where(Task.id == task_id, Task.active_only(), Project.active_only())
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_visible_tasks(
    session: AsyncSession,
    user_id: UUID,
    project_id: UUID | None = None,
) -> list[Task]:
    """List non-deleted tasks in projects visible to user_id.

    Args:
        session: Active async database session.
        user_id: The reading user.
        project_id: Optional project filter.

    Returns:
        Matching tasks, newest first.
    """
    stmt = (
        select(Task)
        .join(Project, Task.project_id == Project.id)
        .where(Task.active_only(), Project.active_only(), visible_to(user_id))
    )

    if project_id is not None:
        stmt = stmt.where(Task.project_id == project_id)

    stmt = stmt.order_by(Task.created_at.desc(), Task.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_project_tasks(session: AsyncSession, project_id: UUID) -> list[Task]:
    """List non-deleted tasks of a project, oldest first."""
    stmt = (
        select(Task)
        .where(Task.project_id == project_id, Task.active_only())
        .order_by(Task.created_at)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_project_tasks(session: AsyncSession, project_id: UUID) -> tuple[int, int]:
    """Count a project's non-deleted tasks.

    Returns:
        Tuple of (total tasks, tasks in ``done`` status).
    """
    stmt = select(
        func.count(Task.id),
        func.count(Task.id).filter(Task.status == TaskStatus.done),
    ).where(Task.project_id == project_id, Task.active_only())
    result = await session.execute(stmt)
    total, completed = result.one()
    return int(total), int(completed)


async def count_tasks(session: AsyncSession) -> int:
    """Count non-deleted tasks across all projects."""
    stmt = select(func.count()).select_from(Task).where(Task.active_only())
    result = await session.execute(stmt)
    return result.scalar_one()


async def count_tasks_by_status(session: AsyncSession) -> dict[TaskStatus, int]:
    """Count non-deleted tasks grouped by status; absent statuses map to 0."""
    stmt = (
        select(Task.status, func.count())
        .where(Task.active_only())
        .group_by(Task.status)
    )
    result = await session.execute(stmt)
    counts = {status: 0 for status in TaskStatus}
    for status, count in result.all():
        counts[status] = int(count)
    return counts
