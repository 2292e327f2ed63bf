"""Activity log query functions for Taskhub.

The activity log is append-only, so this module offers no update or delete
functions. Reads order by ``created_at`` and then by the insertion
``sequence``.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database.models.activity import ActivityLog, ActivityType


async def list_activity_for_task(session: AsyncSession, task_id: UUID) -> list[ActivityLog]:
    """List activity entries attached to a task in creation order."""
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.task_id == task_id)
        .order_by(ActivityLog.created_at, ActivityLog.sequence)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_activity_for_project(session: AsyncSession, project_id: UUID) -> list[ActivityLog]:
    """List activity entries attached to a project in creation order."""
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.project_id == project_id)
        .order_by(ActivityLog.created_at, ActivityLog.sequence)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_activity(
    session: AsyncSession,
    activity_type: ActivityType | None = None,
) -> int:
    """Count activity entries, optionally of a single type."""
    stmt = select(func.count()).select_from(ActivityLog)
    if activity_type is not None:
        stmt = stmt.where(ActivityLog.activity_type == activity_type)
    result = await session.execute(stmt)
    return result.scalar_one()
