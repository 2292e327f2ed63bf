"""Comment query functions for Taskhub."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database.models.comment import Comment
from taskhub.database.models.task import Task
from taskhub.database.models.user import User

logger = structlog.get_logger(__name__)


async def create_comment(
    session: AsyncSession,
    task: Task,
    author: User,
    content: str,
) -> Comment:
    """Add a comment to a task and flush it.

    The caller owns the transaction and must commit.
    """
    comment = Comment(
        task_id=task.id,
        author_id=author.id,
        author=author,
        content=content,
    )
    session.add(comment)
    await session.flush()

    logger.info("comment_row_added", comment_id=str(comment.id), task_id=str(task.id))
    return comment


async def list_task_comments(session: AsyncSession, task_id: UUID) -> list[Comment]:
    """List non-deleted comments of a task, oldest first."""
    stmt = (
        select(Comment)
        .where(Comment.task_id == task_id, Comment.active_only())
        .order_by(Comment.created_at, Comment.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_comments(session: AsyncSession) -> int:
    """Count non-deleted comments."""
    stmt = select(func.count()).select_from(Comment).where(Comment.active_only())
    result = await session.execute(stmt)
    return result.scalar_one()
