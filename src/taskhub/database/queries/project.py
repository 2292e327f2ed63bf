"""Project and membership query functions for Taskhub.

Provides async functions for creating and reading Project records and
their ProjectMember rows. Every read applies the ``active_only`` predicate
of each model it touches; visibility to a given user is expressed as a SQL
predicate (owner or active member) so list reads never load projects the
caller cannot see.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from taskhub.database.models.project import Project, ProjectMember, ProjectStatus
from taskhub.database.models.user import User, UserRole

logger = structlog.get_logger(__name__)


def visible_to(user_id: UUID) -> ColumnElement[bool]:
    """SQL predicate: the project is owned by user_id or has them as an active member."""
    membership = exists().where(
        ProjectMember.project_id == Project.id,
        ProjectMember.user_id == user_id,
        ProjectMember.active_only(),
    )
    return or_(Project.owner_id == user_id, membership)


async def create_project(
    session: AsyncSession,
    owner: User,
    name: str,
    description: str = "",
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    color: str | None = None,
    status: ProjectStatus = ProjectStatus.planning,
) -> Project:
    """Add a new project owned by owner and flush it.

    The caller owns the transaction and must commit.

    Args:
        session: Active async database session.
        owner: Owning user; becomes an implicit member.
        name: Project name.
        description: Free-text description.
        start_date: Optional planned start.
        end_date: Optional planned end.
        color: Optional ``#RRGGBB`` display color.
        status: Initial status.

    Returns:
        The pending Project instance with its id assigned.
    """
    project = Project(
        name=name,
        description=description,
        start_date=start_date,
        end_date=end_date,
        color=color,
        status=status,
        owner_id=owner.id,
        owner=owner,
        members=[],
    )
    session.add(project)
    await session.flush()

    logger.info("project_row_added", project_id=str(project.id), owner_id=str(owner.id))
    return project


async def get_project(session: AsyncSession, project_id: UUID) -> Project | None:
    """Retrieve a non-deleted project by ID, regardless of visibility."""
    stmt = select(Project).where(Project.id == project_id, Project.active_only())
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_visible_projects(
    session: AsyncSession,
    user_id: UUID,
    status_filter: ProjectStatus | None = None,
) -> list[Project]:
    """List non-deleted projects visible to user_id.

    Args:
        session: Active async database session.
        user_id: The reading user.
        status_filter: Optional status to filter by.

    Returns:
        Matching projects, newest first.
    """
    stmt = select(Project).where(Project.active_only(), visible_to(user_id))

    if status_filter is not None:
        stmt = stmt.where(Project.status == status_filter)

    stmt = stmt.order_by(Project.created_at.desc(), Project.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_projects(session: AsyncSession) -> int:
    """Count non-deleted projects."""
    stmt = select(func.count()).select_from(Project).where(Project.active_only())
    result = await session.execute(stmt)
    return result.scalar_one()


def add_membership(project: Project, user: User, role: UserRole = UserRole.member) -> ProjectMember:
    """Append a new membership row to project.members.

    The row is persisted with the project on the next flush; the caller is
    responsible for checking that no active row already exists.
    """
    member = ProjectMember(
        project_id=project.id,
        user_id=user.id,
        user=user,
        role=role,
    )
    project.members.append(member)
    return member


async def count_memberships(session: AsyncSession) -> int:
    """Count non-deleted membership rows across all projects."""
    stmt = select(func.count()).select_from(ProjectMember).where(ProjectMember.active_only())
    result = await session.execute(stmt)
    return result.scalar_one()
