"""Project endpoints for Taskhub.

This module provides REST API endpoints for managing Project resources:
- List the caller's visible projects, paginated
- Get a single project with its members and task counters
- Create, update and delete projects
- Add and remove project members

Failures raised by ProjectService are rendered into the response envelope
by the application's exception handler.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi import status as http_status
from pydantic import BaseModel, Field

from taskhub.core.lifecycle import ProjectService, ProjectSummary
from taskhub.database.models.project import ProjectMember, ProjectStatus
from taskhub.database.models.user import User, UserRole
from taskhub.logging import get_logger
from taskhub.web.dependencies import get_current_user, get_project_service
from taskhub.web.envelope import ApiResponse, UtcDatetime, ok
from taskhub.web.routes.auth import UserSummary

logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a project."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    start_date: datetime | None = None
    end_date: datetime | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class ProjectUpdate(BaseModel):
    """Request schema for updating a project.

    All fields are optional; only provided fields are changed.
    ``expected_version`` guards against overwriting a concurrent change.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    status: ProjectStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    expected_version: int | None = None


class MemberAdd(BaseModel):
    """Request schema for adding a member."""

    user_id: UUID
    role: UserRole = UserRole.member


class MemberResponse(BaseModel):
    """Response schema for a project membership."""

    id: UUID
    user_id: UUID
    user: UserSummary
    role: UserRole
    joined_at: UtcDatetime

    model_config = {"from_attributes": True}


class ProjectResponse(BaseModel):
    """Response schema for a project with its derived counters."""

    id: UUID
    name: str
    description: str
    status: ProjectStatus
    start_date: UtcDatetime | None
    end_date: UtcDatetime | None
    color: str | None
    owner_id: UUID
    owner: UserSummary
    version: int
    created_at: UtcDatetime
    updated_at: UtcDatetime
    task_count: int
    completed_task_count: int
    completion_percentage: float
    member_count: int
    members: list[MemberResponse]

    @classmethod
    def from_summary(cls, summary: ProjectSummary) -> ProjectResponse:
        project = summary.project
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            status=project.status,
            start_date=project.start_date,
            end_date=project.end_date,
            color=project.color,
            owner_id=project.owner_id,
            owner=UserSummary.model_validate(project.owner),
            version=project.version,
            created_at=project.created_at,
            updated_at=project.updated_at,
            task_count=summary.task_count,
            completed_task_count=summary.completed_task_count,
            completion_percentage=summary.completion_percentage,
            member_count=summary.member_count,
            members=[MemberResponse.model_validate(m) for m in project.active_members],
        )


def create_projects_router() -> APIRouter:
    """Create the projects router.

    Routes:
        GET /projects - List visible projects
        GET /projects/{project_id} - Get one project
        POST /projects - Create a project
        PATCH /projects/{project_id} - Update a project
        DELETE /projects/{project_id} - Delete a project (owner only)
        POST /projects/{project_id}/members - Add a member
        DELETE /projects/{project_id}/members/{user_id} - Remove a member
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.get("", response_model=ApiResponse[list[ProjectResponse]])
    async def list_projects(
        page: int = Query(default=1),
        page_size: int | None = Query(default=None),
        status: ProjectStatus | None = Query(default=None),
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        result = await service.list_projects(user, page=page, page_size=page_size, status=status)
        items = [ProjectResponse.from_summary(await service.summarize(p)) for p in result.items]
        logger.info("projects_listed", count=len(items), total=result.total_items)
        return ok(items, "projects.retrieved.success", page=result)

    @router.get("/{project_id}", response_model=ApiResponse[ProjectResponse])
    async def get_project(
        project_id: UUID,
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        project = await service.get_project(user, project_id)
        summary = await service.summarize(project)
        return ok(ProjectResponse.from_summary(summary), "project.retrieved.success")

    @router.post(
        "",
        response_model=ApiResponse[ProjectResponse],
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_project(
        body: ProjectCreate,
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        project = await service.create_project(
            user,
            name=body.name,
            description=body.description,
            start_date=body.start_date,
            end_date=body.end_date,
            color=body.color,
        )
        summary = await service.summarize(project)
        return ok(ProjectResponse.from_summary(summary), "project.created.success")

    @router.patch("/{project_id}", response_model=ApiResponse[ProjectResponse])
    async def update_project(
        project_id: UUID,
        body: ProjectUpdate,
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        fields = body.model_dump(exclude_unset=True, exclude={"expected_version"})
        project = await service.update_project(
            user,
            project_id,
            expected_version=body.expected_version,
            **fields,
        )
        summary = await service.summarize(project)
        return ok(ProjectResponse.from_summary(summary), "project.updated.success")

    @router.delete("/{project_id}", response_model=ApiResponse[None])
    async def delete_project(
        project_id: UUID,
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        await service.delete_project(user, project_id)
        return ok(None, "project.deleted.success")

    @router.post("/{project_id}/members", response_model=ApiResponse[MemberResponse])
    async def add_member(
        project_id: UUID,
        body: MemberAdd,
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        member: ProjectMember | None = await service.add_member(
            user, project_id, body.user_id, role=body.role
        )
        if member is None:
            return ok(None, "project.member.owner")
        return ok(MemberResponse.model_validate(member), "project.member.added")

    @router.delete("/{project_id}/members/{user_id}", response_model=ApiResponse[dict[str, bool]])
    async def remove_member(
        project_id: UUID,
        user_id: UUID,
        user: User = Depends(get_current_user),  # noqa: B008
        service: ProjectService = Depends(get_project_service),  # noqa: B008
    ) -> Any:
        removed = await service.remove_member(user, project_id, user_id)
        message = "project.member.removed" if removed else "project.member.not.found"
        return ok({"removed": removed}, message)

    return router
