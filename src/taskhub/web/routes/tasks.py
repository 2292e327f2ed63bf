"""Task endpoints for Taskhub.

Provides FastAPI routes for listing, reading, creating, updating and
deleting tasks, changing their status and assignee, commenting on them and
reading their activity history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi import status as http_status
from pydantic import BaseModel, Field

from taskhub.core.lifecycle import TaskService
from taskhub.core.pagination import TaskFilter
from taskhub.database.models.activity import ActivityType
from taskhub.database.models.task import Task, TaskPriority, TaskStatus
from taskhub.database.models.user import User
from taskhub.logging import get_logger
from taskhub.web.dependencies import get_current_user, get_task_service
from taskhub.web.envelope import ApiResponse, UtcDatetime, ok
from taskhub.web.routes.auth import UserSummary

logger = get_logger(__name__)


# --- Pydantic Schemas ---


class TaskCreate(BaseModel):
    """Request schema for creating a task."""

    project_id: UUID
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(default="", max_length=2000)
    priority: TaskPriority = TaskPriority.medium
    due_date: datetime | None = None
    estimated_hours: int = Field(default=0, ge=0)
    tags: str | None = Field(default=None, max_length=500)
    assigned_to_id: UUID | None = None


class TaskUpdate(BaseModel):
    """Request schema for updating a task; only provided fields change."""

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None, max_length=2000)
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    estimated_hours: int | None = Field(default=None, ge=0)
    actual_hours: int | None = Field(default=None, ge=0)
    tags: str | None = Field(default=None, max_length=500)
    expected_version: int | None = None


class TaskStatusUpdate(BaseModel):
    """Request schema for changing a task's status."""

    status: TaskStatus
    expected_version: int | None = None


class TaskAssign(BaseModel):
    """Request schema for setting or clearing a task's assignee."""

    user_id: UUID | None
    expected_version: int | None = None


class CommentCreate(BaseModel):
    """Request schema for adding a comment."""

    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    """Response schema for a comment."""

    id: UUID
    task_id: UUID
    author_id: UUID
    author: UserSummary
    content: str
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    """Response schema for a task."""

    id: UUID
    project_id: UUID
    project_name: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    due_date: UtcDatetime | None
    completed_at: UtcDatetime | None
    estimated_hours: int
    actual_hours: int
    tags: str | None
    tag_list: list[str]
    is_overdue: bool
    created_by_id: UUID
    created_by: UserSummary
    assigned_to_id: UUID | None
    assigned_to: UserSummary | None
    version: int
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"from_attributes": True}


class TaskDetailResponse(TaskResponse):
    """Response schema for a task with its comments."""

    comments: list[CommentResponse]


class ActivityResponse(BaseModel):
    """Response schema for an activity log entry."""

    id: UUID
    user_id: UUID
    activity_type: ActivityType
    description: str
    old_value: str | None
    new_value: str | None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="metadata_json")
    task_id: UUID | None
    project_id: UUID | None
    created_at: UtcDatetime

    model_config = {"from_attributes": True}


def _task(task: Task) -> TaskResponse:
    return TaskResponse.model_validate(task)


# --- Route Handlers ---


def create_tasks_router() -> APIRouter:
    """Create the tasks router.

    Routes:
        GET /tasks - List visible tasks with filters
        GET /tasks/{task_id} - Get one task with comments
        POST /tasks - Create a task
        PATCH /tasks/{task_id} - Update task fields
        PATCH /tasks/{task_id}/status - Change status
        PATCH /tasks/{task_id}/assignee - Change assignee
        DELETE /tasks/{task_id} - Delete a task
        POST /tasks/{task_id}/comments - Add a comment
        GET /tasks/{task_id}/activity - Activity history
    """
    router = APIRouter(prefix="/tasks", tags=["tasks"])

    @router.get("", response_model=ApiResponse[list[TaskResponse]])
    async def list_tasks(
        project_id: UUID | None = Query(default=None),
        status: TaskStatus | None = Query(default=None),
        assigned_to_id: UUID | None = Query(default=None),
        page: int = Query(default=1),
        page_size: int | None = Query(default=None),
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        filters = TaskFilter(project_id=project_id, status=status, assigned_to_id=assigned_to_id)
        result = await service.list_tasks(user, filters, page=page, page_size=page_size)
        logger.info(
            "tasks_listed",
            count=len(result.items),
            total=result.total_items,
            project_id=str(project_id) if project_id else None,
        )
        return ok([_task(t) for t in result.items], "tasks.retrieved.success", page=result)

    @router.get("/{task_id}", response_model=ApiResponse[TaskDetailResponse])
    async def get_task(
        task_id: UUID,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        detail = await service.get_task(user, task_id)
        body = TaskDetailResponse(
            **_task(detail.task).model_dump(),
            comments=[CommentResponse.model_validate(c) for c in detail.comments],
        )
        return ok(body, "task.retrieved.success")

    @router.post(
        "",
        response_model=ApiResponse[TaskResponse],
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_task(
        body: TaskCreate,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        task = await service.create_task(
            user,
            body.project_id,
            title=body.title,
            description=body.description,
            priority=body.priority,
            due_date=body.due_date,
            estimated_hours=body.estimated_hours,
            tags=body.tags,
            assigned_to_id=body.assigned_to_id,
        )
        logger.info("task_created_via_api", task_id=str(task.id))
        return ok(_task(task), "task.created.success")

    @router.patch("/{task_id}", response_model=ApiResponse[TaskResponse])
    async def update_task(
        task_id: UUID,
        body: TaskUpdate,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        fields = body.model_dump(exclude_unset=True, exclude={"expected_version"})
        task = await service.update_task(
            user,
            task_id,
            expected_version=body.expected_version,
            **fields,
        )
        return ok(_task(task), "task.updated.success")

    @router.patch("/{task_id}/status", response_model=ApiResponse[TaskResponse])
    async def update_task_status(
        task_id: UUID,
        body: TaskStatusUpdate,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        task = await service.update_task_status(
            user,
            task_id,
            body.status,
            expected_version=body.expected_version,
        )
        return ok(_task(task), "task.status.updated.success")

    @router.patch("/{task_id}/assignee", response_model=ApiResponse[TaskResponse])
    async def assign_task(
        task_id: UUID,
        body: TaskAssign,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        task = await service.assign_task(
            user,
            task_id,
            body.user_id,
            expected_version=body.expected_version,
        )
        return ok(_task(task), "task.assigned.success")

    @router.delete("/{task_id}", response_model=ApiResponse[None])
    async def delete_task(
        task_id: UUID,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        await service.delete_task(user, task_id)
        return ok(None, "task.deleted.success")

    @router.post(
        "/{task_id}/comments",
        response_model=ApiResponse[CommentResponse],
        status_code=http_status.HTTP_201_CREATED,
    )
    async def add_comment(
        task_id: UUID,
        body: CommentCreate,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        comment = await service.add_comment(user, task_id, body.content)
        return ok(CommentResponse.model_validate(comment), "comment.created.success")

    @router.get("/{task_id}/activity", response_model=ApiResponse[list[ActivityResponse]])
    async def get_task_activity(
        task_id: UUID,
        user: User = Depends(get_current_user),  # noqa: B008
        service: TaskService = Depends(get_task_service),  # noqa: B008
    ) -> Any:
        entries = await service.get_task_activity(user, task_id)
        return ok(
            [ActivityResponse.model_validate(e) for e in entries],
            "task.activity.retrieved.success",
        )

    return router
