"""FastAPI route definitions for the Taskhub API.

This module contains the route handlers for authentication, projects,
tasks, administrative seeding and health checks.
"""

from __future__ import annotations

from taskhub.web.routes.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
    UserSummary,
    create_auth_router,
)
from taskhub.web.routes.health import HealthStatus, create_health_router
from taskhub.web.routes.projects import (
    MemberAdd,
    MemberResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    create_projects_router,
)
from taskhub.web.routes.seed import StatsResponse, create_seed_router
from taskhub.web.routes.tasks import (
    ActivityResponse,
    CommentCreate,
    CommentResponse,
    TaskAssign,
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
    create_tasks_router,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "UserResponse",
    "UserSummary",
    "create_auth_router",
    # Health
    "HealthStatus",
    "create_health_router",
    # Projects
    "MemberAdd",
    "MemberResponse",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectUpdate",
    "create_projects_router",
    # Seed
    "StatsResponse",
    "create_seed_router",
    # Tasks
    "ActivityResponse",
    "CommentCreate",
    "CommentResponse",
    "TaskAssign",
    "TaskCreate",
    "TaskDetailResponse",
    "TaskResponse",
    "TaskStatusUpdate",
    "TaskUpdate",
    "create_tasks_router",
]
