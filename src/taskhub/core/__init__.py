"""Core rules for Taskhub.

- policy: who may read or write which entity
- lifecycle: ProjectService and TaskService write paths
- activity: the append-only activity recorder
- pagination: deterministic paging and task filters
"""

from taskhub.core.activity import ActivityRecorder
from taskhub.core.lifecycle import (
    ALLOWED_TRANSITIONS,
    ProjectService,
    ProjectSummary,
    TaskDetail,
    TaskService,
    apply_task_status,
)
from taskhub.core.pagination import Page, TaskFilter, paginate

__all__ = [
    "ActivityRecorder",
    "ALLOWED_TRANSITIONS",
    "ProjectService",
    "ProjectSummary",
    "TaskDetail",
    "TaskService",
    "apply_task_status",
    "Page",
    "TaskFilter",
    "paginate",
]
