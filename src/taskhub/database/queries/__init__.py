"""Database query functions for Taskhub.

This module provides async query functions for all database entities:
- User creation and lookup
- Project reads, visibility and membership rows
- Task reads, visibility-filtered listing and counters
- Comment creation and listing
- Activity log reads

Query functions add and flush but never commit; the services own the
transaction boundary.
"""

from taskhub.database.queries.activity import (
    count_activity,
    list_activity_for_project,
    list_activity_for_task,
)
from taskhub.database.queries.comment import (
    count_comments,
    create_comment,
    list_task_comments,
)
from taskhub.database.queries.project import (
    add_membership,
    count_memberships,
    count_projects,
    create_project,
    get_project,
    list_visible_projects,
    visible_to,
)
from taskhub.database.queries.task import (
    count_project_tasks,
    count_tasks,
    count_tasks_by_status,
    create_task,
    get_task,
    list_project_tasks,
    list_visible_tasks,
)
from taskhub.database.queries.user import (
    count_users,
    create_user,
    email_exists,
    get_user,
    get_user_by_email,
    list_users,
    normalize_email,
)

__all__ = [
    # User queries
    "create_user",
    "get_user",
    "get_user_by_email",
    "email_exists",
    "list_users",
    "count_users",
    "normalize_email",
    # Project queries
    "create_project",
    "get_project",
    "list_visible_projects",
    "count_projects",
    "visible_to",
    # Membership queries
    "add_membership",
    "count_memberships",
    # Task queries
    "create_task",
    "get_task",
    "list_visible_tasks",
    "list_project_tasks",
    "count_project_tasks",
    "count_tasks",
    "count_tasks_by_status",
    # Comment queries
    "create_comment",
    "list_task_comments",
    "count_comments",
    # Activity queries
    "list_activity_for_task",
    "list_activity_for_project",
    "count_activity",
]
