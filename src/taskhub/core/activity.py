"""Activity recorder for Taskhub.

Every mutation performed by the services is described by one ActivityLog
row. The recorder adds that row to the caller's session so it commits or
rolls back together with the change it describes; it never commits on its
own.

Old and new values are stored as compact JSON snapshots of the fields that
changed, built with ``snapshot``.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any
from uuid import UUID

import structlog
from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database.models.activity import ActivityLog, ActivityType
from taskhub.database.models.project import Project
from taskhub.database.models.task import Task
from taskhub.database.queries.activity import (
    list_activity_for_project,
    list_activity_for_task,
)

logger = structlog.get_logger(__name__)

DESCRIPTION_MAX = 500
VALUE_MAX = 1000


def snapshot(entity: Any, fields: Iterable[str]) -> dict[str, Any]:
    """Capture the named attributes of entity as JSON-compatible values."""
    return {name: to_jsonable_python(getattr(entity, name)) for name in fields}


def _serialize(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        text = value
    else:
        text = json.dumps(to_jsonable_python(value), sort_keys=True)
    return text[:VALUE_MAX]


class ActivityRecorder:
    """Writes and reads the append-only activity log.

    Attributes:
        session: The unit of work entries are added to.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(component="ActivityRecorder")

    def record(
        self,
        actor_id: UUID,
        kind: ActivityType,
        description: str,
        task: Task | None = None,
        project: Project | None = None,
        old_value: Any = None,
        new_value: Any = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityLog:
        """Add one activity entry to the current unit of work.

        When a task is given and no project is, the entry is also attached
        to the task's project.

        Args:
            actor_id: The user performing the mutation.
            kind: What happened.
            description: Human-readable summary; truncated to 500 chars.
            task: Related task, if any.
            project: Related project, if any.
            old_value: State before the change (string or JSON-able).
            new_value: State after the change (string or JSON-able).
            metadata: Optional structured extras.

        Returns:
            The pending ActivityLog row.
        """
        project_id = project.id if project is not None else None
        if project_id is None and task is not None:
            project_id = task.project_id

        entry = ActivityLog(
            user_id=actor_id,
            activity_type=kind,
            description=description[:DESCRIPTION_MAX],
            old_value=_serialize(old_value),
            new_value=_serialize(new_value),
            metadata_json=to_jsonable_python(metadata) if metadata else None,
            task_id=task.id if task is not None else None,
            project_id=project_id,
        )
        self.session.add(entry)

        self.logger.debug(
            "activity_recorded",
            activity_type=kind.value,
            actor_id=str(actor_id),
            task_id=str(entry.task_id) if entry.task_id else None,
            project_id=str(project_id) if project_id else None,
        )
        return entry

    async def list_for_task(self, task_id: UUID) -> list[ActivityLog]:
        """Entries attached to a task, in creation order."""
        return await list_activity_for_task(self.session, task_id)

    async def list_for_project(self, project_id: UUID) -> list[ActivityLog]:
        """Entries attached to a project, in creation order."""
        return await list_activity_for_project(self.session, project_id)
