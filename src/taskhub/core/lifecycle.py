"""Entity lifecycle rules for Taskhub.

This module implements the write paths for projects and tasks: it applies
caller intents to loaded entities, maintains derived fields, checks the
access policy, records one activity entry per mutation and owns the
transaction boundary.

Task status is a five-state machine in which every transition is allowed;
``done`` is the only state with a side effect, keeping ``completed_at``
non-null exactly while the task is done.

Failures surface as TaskhubError subclasses. Reads of entities the caller
cannot see raise NotFound; writes against them raise AccessDenied.
Optimistic concurrency failures, whether detected from an explicit
``expected_version`` or from SQLAlchemy's version counter at flush time,
raise ConcurrencyConflict.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from taskhub.config import TaskhubConfig
from taskhub.core import validation
from taskhub.core.activity import ActivityRecorder, snapshot
from taskhub.core.pagination import Page, TaskFilter, paginate
from taskhub.core.policy import (
    can_access_project,
    can_access_task,
    can_delete_project,
    can_mutate_task_status,
)
from taskhub.database import queries
from taskhub.database.models.activity import ActivityLog, ActivityType
from taskhub.database.models.base import ensure_utc, utcnow
from taskhub.database.models.comment import Comment
from taskhub.database.models.project import Project, ProjectMember, ProjectStatus
from taskhub.database.models.task import Task, TaskPriority, TaskStatus
from taskhub.database.models.user import User, UserRole
from taskhub.errors import (
    AccessDenied,
    ConcurrencyConflict,
    NotFound,
    StorageUnavailable,
    TaskhubError,
    ValidationFailed,
)

logger = structlog.get_logger(__name__)


# Every state may move to every state, including itself.
ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    status: frozenset(TaskStatus) for status in TaskStatus
}

PROJECT_FIELDS = ("name", "description", "status", "start_date", "end_date", "color")
TASK_FIELDS = (
    "title",
    "description",
    "priority",
    "due_date",
    "estimated_hours",
    "actual_hours",
    "tags",
)


def is_allowed_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """Check a status transition against ALLOWED_TRANSITIONS."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def apply_task_status(
    task: Task,
    new_status: TaskStatus,
    now: datetime | None = None,
) -> TaskStatus:
    """Move a task to new_status and maintain completed_at.

    Entering ``done`` stamps ``completed_at`` unless it is already set;
    any other status clears it. ``updated_at`` is bumped even when the
    status does not change.

    Args:
        task: The task to mutate.
        new_status: Target status.
        now: Timestamp to use; defaults to the current UTC time.

    Returns:
        The status the task had before the call.

    Raises:
        ValidationFailed: If the transition is not allowed.
    """
    old_status = task.status
    if old_status is not None and not is_allowed_transition(old_status, new_status):
        raise ValidationFailed(
            f"Invalid transition from {old_status.value} to {new_status.value}"
        )

    now = now or utcnow()
    task.status = new_status
    if new_status == TaskStatus.done:
        if task.completed_at is None:
            task.completed_at = now
    else:
        task.completed_at = None
    task.touch(now)
    return old_status


def _differs(current: Any, new: Any) -> bool:
    if isinstance(current, datetime) or isinstance(new, datetime):
        return ensure_utc(current) != ensure_utc(new)
    return current != new


def _coerce_enum(fields: dict[str, Any], name: str, enum_cls: type[Any]) -> None:
    if name in fields and fields[name] is not None:
        try:
            fields[name] = enum_cls(fields[name])
        except ValueError as exc:
            raise ValidationFailed(
                f"Invalid {name}",
                errors=[f"'{fields[name]}' is not a valid {name}"],
            ) from exc


def _check_version(entity_name: str, entity: Any, expected_version: int | None) -> None:
    if expected_version is not None and entity.version != expected_version:
        raise ConcurrencyConflict(
            entity_name,
            expected_version=expected_version,
            actual_version=entity.version,
        )


_FLUSHED = "taskhub.flushed"


@event.listens_for(Session, "after_flush")
def _note_flush(session: Session, flush_context: Any) -> None:
    session.info[_FLUSHED] = True


@asynccontextmanager
async def unit_of_work(
    session: AsyncSession,
    entity: str,
    integrity_error: TaskhubError | None = None,
) -> AsyncIterator[None]:
    """Commit the session on success and translate storage failures.

    A TaskhubError raised before anything was written closes the read
    transaction without expiring loaded instances; any other exception
    rolls the session back. SQLAlchemy failures are mapped onto the Taskhub taxonomy:

    - StaleDataError (version counter mismatch) -> ConcurrencyConflict
    - IntegrityError -> integrity_error if given, else ConcurrencyConflict
    - OperationalError / InterfaceError -> StorageUnavailable

    Args:
        session: The session to commit.
        entity: Entity name used in conflict error codes.
        integrity_error: Error to raise instead of ConcurrencyConflict when
            a constraint is violated.
    """
    session.info.pop(_FLUSHED, None)
    try:
        yield
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("concurrency_conflict", entity=entity, error=str(exc))
        raise ConcurrencyConflict(entity) from exc
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("integrity_error", entity=entity, error=str(exc.orig))
        if integrity_error is not None:
            raise integrity_error from exc
        raise ConcurrencyConflict(entity) from exc
    except (OperationalError, InterfaceError) as exc:
        await session.rollback()
        logger.error("storage_unavailable", entity=entity, error=str(exc), exc_info=True)
        raise StorageUnavailable("The data store is unavailable") from exc
    except TaskhubError:
        await _end_rejected(session)
        raise
    except Exception:
        await session.rollback()
        raise


async def _end_rejected(session: AsyncSession) -> None:
    # Rollback expires every loaded instance; a rejection raised before any
    # change was staged or flushed only needs its read transaction closed.
    flushed = session.info.pop(_FLUSHED, False)
    if flushed or session.new or session.dirty or session.deleted:
        await session.rollback()
    else:
        await session.commit()


@dataclass(frozen=True)
class ProjectSummary:
    """A project with its derived counters."""

    project: Project
    task_count: int
    completed_task_count: int
    member_count: int

    @property
    def completion_percentage(self) -> float:
        if self.task_count == 0:
            return 0.0
        return round(self.completed_task_count * 100.0 / self.task_count, 2)


@dataclass(frozen=True)
class TaskDetail:
    """A task together with its non-deleted comments."""

    task: Task
    comments: list[Comment]


class _Service:
    """Shared plumbing for the lifecycle services."""

    def __init__(self, session: AsyncSession, settings: TaskhubConfig | None = None) -> None:
        self.session = session
        self.settings = settings or TaskhubConfig()
        self.activity = ActivityRecorder(session)
        self.logger = logger.bind(component=type(self).__name__)

    def _page_size(self, page_size: int | None) -> int:
        if page_size is None:
            return self.settings.pagination.default_page_size
        return page_size

    def _paginate(self, items: list[Any], page: int, page_size: int | None) -> Page[Any]:
        return paginate(
            items,
            page,
            self._page_size(page_size),
            max_page_size=self.settings.pagination.max_page_size,
        )


class ProjectService(_Service):
    """Create, read, update and delete projects and manage their members."""

    async def create_project(
        self,
        owner: User,
        name: str,
        description: str = "",
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        color: str | None = None,
    ) -> Project:
        """Create a project in ``planning`` status owned by owner.

        Raises:
            ValidationFailed: If any field is invalid.
        """
        errors: list[str] = []
        validation.check_text(errors, "Project name", name, validation.PROJECT_NAME_MAX, required=True)
        validation.check_text(
            errors, "Project description", description, validation.PROJECT_DESCRIPTION_MAX
        )
        validation.check_color(errors, color)
        validation.check_date_range(errors, start_date, end_date)
        validation.raise_if_errors(errors)

        async with unit_of_work(self.session, "project"):
            project = await queries.create_project(
                self.session,
                owner,
                name=name.strip(),
                description=description or "",
                start_date=start_date,
                end_date=end_date,
                color=color,
            )
            self.activity.record(
                owner.id,
                ActivityType.project_created,
                f"Project '{project.name}' created",
                project=project,
                new_value=snapshot(project, PROJECT_FIELDS),
            )

        self.logger.info("project_created", project_id=str(project.id), owner_id=str(owner.id))
        return project

    async def get_project(self, actor: User, project_id: UUID) -> Project:
        """Return a project the actor can see.

        Raises:
            NotFound: If the project is missing, deleted or not visible.
        """
        project = await queries.get_project(self.session, project_id)
        if not can_access_project(actor.id, project):
            raise NotFound("project")
        return project

    async def summarize(self, project: Project) -> ProjectSummary:
        """Compute the derived counters for a project."""
        total, completed = await queries.count_project_tasks(self.session, project.id)
        return ProjectSummary(
            project=project,
            task_count=total,
            completed_task_count=completed,
            member_count=len(project.active_members),
        )

    async def list_projects(
        self,
        actor: User,
        page: int = 1,
        page_size: int | None = None,
        status: ProjectStatus | None = None,
    ) -> Page[Project]:
        """Page through the projects visible to actor, newest first."""
        projects = await queries.list_visible_projects(self.session, actor.id, status)
        return self._paginate(projects, page, page_size)

    async def _load_for_write(self, actor: User, project_id: UUID) -> Project:
        project = await queries.get_project(self.session, project_id)
        if not can_access_project(actor.id, project):
            raise AccessDenied("project")
        return project

    async def update_project(
        self,
        actor: User,
        project_id: UUID,
        expected_version: int | None = None,
        **fields: Any,
    ) -> Project:
        """Apply field changes to a project.

        Only name, description, status, start_date, end_date and color may
        change. Fields whose value is unchanged are ignored; if nothing
        changes, nothing is written.

        Raises:
            AccessDenied: If the actor cannot access the project.
            ConcurrencyConflict: If expected_version is stale.
            ValidationFailed: If a field is unknown or invalid.
        """
        unknown = set(fields) - set(PROJECT_FIELDS)
        if unknown:
            raise ValidationFailed(
                "Unknown project fields",
                errors=[f"Field '{name}' cannot be updated" for name in sorted(unknown)],
            )
        _coerce_enum(fields, "status", ProjectStatus)

        async with unit_of_work(self.session, "project"):
            project = await self._load_for_write(actor, project_id)
            _check_version("project", project, expected_version)

            changed = {
                name: value
                for name, value in fields.items()
                if _differs(getattr(project, name), value)
            }
            if not changed:
                return project

            errors: list[str] = []
            validation.check_text(
                errors,
                "Project name",
                changed.get("name", project.name),
                validation.PROJECT_NAME_MAX,
                required=True,
            )
            validation.check_text(
                errors,
                "Project description",
                changed.get("description", project.description),
                validation.PROJECT_DESCRIPTION_MAX,
            )
            validation.check_color(errors, changed.get("color", project.color))
            validation.check_date_range(
                errors,
                changed.get("start_date", project.start_date),
                changed.get("end_date", project.end_date),
            )
            validation.raise_if_errors(errors)

            old = snapshot(project, changed)
            for name, value in changed.items():
                setattr(project, name, value)
            project.touch()

            self.activity.record(
                actor.id,
                ActivityType.project_updated,
                f"Project '{project.name}' updated",
                project=project,
                old_value=old,
                new_value=snapshot(project, changed),
            )

        self.logger.info(
            "project_updated",
            project_id=str(project_id),
            fields_updated=sorted(changed),
        )
        return project

    async def add_member(
        self,
        actor: User,
        project_id: UUID,
        user_id: UUID,
        role: UserRole = UserRole.member,
    ) -> ProjectMember | None:
        """Add user_id to a project.

        Idempotent: if the user already holds an active membership row the
        existing row is returned, and if the user owns the project (an
        implicit member) None is returned. Activity is recorded only when a
        row is added.

        Raises:
            AccessDenied: If the actor cannot access the project.
            NotFound: If the user does not exist.
        """
        async with unit_of_work(self.session, "project_member"):
            project = await self._load_for_write(actor, project_id)

            if user_id == project.owner_id:
                return None
            existing = project.find_active_member(user_id)
            if existing is not None:
                return existing

            user = await queries.get_user(self.session, user_id)
            if user is None:
                raise NotFound("user")

            member = queries.add_membership(project, user, role)
            self.activity.record(
                actor.id,
                ActivityType.user_joined_project,
                f"{user.full_name} joined project '{project.name}'",
                project=project,
                metadata={"user_id": user.id, "role": role.value},
            )

        self.logger.info(
            "project_member_added",
            project_id=str(project_id),
            user_id=str(user_id),
            role=role.value,
        )
        return member

    async def remove_member(self, actor: User, project_id: UUID, user_id: UUID) -> bool:
        """Soft-delete the active membership of user_id.

        Returns:
            True if a row was removed, False if there was none.

        Raises:
            AccessDenied: If the actor cannot access the project.
        """
        async with unit_of_work(self.session, "project_member"):
            project = await self._load_for_write(actor, project_id)
            member = project.find_active_member(user_id)
            if member is None:
                return False

            member.soft_delete()
            self.activity.record(
                actor.id,
                ActivityType.user_left_project,
                f"{member.user.full_name} left project '{project.name}'",
                project=project,
                metadata={"user_id": user_id},
            )

        self.logger.info("project_member_removed", project_id=str(project_id), user_id=str(user_id))
        return True

    async def delete_project(self, actor: User, project_id: UUID) -> None:
        """Soft-delete a project with its tasks, their comments and its members.

        Raises:
            AccessDenied: If the actor is not the project owner.
        """
        async with unit_of_work(self.session, "project"):
            project = await queries.get_project(self.session, project_id)
            if not can_delete_project(actor.id, project):
                raise AccessDenied("project")

            now = utcnow()
            tasks = await queries.list_project_tasks(self.session, project.id)
            for task in tasks:
                for comment in await queries.list_task_comments(self.session, task.id):
                    comment.soft_delete(now)
                task.soft_delete(now)
            for member in project.active_members:
                member.soft_delete(now)
            project.soft_delete(now)

        self.logger.info(
            "project_deleted",
            project_id=str(project_id),
            cascaded_tasks=len(tasks),
        )


class TaskService(_Service):
    """Create, read, update and delete tasks, their status, assignee and comments."""

    async def _assignee(self, project: Project, user_id: UUID) -> User:
        user = await queries.get_user(self.session, user_id)
        if user is None:
            raise NotFound("user")
        if self.settings.policy.require_assignee_membership and not can_access_project(
            user.id, project
        ):
            raise ValidationFailed(
                "Assignee is not a member of the project",
                errors=[f"User {user.id} is not a member of project {project.id}"],
            )
        return user

    async def _load_for_write(
        self,
        actor: User,
        task_id: UUID,
        check: Callable[[UUID | None, Task | None], bool] = can_access_task,
    ) -> Task:
        task = await queries.get_task(self.session, task_id)
        if not check(actor.id, task):
            raise AccessDenied("task")
        return task

    async def create_task(
        self,
        creator: User,
        project_id: UUID,
        title: str,
        description: str = "",
        priority: TaskPriority = TaskPriority.medium,
        due_date: datetime | None = None,
        estimated_hours: int = 0,
        tags: str | None = None,
        assigned_to_id: UUID | None = None,
    ) -> Task:
        """Create a ``todo`` task in a project the creator can access.

        Raises:
            AccessDenied: If the creator cannot access the project; nothing
                is persisted.
            ValidationFailed: If any field is invalid.
        """
        async with unit_of_work(self.session, "task"):
            project = await queries.get_project(self.session, project_id)
            if not can_access_project(creator.id, project):
                raise AccessDenied("project")

            errors: list[str] = []
            validation.check_text(errors, "Task title", title, validation.TASK_TITLE_MAX, required=True)
            validation.check_text(
                errors, "Task description", description, validation.TASK_DESCRIPTION_MAX
            )
            validation.check_text(errors, "Tags", tags, validation.TASK_TAGS_MAX)
            validation.check_non_negative(errors, "Estimated hours", estimated_hours)
            validation.check_future(errors, "Due date", due_date)
            validation.raise_if_errors(errors)

            assignee = None
            if assigned_to_id is not None:
                assignee = await self._assignee(project, assigned_to_id)

            task = await queries.create_task(
                self.session,
                project,
                creator,
                title=title.strip(),
                description=description or "",
                priority=priority,
                due_date=due_date,
                estimated_hours=estimated_hours,
                tags=tags,
                assigned_to=assignee,
            )
            self.activity.record(
                creator.id,
                ActivityType.task_created,
                f"Task '{task.title}' created",
                task=task,
                project=project,
                new_value=snapshot(task, TASK_FIELDS),
                metadata={"assigned_to_id": assigned_to_id} if assigned_to_id else None,
            )

        self.logger.info(
            "task_created",
            task_id=str(task.id),
            project_id=str(project_id),
            created_by_id=str(creator.id),
        )
        return task

    async def get_task(self, actor: User, task_id: UUID) -> TaskDetail:
        """Return a visible task with its non-deleted comments.

        Raises:
            NotFound: If the task is missing, deleted or not visible.
        """
        task = await queries.get_task(self.session, task_id)
        if not can_access_task(actor.id, task):
            raise NotFound("task")
        comments = await queries.list_task_comments(self.session, task.id)
        return TaskDetail(task=task, comments=comments)

    async def list_tasks(
        self,
        actor: User,
        filters: TaskFilter | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page[Task]:
        """Page through the visible tasks matching filters, newest first."""
        filters = filters or TaskFilter()
        tasks = await queries.list_visible_tasks(self.session, actor.id, filters.project_id)
        return self._paginate(filters.apply(tasks), page, page_size)

    async def update_task(
        self,
        actor: User,
        task_id: UUID,
        expected_version: int | None = None,
        **fields: Any,
    ) -> Task:
        """Apply field changes to a task.

        Only title, description, priority, due_date, estimated_hours,
        actual_hours and tags may change. If nothing changes, nothing is
        written.

        Raises:
            AccessDenied: If the actor cannot access the task.
            ConcurrencyConflict: If expected_version is stale.
            ValidationFailed: If a field is unknown or invalid.
        """
        unknown = set(fields) - set(TASK_FIELDS)
        if unknown:
            raise ValidationFailed(
                "Unknown task fields",
                errors=[f"Field '{name}' cannot be updated" for name in sorted(unknown)],
            )
        _coerce_enum(fields, "priority", TaskPriority)

        async with unit_of_work(self.session, "task"):
            task = await self._load_for_write(actor, task_id)
            _check_version("task", task, expected_version)

            changed = {
                name: value
                for name, value in fields.items()
                if _differs(getattr(task, name), value)
            }
            if not changed:
                return task

            errors: list[str] = []
            validation.check_text(
                errors,
                "Task title",
                changed.get("title", task.title),
                validation.TASK_TITLE_MAX,
                required=True,
            )
            validation.check_text(
                errors,
                "Task description",
                changed.get("description", task.description),
                validation.TASK_DESCRIPTION_MAX,
            )
            validation.check_text(errors, "Tags", changed.get("tags"), validation.TASK_TAGS_MAX)
            validation.check_non_negative(errors, "Estimated hours", changed.get("estimated_hours"))
            validation.check_non_negative(errors, "Actual hours", changed.get("actual_hours"))
            if "due_date" in changed:
                validation.check_future(errors, "Due date", changed["due_date"])
            validation.raise_if_errors(errors)

            old = snapshot(task, changed)
            for name, value in changed.items():
                setattr(task, name, value)
            task.touch()

            self.activity.record(
                actor.id,
                ActivityType.task_updated,
                f"Task '{task.title}' updated",
                task=task,
                old_value=old,
                new_value=snapshot(task, changed),
            )

        self.logger.info("task_updated", task_id=str(task_id), fields_updated=sorted(changed))
        return task

    async def update_task_status(
        self,
        actor: User,
        task_id: UUID,
        new_status: TaskStatus,
        expected_version: int | None = None,
    ) -> Task:
        """Move a task to new_status.

        Allowed for anyone who can read the task's project and for the
        task's current assignee. An activity entry is recorded even when the
        status does not change, unless ``policy.log_unchanged_status`` is
        disabled.

        Raises:
            AccessDenied: If the actor may not change the task's status.
            ConcurrencyConflict: If expected_version is stale.
        """
        new_status = TaskStatus(new_status)
        async with unit_of_work(self.session, "task"):
            task = await self._load_for_write(actor, task_id, check=can_mutate_task_status)
            _check_version("task", task, expected_version)

            old_status = apply_task_status(task, new_status)
            if old_status != new_status or self.settings.policy.log_unchanged_status:
                self.activity.record(
                    actor.id,
                    ActivityType.task_status_changed,
                    f"Task status changed from {old_status.value} to {new_status.value}",
                    task=task,
                    old_value=old_status.value,
                    new_value=new_status.value,
                )

        self.logger.info(
            "task_status_changed",
            task_id=str(task_id),
            from_status=old_status.value,
            to_status=new_status.value,
        )
        return task

    async def assign_task(
        self,
        actor: User,
        task_id: UUID,
        user_id: UUID | None,
        expected_version: int | None = None,
    ) -> Task:
        """Set or clear a task's assignee.

        The assignee's project membership is only checked when
        ``policy.require_assignee_membership`` is enabled.

        Raises:
            AccessDenied: If the actor cannot access the task.
            NotFound: If the assignee does not exist.
            ValidationFailed: If membership is required and missing.
            ConcurrencyConflict: If expected_version is stale.
        """
        async with unit_of_work(self.session, "task"):
            task = await self._load_for_write(actor, task_id)
            _check_version("task", task, expected_version)

            old_assignee_id = task.assigned_to_id
            assignee = await self._assignee(task.project, user_id) if user_id is not None else None

            task.assigned_to = assignee
            task.assigned_to_id = assignee.id if assignee is not None else None
            task.touch()

            description = (
                f"Task assigned to {assignee.full_name}" if assignee is not None else "Task unassigned"
            )
            self.activity.record(
                actor.id,
                ActivityType.task_assigned,
                description,
                task=task,
                old_value=str(old_assignee_id) if old_assignee_id else None,
                new_value=str(task.assigned_to_id) if task.assigned_to_id else None,
            )

        self.logger.info(
            "task_assigned",
            task_id=str(task_id),
            assigned_to_id=str(user_id) if user_id else None,
        )
        return task

    async def add_comment(self, author: User, task_id: UUID, content: str) -> Comment:
        """Add a comment to a task the author can access.

        Raises:
            AccessDenied: If the author cannot access the task.
            ValidationFailed: If content is empty or too long.
        """
        errors: list[str] = []
        validation.check_text(errors, "Comment", content, validation.COMMENT_MAX, required=True)
        validation.raise_if_errors(errors)

        async with unit_of_work(self.session, "comment"):
            task = await self._load_for_write(author, task_id)
            comment = await queries.create_comment(self.session, task, author, content.strip())
            self.activity.record(
                author.id,
                ActivityType.comment_added,
                f"Comment added to task '{task.title}'",
                task=task,
                metadata={"comment_id": comment.id},
            )

        self.logger.info("comment_added", task_id=str(task_id), comment_id=str(comment.id))
        return comment

    async def delete_task(self, actor: User, task_id: UUID) -> None:
        """Soft-delete a task and its comments.

        Raises:
            AccessDenied: If the actor cannot access the task.
        """
        async with unit_of_work(self.session, "task"):
            task = await self._load_for_write(actor, task_id)
            now = utcnow()
            for comment in await queries.list_task_comments(self.session, task.id):
                comment.soft_delete(now)
            task.soft_delete(now)
            self.activity.record(
                actor.id,
                ActivityType.task_deleted,
                f"Task '{task.title}' deleted",
                task=task,
            )

        self.logger.info("task_deleted", task_id=str(task_id))

    async def get_task_activity(self, actor: User, task_id: UUID) -> list[ActivityLog]:
        """Activity entries of a visible task in creation order.

        Raises:
            NotFound: If the task is missing, deleted or not visible.
        """
        task = await queries.get_task(self.session, task_id)
        if not can_access_task(actor.id, task):
            raise NotFound("task")
        return await self.activity.list_for_task(task.id)
