"""Seed data routines for Taskhub.

Two explicit, idempotent routines populate a database for demos and
development:

- DatabaseSeeder: a fixed set of users, three projects with members, six
  tasks with their activity history and a handful of comments.
- SampleDataSeeder: extra multilingual users, four more projects with
  randomly chosen members, and randomized tasks and comments.

Nothing here runs at import time. The routines are invoked from the CLI
(``taskhub seed ...``), the Admin-only ``/seed`` endpoints, or tests.
Seeded rows carry back-dated timestamps, so they are written directly
rather than through the lifecycle services.

There is no reset routine: users and activity log entries are never
hard-deleted, so wiping a demo database means dropping it.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.passwords import hash_password
from taskhub.config import AuthConfig
from taskhub.core.lifecycle import unit_of_work
from taskhub.database import queries
from taskhub.database.models.activity import ActivityLog, ActivityType
from taskhub.database.models.base import utcnow
from taskhub.database.models.comment import Comment
from taskhub.database.models.project import Project, ProjectMember, ProjectStatus
from taskhub.database.models.task import Task, TaskPriority, TaskStatus
from taskhub.database.models.user import User, UserRole

logger = structlog.get_logger(__name__)

INITIAL_USERS: list[dict[str, Any]] = [
    {
        "email": "admin@taskmanagement.com",
        "first_name": "System",
        "last_name": "Administrator",
        "role": UserRole.admin,
        "password": "Admin123!",
    },
    {
        "email": "manager@taskmanagement.com",
        "first_name": "Project",
        "last_name": "Manager",
        "role": UserRole.manager,
        "password": "Manager123!",
    },
    {
        "email": "john.doe@taskmanagement.com",
        "first_name": "John",
        "last_name": "Doe",
        "role": UserRole.member,
        "password": "Member123!",
    },
    {
        "email": "jane.smith@taskmanagement.com",
        "first_name": "Jane",
        "last_name": "Smith",
        "role": UserRole.member,
        "password": "Member123!",
    },
    {
        "email": "bob.wilson@taskmanagement.com",
        "first_name": "Bob",
        "last_name": "Wilson",
        "role": UserRole.member,
        "password": "Member123!",
    },
]

SAMPLE_USERS: list[dict[str, Any]] = [
    {
        "email": "alice.johnson@taskmanagement.com",
        "first_name": "Alice",
        "last_name": "Johnson",
        "role": UserRole.manager,
        "password": "Manager123!",
        "language": "en",
    },
    {
        "email": "carlos.rodriguez@taskmanagement.com",
        "first_name": "Carlos",
        "last_name": "Rodriguez",
        "role": UserRole.member,
        "password": "Member123!",
        "language": "es",
    },
    {
        "email": "marie.dubois@taskmanagement.com",
        "first_name": "Marie",
        "last_name": "Dubois",
        "role": UserRole.member,
        "password": "Member123!",
        "language": "fr",
    },
    {
        "email": "hans.mueller@taskmanagement.com",
        "first_name": "Hans",
        "last_name": "Mueller",
        "role": UserRole.member,
        "password": "Member123!",
        "language": "de",
    },
    {
        "email": "ana.silva@taskmanagement.com",
        "first_name": "Ana",
        "last_name": "Silva",
        "role": UserRole.member,
        "password": "Member123!",
        "language": "pt",
    },
]

SAMPLE_PROJECTS: list[dict[str, Any]] = [
    {
        "name": "E-commerce Platform",
        "description": (
            "Development of a modern e-commerce platform with microservices "
            "architecture, payment integration, and real-time inventory management."
        ),
        "status": ProjectStatus.active,
        "color": "#9b59b6",
        "days_ago": 45,
    },
    {
        "name": "Data Analytics Dashboard",
        "description": (
            "Business intelligence dashboard with real-time data visualization, "
            "custom reporting, and predictive analytics capabilities."
        ),
        "status": ProjectStatus.planning,
        "color": "#f39c12",
        "days_ago": 20,
    },
    {
        "name": "Customer Support Portal",
        "description": (
            "Comprehensive customer support system with ticket management, knowledge "
            "base, live chat, and customer satisfaction tracking."
        ),
        "status": ProjectStatus.on_hold,
        "color": "#e67e22",
        "days_ago": 60,
    },
    {
        "name": "IoT Device Management",
        "description": (
            "Platform for managing IoT devices with real-time monitoring, firmware "
            "updates, and predictive maintenance capabilities."
        ),
        "status": ProjectStatus.active,
        "color": "#1abc9c",
        "days_ago": 30,
    },
]

TASK_TEMPLATES: list[tuple[str, str, TaskPriority, int, str]] = [
    (
        "Setup Development Environment",
        "Configure development environment with necessary tools, dependencies, and IDE settings.",
        TaskPriority.high,
        8,
        "setup,environment,development",
    ),
    (
        "Code Review and Refactoring",
        "Review existing codebase, identify areas for improvement, and refactor for maintainability.",
        TaskPriority.medium,
        16,
        "code-review,refactoring,quality",
    ),
    (
        "Unit Test Implementation",
        "Write comprehensive unit tests to ensure code quality and prevent regressions.",
        TaskPriority.high,
        12,
        "testing,unit-tests,quality",
    ),
    (
        "Performance Optimization",
        "Analyze application performance, identify bottlenecks, and implement optimizations.",
        TaskPriority.medium,
        20,
        "performance,optimization,analysis",
    ),
    (
        "Security Audit",
        "Conduct a thorough security audit and implement the necessary security measures.",
        TaskPriority.critical,
        24,
        "security,audit,vulnerability",
    ),
    (
        "User Interface Design",
        "Design responsive user interface components following accessibility standards.",
        TaskPriority.medium,
        18,
        "ui,design,ux,accessibility",
    ),
    (
        "Database Migration",
        "Plan and execute the schema migration with backup and rollback procedures.",
        TaskPriority.high,
        14,
        "database,migration,schema",
    ),
    (
        "Integration Testing",
        "Develop and execute integration tests across system components.",
        TaskPriority.medium,
        16,
        "testing,integration,components",
    ),
    (
        "Documentation Update",
        "Update technical documentation, API references, and user guides.",
        TaskPriority.low,
        10,
        "documentation,api,guides",
    ),
    (
        "Deployment Pipeline",
        "Set up an automated deployment pipeline with staging environments.",
        TaskPriority.high,
        22,
        "deployment,ci-cd,automation",
    ),
]

COMMENT_TEMPLATES: list[str] = [
    "Started working on this task. Initial analysis looks promising.",
    "Encountered some technical challenges, but found a viable solution.",
    "Making good progress. Should be completed ahead of schedule.",
    "Need to coordinate with the team on this dependency.",
    "Updated the implementation based on code review feedback.",
    "Testing phase completed successfully. Ready for deployment.",
    "Documentation has been updated to reflect the changes.",
    "Performance improvements implemented as requested.",
    "Integration with external API completed and tested.",
    "Final review completed. Task is ready for production.",
]

# Sample task status distribution, in percent.
STATUS_WEIGHTS: list[tuple[TaskStatus, int]] = [
    (TaskStatus.todo, 30),
    (TaskStatus.in_progress, 40),
    (TaskStatus.done, 25),
    (TaskStatus.on_hold, 5),
]


@dataclass(frozen=True)
class DatabaseStats:
    """Row counts of the non-deleted entities, plus tasks per status."""

    users: int
    projects: int
    tasks: int
    comments: int
    activity_logs: int
    project_members: int
    tasks_by_status: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, int]:
        """The entity counts alone, without the status breakdown."""
        counts = asdict(self)
        del counts["tasks_by_status"]
        return counts


async def collect_stats(session: AsyncSession) -> DatabaseStats:
    """Count the rows of every table."""
    by_status = await queries.count_tasks_by_status(session)
    return DatabaseStats(
        users=await queries.count_users(session),
        projects=await queries.count_projects(session),
        tasks=await queries.count_tasks(session),
        comments=await queries.count_comments(session),
        activity_logs=await queries.count_activity(session),
        project_members=await queries.count_memberships(session),
        tasks_by_status={status.value: count for status, count in by_status.items()},
    )


def _days(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


class _Seeder:
    def __init__(self, session: AsyncSession, auth_config: AuthConfig) -> None:
        self.session = session
        self.auth_config = auth_config
        self.logger = logger.bind(component=type(self).__name__)

    async def _ensure_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        password: str,
        language: str = "en",
        created_at: datetime | None = None,
    ) -> tuple[User, bool]:
        existing = await queries.get_user_by_email(self.session, email)
        if existing is not None:
            return existing, False

        user = User(
            email=queries.normalize_email(email),
            first_name=first_name,
            last_name=last_name,
            password_hash=hash_password(password, rounds=self.auth_config.bcrypt_rounds),
            preferred_language=language,
            roles=frozenset({role}),
            is_active=True,
        )
        if created_at is not None:
            user.created_at = created_at
            user.updated_at = created_at
        self.session.add(user)
        self.logger.info("seed_user_created", email=user.email, role=role.value)
        return user, True


class DatabaseSeeder(_Seeder):
    """Seeds the fixed initial data set. Each stage skips if its table has rows."""

    async def seed(self) -> DatabaseStats:
        self.logger.info("seeding_started")
        async with unit_of_work(self.session, "seed"):
            users = await self._seed_users()
            await self.session.flush()
            projects = await self._seed_projects(users)
            await self.session.flush()
            tasks = await self._seed_tasks(users, projects)
            await self.session.flush()
            self._seed_comments(users, tasks)

        stats = await collect_stats(self.session)
        self.logger.info("seeding_completed", **stats.as_dict())
        return stats

    async def _seed_users(self) -> dict[str, User]:
        users: dict[str, User] = {}
        for data in INITIAL_USERS:
            user, _ = await self._ensure_user(
                data["email"],
                data["first_name"],
                data["last_name"],
                data["role"],
                data["password"],
            )
            users[data["email"].split("@")[0]] = user
        return users

    async def _seed_projects(self, users: dict[str, User]) -> dict[str, Project]:
        if await queries.count_projects(self.session) > 0:
            self.logger.info("seed_projects_skipped", reason="projects already exist")
            return {}

        now = utcnow()
        admin, manager = users["admin"], users["manager"]
        specs = [
            (
                "Task Management System",
                "A comprehensive task management system with user authentication, "
                "project management, and team collaboration features.",
                ProjectStatus.active,
                -30,
                60,
                "#3498db",
                admin,
                -30,
            ),
            (
                "Mobile App Development",
                "Development of a mobile application for task management with offline "
                "capabilities and real-time synchronization.",
                ProjectStatus.planning,
                7,
                120,
                "#e74c3c",
                manager,
                -15,
            ),
            (
                "API Documentation",
                "Create comprehensive API documentation with examples and integration "
                "guides for developers.",
                ProjectStatus.active,
                -10,
                30,
                "#2ecc71",
                admin,
                -10,
            ),
        ]
        projects: dict[str, Project] = {}
        for name, description, status, start, end, color, owner, created in specs:
            project = Project(
                name=name,
                description=description,
                status=status,
                start_date=_days(now, start),
                end_date=_days(now, end),
                color=color,
                owner_id=owner.id,
                owner=owner,
                members=[],
                created_at=_days(now, created),
                updated_at=_days(now, created),
                is_active=True,
            )
            self.session.add(project)
            projects[name] = project

        memberships = [
            ("Task Management System", users["manager"], UserRole.manager, -25),
            ("Task Management System", users["john.doe"], UserRole.member, -20),
            ("Task Management System", users["jane.smith"], UserRole.member, -18),
            ("Mobile App Development", users["john.doe"], UserRole.member, -12),
        ]
        for project_name, user, role, joined in memberships:
            project = projects[project_name]
            project.members.append(
                ProjectMember(
                    project_id=project.id,
                    user_id=user.id,
                    user=user,
                    role=role,
                    joined_at=_days(now, joined),
                    created_at=_days(now, joined),
                    updated_at=_days(now, joined),
                )
            )

        self.logger.info("seed_projects_created", projects=len(projects), members=len(memberships))
        return projects

    async def _seed_tasks(
        self,
        users: dict[str, User],
        projects: dict[str, Project],
    ) -> dict[str, Task]:
        if not projects or await queries.count_tasks(self.session) > 0:
            self.logger.info("seed_tasks_skipped", reason="tasks already exist or no new projects")
            return {}

        now = utcnow()
        admin, john, jane = users["admin"], users["john.doe"], users["jane.smith"]
        tms, docs = projects["Task Management System"], projects["API Documentation"]
        specs = [
            ("Implement User Authentication",
             "Develop JWT-based authentication system with role-based authorization "
             "for secure user access.",
             TaskStatus.done, TaskPriority.high, -5, -7, 16, 18,
             "authentication,security,jwt", tms, john, -25),
            ("Design Database Schema",
             "Create comprehensive database schema with proper relationships, indexes, "
             "and constraints for optimal performance.",
             TaskStatus.done, TaskPriority.critical, -15, -18, 12, 14,
             "database,schema,design", tms, admin, -30),
            ("Implement Task CRUD Operations",
             "Build the create, read, update and delete endpoints for tasks with "
             "validation and activity logging.",
             TaskStatus.in_progress, TaskPriority.high, 5, None, 20, 12,
             "crud,tasks,api", tms, jane, -20),
            ("Add Real-time Notifications",
             "Notify project members about task changes as they happen.",
             TaskStatus.todo, TaskPriority.medium, 15, None, 24, 0,
             "signalr,notifications,realtime", tms, john, -10),
            ("Write API Documentation",
             "Document every endpoint with request and response examples.",
             TaskStatus.in_progress, TaskPriority.medium, 10, None, 16, 8,
             "documentation,api,swagger", docs, jane, -8),
            ("Setup CI/CD Pipeline",
             "Automate builds, tests and deployments.",
             TaskStatus.todo, TaskPriority.low, 20, None, 12, 0,
             "cicd,github-actions,deployment", tms, None, -5),
        ]

        tasks: dict[str, Task] = {}
        for (title, description, status, priority, due, completed, estimated, actual,
             tags, project, assignee, created) in specs:
            task = Task(
                title=title,
                description=description,
                status=status,
                priority=priority,
                due_date=_days(now, due),
                completed_at=_days(now, completed) if completed is not None else None,
                estimated_hours=estimated,
                actual_hours=actual,
                tags=tags,
                project_id=project.id,
                project=project,
                created_by_id=admin.id,
                created_by=admin,
                assigned_to_id=assignee.id if assignee is not None else None,
                assigned_to=assignee,
                created_at=_days(now, created),
                updated_at=_days(now, completed if completed is not None else created),
                is_active=True,
            )
            self.session.add(task)
            tasks[title] = task

        await self.session.flush()
        for task in tasks.values():
            self._record_history(task)

        self.logger.info("seed_tasks_created", tasks=len(tasks))
        return tasks

    def _record_history(self, task: Task) -> None:
        actor = task.assigned_to_id or task.created_by_id
        entries = [(task.created_by_id, ActivityType.task_created, f"Task '{task.title}' created", None, None)]
        if task.status in (TaskStatus.in_progress, TaskStatus.done):
            entries.append((actor, ActivityType.task_status_changed,
                            "Task status changed from todo to in_progress", "todo", "in_progress"))
        if task.status == TaskStatus.done:
            entries.append((actor, ActivityType.task_status_changed,
                            "Task status changed from in_progress to done", "in_progress", "done"))
        for user_id, kind, description, old, new in entries:
            self.session.add(
                ActivityLog(
                    user_id=user_id,
                    activity_type=kind,
                    description=description,
                    old_value=old,
                    new_value=new,
                    task_id=task.id,
                    project_id=task.project_id,
                )
            )

    def _seed_comments(self, users: dict[str, User], tasks: dict[str, Task]) -> None:
        if not tasks:
            return

        now = utcnow()
        john, jane, admin = users["john.doe"], users["jane.smith"], users["admin"]
        specs = [
            ("Implement User Authentication", john, -20,
             "Started working on the JWT implementation. Setting up the authentication "
             "middleware and token validation."),
            ("Implement User Authentication", john, -10,
             "Authentication system is working well. Added role-based authorization and "
             "tested with different user roles."),
            ("Implement User Authentication", admin, -8,
             "Great work on the authentication! The JWT implementation looks solid and secure."),
            ("Implement Task CRUD Operations", jane, -5,
             "Working on the task creation and update endpoints. The validation logic is "
             "getting complex with all the business rules."),
            ("Implement Task CRUD Operations", jane, -2,
             "Need to add more comprehensive error handling for edge cases."),
            ("Write API Documentation", jane, -3,
             "Started documenting the authentication endpoints. Adding request/response "
             "examples and error codes."),
        ]
        for title, author, days_ago, content in specs:
            task = tasks[title]
            self.session.add(
                Comment(
                    task_id=task.id,
                    author_id=author.id,
                    author=author,
                    content=content,
                    created_at=_days(now, days_ago),
                    updated_at=_days(now, days_ago),
                )
            )
        self.logger.info("seed_comments_created", comments=len(specs))


class SampleDataSeeder(_Seeder):
    """Seeds randomized sample data on top of the initial data set.

    Attributes:
        rng: Random source; pass a seeded ``random.Random`` for repeatable data.
    """

    def __init__(
        self,
        session: AsyncSession,
        auth_config: AuthConfig,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(session, auth_config)
        self.rng = rng or random.Random()

    async def seed(self) -> DatabaseStats:
        self.logger.info("sample_seeding_started")
        async with unit_of_work(self.session, "seed"):
            await self._seed_users()
            await self.session.flush()
            new_projects = await self._seed_projects()
            await self.session.flush()
            tasks = self._seed_tasks(new_projects)
            await self.session.flush()
            self._seed_comments(tasks)

        stats = await collect_stats(self.session)
        self.logger.info("sample_seeding_completed", **stats.as_dict())
        return stats

    def _random_status(self) -> TaskStatus:
        statuses = [status for status, _ in STATUS_WEIGHTS]
        weights = [weight for _, weight in STATUS_WEIGHTS]
        return self.rng.choices(statuses, weights=weights, k=1)[0]

    async def _seed_users(self) -> None:
        now = utcnow()
        for data in SAMPLE_USERS:
            await self._ensure_user(
                data["email"],
                data["first_name"],
                data["last_name"],
                data["role"],
                data["password"],
                language=data["language"],
                created_at=_days(now, -self.rng.randint(1, 89)),
            )

    async def _seed_projects(self) -> list[Project]:
        if await queries.count_projects(self.session) >= 5:
            self.logger.info("sample_projects_skipped", reason="sufficient projects exist")
            return []

        users = await queries.list_users(self.session)
        owners = [u for u in users if u.roles & {UserRole.manager, UserRole.admin}]
        members = [u for u in users if UserRole.member in u.roles]
        if not owners:
            self.logger.warning("sample_projects_skipped", reason="no managers found")
            return []

        now = utcnow()
        projects: list[Project] = []
        for data in SAMPLE_PROJECTS:
            owner = self.rng.choice(owners)
            created = _days(now, -data["days_ago"])
            is_active = data["status"] == ProjectStatus.active
            project = Project(
                name=data["name"],
                description=data["description"],
                status=data["status"],
                start_date=created + timedelta(days=7) if is_active else None,
                end_date=created + timedelta(days=self.rng.randint(90, 179)) if is_active else None,
                color=data["color"],
                owner_id=owner.id,
                owner=owner,
                members=[],
                created_at=created,
                updated_at=created,
                is_active=True,
            )
            self.session.add(project)

            candidates = [u for u in members if u.id != owner.id]
            count = min(len(candidates), self.rng.randint(2, 5))
            for user in self.rng.sample(candidates, count):
                joined = created + timedelta(days=self.rng.randint(1, 9))
                project.members.append(
                    ProjectMember(
                        project_id=project.id,
                        user_id=user.id,
                        user=user,
                        role=UserRole.manager if self.rng.randrange(10) < 2 else UserRole.member,
                        joined_at=joined,
                        created_at=joined,
                        updated_at=joined,
                    )
                )
            projects.append(project)

        self.logger.info("sample_projects_created", projects=len(projects))
        return projects

    def _seed_tasks(self, projects: list[Project]) -> list[Task]:
        tasks: list[Task] = []
        for project in projects[:3]:
            assignable = [m.user for m in project.active_members]
            for _ in range(self.rng.randint(3, 7)):
                title, description, priority, estimated, tags = self.rng.choice(TASK_TEMPLATES)
                created = project.created_at + timedelta(days=self.rng.randint(1, 29))
                status = self._random_status()
                assignee = self.rng.choice(assignable) if assignable else None
                if status == TaskStatus.done:
                    actual = self.rng.randint(max(estimated - 5, 0), estimated + 9)
                elif status == TaskStatus.in_progress:
                    actual = self.rng.randint(1, max(estimated // 2, 1))
                else:
                    actual = 0

                task = Task(
                    title=f"{title} - {project.name}",
                    description=description,
                    status=status,
                    priority=priority,
                    due_date=(
                        created + timedelta(days=self.rng.randint(7, 59))
                        if status != TaskStatus.done
                        else None
                    ),
                    completed_at=(
                        created + timedelta(days=self.rng.randint(1, 19))
                        if status == TaskStatus.done
                        else None
                    ),
                    estimated_hours=estimated,
                    actual_hours=actual,
                    tags=tags,
                    project_id=project.id,
                    project=project,
                    created_by_id=project.owner_id,
                    created_by=project.owner,
                    assigned_to_id=assignee.id if assignee is not None else None,
                    assigned_to=assignee,
                    created_at=created,
                    updated_at=created,
                    is_active=True,
                )
                self.session.add(task)
                tasks.append(task)

        self.logger.info("sample_tasks_created", tasks=len(tasks))
        return tasks

    def _seed_comments(self, tasks: list[Task]) -> None:
        count = 0
        for task in tasks[:10]:
            authors = [m.user for m in task.project.active_members]
            if not authors:
                continue
            for _ in range(self.rng.randint(1, 3)):
                author = self.rng.choice(authors)
                posted = task.created_at + timedelta(days=self.rng.randint(1, 19))
                self.session.add(
                    Comment(
                        task_id=task.id,
                        author_id=author.id,
                        author=author,
                        content=self.rng.choice(COMMENT_TEMPLATES),
                        created_at=posted,
                        updated_at=posted,
                    )
                )
                count += 1
        self.logger.info("sample_comments_created", comments=count)
