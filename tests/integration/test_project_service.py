"""Integration tests for ProjectService."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import TaskhubConfig
from taskhub.core.lifecycle import ProjectService, TaskService
from taskhub.database import queries
from taskhub.database.models import ActivityType, ProjectStatus, User, utcnow
from taskhub.errors import AccessDenied, ConcurrencyConflict, NotFound, ValidationFailed

UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture
def service(session: AsyncSession, config: TaskhubConfig) -> ProjectService:
    return ProjectService(session, config)


class TestCreateAndRead:
    async def test_create_project(self, service: ProjectService, make_user: UserFactory) -> None:
        owner = await make_user()

        project = await service.create_project(
            owner, "  Launch  ", description="Go live", color="#3498db"
        )

        assert project.name == "Launch"
        assert project.status == ProjectStatus.planning
        assert project.owner_id == owner.id
        assert project.version == 1

        entries = await service.activity.list_for_project(project.id)
        assert [e.activity_type for e in entries] == [ActivityType.project_created]
        assert entries[0].user_id == owner.id

    async def test_invalid_fields_all_reported(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        start = utcnow()
        with pytest.raises(ValidationFailed) as exc_info:
            await service.create_project(
                owner, "", color="blue", start_date=start, end_date=start - timedelta(days=1)
            )
        assert len(exc_info.value.errors) == 3

    async def test_owner_access_without_member_rows(
        self, service: ProjectService, make_user: UserFactory, session: AsyncSession
    ) -> None:
        owner = await make_user()
        project = await service.create_project(owner, "Solo")

        assert (await service.summarize(project)).member_count == 0
        assert (await service.get_project(owner, project.id)).id == project.id

    async def test_stranger_gets_not_found(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        stranger = await make_user()
        project = await service.create_project(owner, "Private")

        with pytest.raises(NotFound):
            await service.get_project(stranger, project.id)

    async def test_summary_counters(
        self,
        service: ProjectService,
        make_user: UserFactory,
        session: AsyncSession,
        config: TaskhubConfig,
    ) -> None:
        owner = await make_user()
        member = await make_user()
        project = await service.create_project(owner, "Counted")
        await service.add_member(owner, project.id, member.id)
        tasks = TaskService(session, config)
        first = await tasks.create_task(owner, project.id, "One")
        await tasks.create_task(owner, project.id, "Two")
        await tasks.update_task_status(owner, first.id, "done")

        summary = await service.summarize(project)

        assert summary.task_count == 2
        assert summary.completed_task_count == 1
        assert summary.member_count == 1
        assert summary.completion_percentage == 50.0

    async def test_list_projects_paginates(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        for i in range(12):
            await service.create_project(owner, f"Project {i}")

        page = await service.list_projects(owner, page=2, page_size=5)

        assert page.total_items == 12
        assert page.total_pages == 3
        assert len(page.items) == 5
        assert page.has_previous is True


class TestMembership:
    async def test_add_member_grants_access(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        other = await make_user()
        project = await service.create_project(owner, "Team")

        with pytest.raises(NotFound):
            await service.get_project(other, project.id)

        await service.add_member(owner, project.id, other.id)

        assert (await service.get_project(other, project.id)).id == project.id

    async def test_add_member_twice_keeps_one_row(
        self, service: ProjectService, make_user: UserFactory, session: AsyncSession
    ) -> None:
        owner = await make_user()
        other = await make_user()
        project = await service.create_project(owner, "Idempotent")

        first = await service.add_member(owner, project.id, other.id)
        second = await service.add_member(owner, project.id, other.id)

        assert first is not None and second is not None
        assert first.id == second.id
        assert await queries.count_memberships(session) == 1
        joined = await queries.count_activity(session, ActivityType.user_joined_project)
        assert joined == 1

    async def test_adding_owner_is_a_no_op(
        self, service: ProjectService, make_user: UserFactory, session: AsyncSession
    ) -> None:
        owner = await make_user()
        project = await service.create_project(owner, "Owned")

        assert await service.add_member(owner, project.id, owner.id) is None
        assert await queries.count_memberships(session) == 0

    async def test_remove_then_add_yields_fresh_row(
        self, service: ProjectService, make_user: UserFactory, session: AsyncSession
    ) -> None:
        owner = await make_user()
        other = await make_user()
        project = await service.create_project(owner, "Rejoin")
        original = await service.add_member(owner, project.id, other.id)
        assert original is not None

        assert await service.remove_member(owner, project.id, other.id) is True
        with pytest.raises(NotFound):
            await service.get_project(other, project.id)

        rejoined = await service.add_member(owner, project.id, other.id)

        assert await queries.count_memberships(session) == 1
        active = (await service.get_project(owner, project.id)).active_members
        assert rejoined is not None
        assert [m.id for m in active] == [rejoined.id]
        assert rejoined.id != original.id
        assert rejoined.joined_at >= original.joined_at

    async def test_remove_absent_member_returns_false(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        other = await make_user()
        project = await service.create_project(owner, "Nobody")

        assert await service.remove_member(owner, project.id, other.id) is False

    async def test_unknown_user_not_found(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        import uuid

        owner = await make_user()
        project = await service.create_project(owner, "Ghosts")
        with pytest.raises(NotFound):
            await service.add_member(owner, project.id, uuid.uuid4())

    async def test_stranger_cannot_manage_members(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        stranger = await make_user()
        project = await service.create_project(owner, "Closed")
        with pytest.raises(AccessDenied):
            await service.add_member(stranger, project.id, stranger.id)


class TestUpdateAndDelete:
    async def test_update_records_changed_fields(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        project = await service.create_project(owner, "Before")

        updated = await service.update_project(
            owner, project.id, name="After", status="active", description=""
        )

        assert updated.name == "After"
        assert updated.status == ProjectStatus.active
        assert updated.version == 2
        entries = await service.activity.list_for_project(project.id)
        assert entries[-1].activity_type == ActivityType.project_updated
        assert '"name": "Before"' in entries[-1].old_value
        assert "description" not in entries[-1].old_value

    async def test_unchanged_update_writes_nothing(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        project = await service.create_project(owner, "Same")

        await service.update_project(owner, project.id, name="Same")

        assert project.version == 1
        assert len(await service.activity.list_for_project(project.id)) == 1

    async def test_stale_expected_version(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        project = await service.create_project(owner, "Versioned")
        await service.update_project(owner, project.id, name="V2")

        with pytest.raises(ConcurrencyConflict):
            await service.update_project(owner, project.id, expected_version=1, name="V3")

    async def test_unknown_field_rejected(
        self, service: ProjectService, make_user: UserFactory
    ) -> None:
        owner = await make_user()
        project = await service.create_project(owner, "Strict")
        with pytest.raises(ValidationFailed):
            await service.update_project(owner, project.id, owner_id=owner.id)

    async def test_only_owner_deletes_and_children_cascade(
        self,
        service: ProjectService,
        make_user: UserFactory,
        session: AsyncSession,
        config: TaskhubConfig,
    ) -> None:
        owner = await make_user()
        member = await make_user()
        project = await service.create_project(owner, "Temporary")
        await service.add_member(owner, project.id, member.id)
        tasks = TaskService(session, config)
        task = await tasks.create_task(owner, project.id, "Child")
        await tasks.add_comment(owner, task.id, "note")

        with pytest.raises(AccessDenied):
            await service.delete_project(member, project.id)

        await service.delete_project(owner, project.id)

        assert await queries.get_project(session, project.id) is None
        assert await queries.count_tasks(session) == 0
        assert await queries.count_comments(session) == 0
        assert await queries.count_memberships(session) == 0
        with pytest.raises(NotFound):
            await service.get_project(owner, project.id)
