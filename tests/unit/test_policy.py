"""Unit tests for the access policy functions."""

from __future__ import annotations

import uuid

from factories import make_project, make_task, make_user

from taskhub.core.policy import (
    can_access_project,
    can_access_task,
    can_access_user,
    can_delete_project,
    can_mutate_task_status,
    has_role,
)
from taskhub.database.models import Project, User, UserRole


class TestUserAccess:
    def test_user_can_access_self(self, owner: User) -> None:
        assert can_access_user(owner.id, owner) is True

    def test_user_cannot_access_other(self, owner: User, outsider: User) -> None:
        assert can_access_user(outsider.id, owner) is False

    def test_missing_inputs_fail_closed(self, owner: User) -> None:
        assert can_access_user(None, owner) is False
        assert can_access_user(owner.id, None) is False

    def test_deleted_user_not_accessible(self) -> None:
        user = make_user(is_deleted=True)
        assert can_access_user(user.id, user) is False


class TestProjectAccess:
    def test_owner_has_access_without_member_rows(self, owner: User, project: Project) -> None:
        assert project.members == []
        assert can_access_project(owner.id, project) is True

    def test_non_member_denied(self, outsider: User, project: Project) -> None:
        assert can_access_project(outsider.id, project) is False

    def test_active_member_allowed(self, owner: User) -> None:
        member = make_user()
        project = make_project(owner, members=[member])
        assert can_access_project(member.id, project) is True

    def test_removed_member_denied(self, owner: User) -> None:
        member = make_user()
        project = make_project(owner, members=[member])
        project.members[0].soft_delete()
        assert can_access_project(member.id, project) is False

    def test_deleted_project_denied_even_to_owner(self, owner: User, project: Project) -> None:
        project.soft_delete()
        assert can_access_project(owner.id, project) is False

    def test_unloaded_members_fail_closed(self, owner: User) -> None:
        project = Project(
            id=uuid.uuid4(),
            name="Bare",
            owner_id=owner.id,
            is_deleted=False,
        )
        assert can_access_project(owner.id, project) is True
        assert can_access_project(uuid.uuid4(), project) is False

    def test_missing_inputs_fail_closed(self, owner: User, project: Project) -> None:
        assert can_access_project(None, project) is False
        assert can_access_project(owner.id, None) is False

    def test_only_owner_may_delete(self, owner: User) -> None:
        member = make_user()
        project = make_project(owner, members=[member])
        assert can_delete_project(owner.id, project) is True
        assert can_delete_project(member.id, project) is False


class TestTaskAccess:
    def test_task_follows_project(self, owner: User, outsider: User, project: Project) -> None:
        task = make_task(project, owner)
        assert can_access_task(owner.id, task) is True
        assert can_access_task(outsider.id, task) is False

    def test_deleted_task_denied(self, owner: User, project: Project) -> None:
        task = make_task(project, owner)
        task.soft_delete()
        assert can_access_task(owner.id, task) is False

    def test_assignee_may_change_status_without_membership(
        self, owner: User, outsider: User, project: Project
    ) -> None:
        task = make_task(project, owner, assignee=outsider)
        assert can_access_task(outsider.id, task) is False
        assert can_mutate_task_status(outsider.id, task) is True

    def test_member_may_change_status(self, owner: User) -> None:
        member = make_user()
        project = make_project(owner, members=[member])
        task = make_task(project, owner)
        assert can_mutate_task_status(member.id, task) is True

    def test_stranger_may_not_change_status(
        self, owner: User, outsider: User, project: Project
    ) -> None:
        task = make_task(project, owner)
        assert can_mutate_task_status(outsider.id, task) is False
        assert can_mutate_task_status(None, task) is False


class TestRoles:
    def test_has_role(self) -> None:
        admin = make_user(roles=frozenset({UserRole.admin}))
        assert has_role(admin, UserRole.admin) is True
        assert has_role(admin, UserRole.manager) is False

    def test_inactive_user_has_no_roles(self) -> None:
        admin = make_user(roles=frozenset({UserRole.admin}), is_active=False)
        assert has_role(admin, UserRole.admin) is False

    def test_none_user(self) -> None:
        assert has_role(None, UserRole.member) is False
