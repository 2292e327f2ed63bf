"""Integration tests for the project endpoints."""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from httpx import AsyncClient

from taskhub.database.models import User

UserFactory = Callable[..., Awaitable[User]]
HeaderFactory = Callable[[User], dict[str, str]]

API = "/api/v1"


@pytest.fixture
async def owner(make_user: UserFactory) -> User:
    return await make_user(first_name="Olive", last_name="Owner")


async def _create_project(
    client: AsyncClient, headers: dict[str, str], **fields: Any
) -> dict[str, Any]:
    body = {"name": "Website", **fields}
    response = await client.post(f"{API}/projects", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestProjectCrud:
    async def test_create_and_get(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        headers = auth_headers(owner)
        created = await _create_project(client, headers, description="Relaunch", color="#112233")

        assert created["status"] == "planning"
        assert created["owner"]["full_name"] == "Olive Owner"
        assert created["task_count"] == 0
        assert created["completion_percentage"] == 0.0
        assert created["version"] == 1

        response = await client.get(f"{API}/projects/{created['id']}", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "project.retrieved.success"
        assert body["data"]["description"] == "Relaunch"

    async def test_invalid_color_rejected(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        response = await client.post(
            f"{API}/projects", json={"name": "Bad", "color": "red"}, headers=auth_headers(owner)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "validation.failed"

    async def test_list_is_paginated(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        headers = auth_headers(owner)
        for i in range(3):
            await _create_project(client, headers, name=f"Project {i}")

        response = await client.get(f"{API}/projects?page=1&page_size=2", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "projects.retrieved.success"
        assert [p["name"] for p in body["data"]] == ["Project 2", "Project 1"]
        assert body["pagination"] == {
            "current_page": 1,
            "page_size": 2,
            "total_pages": 2,
            "total_items": 3,
            "has_next": True,
            "has_previous": False,
        }

    async def test_zero_page_size_rejected(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        response = await client.get(f"{API}/projects?page_size=0", headers=auth_headers(owner))

        assert response.status_code == 400

    async def test_stranger_sees_not_found(
        self,
        client: AsyncClient,
        owner: User,
        make_user: UserFactory,
        auth_headers: HeaderFactory,
    ) -> None:
        project = await _create_project(client, auth_headers(owner))
        stranger = await make_user()

        response = await client.get(
            f"{API}/projects/{project['id']}", headers=auth_headers(stranger)
        )

        assert response.status_code == 404
        assert response.json()["message"] == "project.not.found"

        listing = await client.get(f"{API}/projects", headers=auth_headers(stranger))
        assert listing.json()["data"] == []

    async def test_update_with_version_guard(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        headers = auth_headers(owner)
        project = await _create_project(client, headers)

        updated = await client.patch(
            f"{API}/projects/{project['id']}",
            json={"status": "active", "expected_version": 1},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["status"] == "active"
        assert updated.json()["data"]["version"] == 2

        stale = await client.patch(
            f"{API}/projects/{project['id']}",
            json={"name": "Renamed", "expected_version": 1},
            headers=headers,
        )
        assert stale.status_code == 409
        assert stale.json()["message"] == "concurrency.conflict"

    async def test_only_owner_deletes(
        self,
        client: AsyncClient,
        owner: User,
        make_user: UserFactory,
        auth_headers: HeaderFactory,
    ) -> None:
        project = await _create_project(client, auth_headers(owner))
        member = await make_user()
        await client.post(
            f"{API}/projects/{project['id']}/members",
            json={"user_id": str(member.id)},
            headers=auth_headers(owner),
        )

        denied = await client.delete(
            f"{API}/projects/{project['id']}", headers=auth_headers(member)
        )
        assert denied.status_code == 403
        assert denied.json()["message"] == "project.access.denied"

        deleted = await client.delete(
            f"{API}/projects/{project['id']}", headers=auth_headers(owner)
        )
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "project.deleted.success"

        gone = await client.get(f"{API}/projects/{project['id']}", headers=auth_headers(owner))
        assert gone.status_code == 404


class TestMembers:
    async def test_add_and_remove_member(
        self,
        client: AsyncClient,
        owner: User,
        make_user: UserFactory,
        auth_headers: HeaderFactory,
    ) -> None:
        project = await _create_project(client, auth_headers(owner))
        member = await make_user(first_name="Mia", last_name="Member")
        url = f"{API}/projects/{project['id']}/members"

        added = await client.post(
            url, json={"user_id": str(member.id), "role": "manager"}, headers=auth_headers(owner)
        )
        assert added.status_code == 200
        assert added.json()["message"] == "project.member.added"
        assert added.json()["data"]["user"]["full_name"] == "Mia Member"
        assert added.json()["data"]["role"] == "manager"

        visible = await client.get(f"{API}/projects/{project['id']}", headers=auth_headers(member))
        assert visible.status_code == 200
        assert visible.json()["data"]["member_count"] == 1

        removed = await client.delete(f"{url}/{member.id}", headers=auth_headers(owner))
        assert removed.json()["message"] == "project.member.removed"
        assert removed.json()["data"] == {"removed": True}

        again = await client.delete(f"{url}/{member.id}", headers=auth_headers(owner))
        assert again.json()["message"] == "project.member.not.found"
        assert again.json()["data"] == {"removed": False}

    async def test_adding_owner_is_reported(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        project = await _create_project(client, auth_headers(owner))

        response = await client.post(
            f"{API}/projects/{project['id']}/members",
            json={"user_id": str(owner.id)},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "project.member.owner"
        assert response.json()["data"] is None

    async def test_unknown_user(
        self, client: AsyncClient, owner: User, auth_headers: HeaderFactory
    ) -> None:
        project = await _create_project(client, auth_headers(owner))

        response = await client.post(
            f"{API}/projects/{project['id']}/members",
            json={"user_id": str(uuid.uuid4())},
            headers=auth_headers(owner),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "user.not.found"
