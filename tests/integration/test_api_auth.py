"""Integration tests for the authentication endpoints."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.service import AuthService
from taskhub.config import TaskhubConfig
from taskhub.database.models import User
from taskhub.errors import NotFound

UserFactory = Callable[..., Awaitable[User]]

API = "/api/v1"


def _registration(**overrides: str) -> dict[str, str]:
    body = {
        "email": "new.user@example.com",
        "password": "Secret123",
        "first_name": "New",
        "last_name": "User",
    }
    body.update(overrides)
    return body


class TestRegister:
    async def test_register_creates_member(self, client: AsyncClient) -> None:
        response = await client.post(f"{API}/auth/register", json=_registration())

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "user.created.success"
        assert body["data"]["email"] == "new.user@example.com"
        assert body["data"]["full_name"] == "New User"
        assert body["data"]["roles"] == ["member"]
        assert "password_hash" not in body["data"]

    async def test_duplicate_email_rejected(self, client: AsyncClient) -> None:
        await client.post(f"{API}/auth/register", json=_registration())

        response = await client.post(
            f"{API}/auth/register", json=_registration(email="NEW.USER@example.com")
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "user.email.exists"

    async def test_weak_password_lists_every_rule(self, client: AsyncClient) -> None:
        response = await client.post(f"{API}/auth/register", json=_registration(password="short"))

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "validation.failed"
        assert len(body["errors"]) == 3

    async def test_missing_field_is_validation_error(self, client: AsyncClient) -> None:
        body = _registration()
        del body["first_name"]

        response = await client.post(f"{API}/auth/register", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "validation.failed"


class TestLogin:
    async def test_login_returns_token(self, client: AsyncClient, make_user: UserFactory) -> None:
        user = await make_user(email="login@example.com")

        response = await client.post(
            f"{API}/auth/login", json={"email": "login@example.com", "password": "Secret123"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["id"] == str(user.id)

        profile = await client.get(
            f"{API}/auth/profile", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert profile.status_code == 200
        assert profile.json()["data"]["email"] == "login@example.com"

    async def test_wrong_password(self, client: AsyncClient, make_user: UserFactory) -> None:
        await make_user(email="login@example.com")

        response = await client.post(
            f"{API}/auth/login", json={"email": "login@example.com", "password": "Wrong1234"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "auth.invalid.credentials"

    async def test_unknown_email_fails_the_same_way(self, client: AsyncClient) -> None:
        response = await client.post(
            f"{API}/auth/login", json={"email": "ghost@example.com", "password": "Secret123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "auth.invalid.credentials"


class TestProfile:
    async def test_profile_requires_token(self, client: AsyncClient) -> None:
        response = await client.get(f"{API}/auth/profile")

        assert response.status_code == 401
        assert response.json()["message"] == "auth.unauthorized"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_profile_of_caller(
        self,
        client: AsyncClient,
        make_user: UserFactory,
        auth_headers: Callable[[User], dict[str, str]],
    ) -> None:
        user = await make_user(first_name="Pat", last_name="Profile")

        response = await client.get(f"{API}/auth/profile", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "user.profile.retrieved"
        assert body["data"]["full_name"] == "Pat Profile"
        assert body["request_id"] == response.headers["x-correlation-id"]


class TestProfileAccess:
    async def test_own_record_only(
        self, session: AsyncSession, config: TaskhubConfig, make_user: UserFactory
    ) -> None:
        auth = AuthService(session, config.auth)
        caller = await make_user()
        other = await make_user()

        assert (await auth.get_profile(caller, caller.id)).id == caller.id
        with pytest.raises(NotFound):
            await auth.get_profile(caller, other.id)

    async def test_deleted_record_is_not_found(
        self, session: AsyncSession, config: TaskhubConfig, make_user: UserFactory
    ) -> None:
        auth = AuthService(session, config.auth)
        caller = await make_user()
        caller.soft_delete()
        await session.commit()

        with pytest.raises(NotFound):
            await auth.get_profile(caller, caller.id)
