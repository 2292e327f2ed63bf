"""Authentication endpoints for Taskhub.

- ``POST /auth/register``: create an account
- ``POST /auth/login``: exchange credentials for a bearer token
- ``GET /auth/profile``: the caller's own user record
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status
from pydantic import BaseModel, Field, field_validator

from taskhub.auth.service import AuthService
from taskhub.database.models.user import User, UserRole
from taskhub.logging import get_logger
from taskhub.web.dependencies import get_auth_service, get_current_user
from taskhub.web.envelope import ApiResponse, UtcDatetime, ok

logger = get_logger(__name__)


class RegisterRequest(BaseModel):
    """Request schema for registering a new user."""

    email: str = Field(..., max_length=256)
    password: str
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    preferred_language: str = "en"


class LoginRequest(BaseModel):
    """Request schema for logging in."""

    email: str
    password: str


class UserSummary(BaseModel):
    """Compact user representation embedded in other responses."""

    id: UUID
    email: str
    full_name: str

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """Response schema for a full user record."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    preferred_language: str
    profile_picture_url: str | None
    roles: list[UserRole]
    is_active: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime

    model_config = {"from_attributes": True}

    @field_validator("roles", mode="before")
    @classmethod
    def sort_roles(cls, value: Any) -> list[UserRole]:
        return sorted((UserRole(r) for r in value), key=lambda r: r.value)


class LoginResponse(BaseModel):
    """Response schema for a successful login."""

    token: str
    expires_at: UtcDatetime
    user: UserResponse


def create_auth_router() -> APIRouter:
    """Create the authentication router.

    Routes:
        POST /auth/register - Register a new user
        POST /auth/login - Log in and receive a token
        GET /auth/profile - Current user's profile
    """
    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post(
        "/register",
        response_model=ApiResponse[UserResponse],
        status_code=http_status.HTTP_201_CREATED,
    )
    async def register(
        body: RegisterRequest,
        auth: AuthService = Depends(get_auth_service),  # noqa: B008
    ) -> Any:
        user = await auth.register(
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            preferred_language=body.preferred_language,
        )
        logger.info("user_registered_via_api", user_id=str(user.id))
        return ok(UserResponse.model_validate(user), "user.created.success")

    @router.post("/login", response_model=ApiResponse[LoginResponse])
    async def login(
        body: LoginRequest,
        auth: AuthService = Depends(get_auth_service),  # noqa: B008
    ) -> Any:
        result = await auth.login(body.email, body.password)
        return ok(
            LoginResponse(
                token=result.token.token,
                expires_at=result.token.expires_at,
                user=UserResponse.model_validate(result.user),
            ),
            "auth.login.success",
        )

    @router.get("/profile", response_model=ApiResponse[UserResponse])
    async def profile(
        user: User = Depends(get_current_user),  # noqa: B008
        auth: AuthService = Depends(get_auth_service),  # noqa: B008
    ) -> Any:
        user = await auth.get_profile(user, user.id)
        return ok(UserResponse.model_validate(user), "user.profile.retrieved")

    return router
