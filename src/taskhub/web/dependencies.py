"""FastAPI dependencies for Taskhub routes.

Provides the per-request database session, the application config, the
authenticated caller and ready-made service instances. The session factory
and config live on ``app.state`` (set by ``create_app`` and the lifespan
handler).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskhub.auth.service import AuthService
from taskhub.auth.tokens import decode_access_token, subject_of
from taskhub.config import TaskhubConfig
from taskhub.core.lifecycle import ProjectService, TaskService
from taskhub.core.policy import has_role
from taskhub.database.models.user import User, UserRole
from taskhub.errors import AccessDenied, AuthenticationFailed
from taskhub.logging import bind_request_context

bearer_scheme = HTTPBearer(auto_error=False)


def get_config(request: Request) -> TaskhubConfig:
    """Application config from app state."""
    return request.app.state.config  # type: ignore[no-any-return]


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory from app state."""
    return request.app.state.session_factory  # type: ignore[no-any-return]


async def get_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),  # noqa: B008
) -> AsyncIterator[AsyncSession]:
    """Yield one session per request and close it afterwards."""
    async with session_factory() as session:
        yield session


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
    session: AsyncSession = Depends(get_session),  # noqa: B008
    config: TaskhubConfig = Depends(get_config),  # noqa: B008
) -> User:
    """Authenticate the bearer token and load the calling user.

    Raises:
        AuthenticationFailed: If the token is missing, invalid, or names a
            user that no longer exists or is inactive.
    """
    if credentials is None:
        raise AuthenticationFailed("Unauthorized", code="auth.unauthorized")

    claims = decode_access_token(credentials.credentials, config.auth)
    user = await AuthService(session, config.auth).load_active_user(subject_of(claims))
    bind_request_context(user_id=str(user.id))
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:  # noqa: B008
    """Allow only callers holding the admin role.

    Raises:
        AccessDenied: If the caller is not an admin.
    """
    if not has_role(user, UserRole.admin):
        raise AccessDenied("admin")
    return user


def get_auth_service(
    session: AsyncSession = Depends(get_session),  # noqa: B008
    config: TaskhubConfig = Depends(get_config),  # noqa: B008
) -> AuthService:
    return AuthService(session, config.auth)


def get_project_service(
    session: AsyncSession = Depends(get_session),  # noqa: B008
    config: TaskhubConfig = Depends(get_config),  # noqa: B008
) -> ProjectService:
    return ProjectService(session, config)


def get_task_service(
    session: AsyncSession = Depends(get_session),  # noqa: B008
    config: TaskhubConfig = Depends(get_config),  # noqa: B008
) -> TaskService:
    return TaskService(session, config)
