"""Registration and login for Taskhub."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.passwords import hash_password, verify_password
from taskhub.auth.tokens import IssuedToken, create_access_token
from taskhub.config import AuthConfig
from taskhub.core import validation
from taskhub.core.lifecycle import unit_of_work
from taskhub.core.policy import can_access_user
from taskhub.database import queries
from taskhub.database.models.user import User, UserRole
from taskhub.errors import AuthenticationFailed, NotFound, ValidationFailed

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """A successful login: the issued token and the authenticated user."""

    token: IssuedToken
    user: User


class AuthService:
    """Creates accounts and exchanges credentials for access tokens."""

    def __init__(self, session: AsyncSession, config: AuthConfig) -> None:
        self.session = session
        self.config = config

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        preferred_language: str = "en",
        roles: Iterable[UserRole] = (UserRole.member,),
    ) -> User:
        """Create an active user account.

        Raises:
            ValidationFailed: If a field is invalid or the email is taken
                (code ``user.email.exists``).
        """
        errors: list[str] = []
        validation.check_email(errors, email)
        validation.check_password_strength(errors, password)
        validation.check_text(errors, "First name", first_name, validation.NAME_MAX, required=True)
        validation.check_text(errors, "Last name", last_name, validation.NAME_MAX, required=True)
        validation.check_language(errors, preferred_language)
        validation.raise_if_errors(errors)

        email_taken = ValidationFailed("Email already exists", code="user.email.exists")
        if await queries.email_exists(self.session, email):
            raise email_taken

        async with unit_of_work(self.session, "user", integrity_error=email_taken):
            user = await queries.create_user(
                self.session,
                email=email,
                first_name=first_name,
                last_name=last_name,
                password_hash=hash_password(password, rounds=self.config.bcrypt_rounds),
                preferred_language=preferred_language,
                roles=roles,
            )

        logger.info("user_registered", user_id=str(user.id))
        return user

    async def login(self, email: str, password: str) -> LoginResult:
        """Verify credentials and issue an access token.

        Unknown emails, wrong passwords and inactive accounts all fail the
        same way.

        Raises:
            AuthenticationFailed: If the credentials are not valid.
        """
        user = await queries.get_user_by_email(self.session, email)
        if user is None or not user.can_login or not verify_password(password, user.password_hash):
            logger.info("login_failed", email_domain=email.rpartition("@")[2] or None)
            raise AuthenticationFailed("Invalid credentials")

        token = create_access_token(user, self.config)
        logger.info("login_succeeded", user_id=str(user.id))
        return LoginResult(token=token, user=user)

    async def load_active_user(self, user_id: UUID) -> User:
        """Reload the user named by a token.

        Raises:
            AuthenticationFailed: If the user no longer exists or is inactive.
        """
        user = await queries.get_user(self.session, user_id)
        if user is None or not user.can_login:
            raise AuthenticationFailed("Unauthorized", code="auth.unauthorized")
        return user

    async def get_profile(self, actor: User, user_id: UUID) -> User:
        """Return a user record the actor may read, which is only their own.

        Raises:
            NotFound: If the user does not exist, is deleted or is not the actor.
        """
        user = await queries.get_user(self.session, user_id)
        if not can_access_user(actor.id, user):
            raise NotFound("user")
        return user
