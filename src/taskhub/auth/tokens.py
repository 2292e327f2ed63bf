"""JWT access tokens for Taskhub.

Tokens are HS256-signed with ``AuthConfig.secret_key`` and carry the user's
identity and roles so the web layer can authenticate requests without a
session store. The user is still reloaded from the database on every
request, so deactivated accounts are rejected even with a valid token.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
import structlog

from taskhub.config import AuthConfig
from taskhub.database.models.base import utcnow
from taskhub.database.models.user import User
from taskhub.errors import AuthenticationFailed

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    """An encoded access token and its expiry."""

    token: str
    expires_at: datetime


def create_access_token(user: User, config: AuthConfig, now: datetime | None = None) -> IssuedToken:
    """Issue a signed access token for user.

    Claims: sub, name, email, first_name, last_name, preferred_language,
    roles, iss, aud, iat, exp.
    """
    now = now or utcnow()
    expires_at = now + timedelta(minutes=config.expiry_minutes)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "name": user.full_name,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "preferred_language": user.preferred_language,
        "roles": sorted(role.value for role in user.roles),
        "iss": config.issuer,
        "aud": config.audience,
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(claims, config.secret_key, algorithm=config.algorithm)
    return IssuedToken(token=token, expires_at=expires_at)


def decode_access_token(token: str, config: AuthConfig) -> dict[str, Any]:
    """Verify a token's signature, expiry, issuer and audience.

    Returns:
        The decoded claims.

    Raises:
        AuthenticationFailed: If the token is expired, malformed, signed
            with another key or issued for another audience.
    """
    try:
        return jwt.decode(
            token,
            config.secret_key,
            algorithms=[config.algorithm],
            audience=config.audience,
            issuer=config.issuer,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationFailed("Token has expired", code="auth.token.expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("invalid_token", error=str(exc))
        raise AuthenticationFailed("Invalid token", code="auth.token.invalid") from exc


def subject_of(claims: dict[str, Any]) -> UUID:
    """Extract the user id from decoded claims.

    Raises:
        AuthenticationFailed: If ``sub`` is not a UUID.
    """
    try:
        return UUID(str(claims["sub"]))
    except (KeyError, ValueError) as exc:
        raise AuthenticationFailed("Invalid token subject", code="auth.token.invalid") from exc
