"""Authentication for Taskhub: bcrypt passwords and PyJWT access tokens."""

from taskhub.auth.passwords import hash_password, verify_password
from taskhub.auth.service import AuthService, LoginResult
from taskhub.auth.tokens import (
    IssuedToken,
    create_access_token,
    decode_access_token,
    subject_of,
)

__all__ = [
    "AuthService",
    "LoginResult",
    "IssuedToken",
    "create_access_token",
    "decode_access_token",
    "subject_of",
    "hash_password",
    "verify_password",
]
