"""Password hashing for Taskhub.

Passwords are hashed with bcrypt; the cost factor comes from
``AuthConfig.bcrypt_rounds``.
"""

from __future__ import annotations

import bcrypt

# bcrypt only considers the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a plaintext password with a fresh salt.

    Args:
        password: The plaintext password.
        rounds: bcrypt cost factor.

    Returns:
        The bcrypt hash as text, suitable for ``User.password_hash``.
    """
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except ValueError:
        return False
