"""Field validation rules shared by the services and the auth layer.

Each ``check_*`` function collects human-readable problems into a list;
``raise_if_errors`` turns a non-empty list into one ValidationFailed so the
caller sees every problem with a request at once.
"""

from __future__ import annotations

import re
from datetime import datetime

from taskhub.database.models.base import ensure_utc, utcnow
from taskhub.database.models.user import SUPPORTED_LANGUAGES
from taskhub.errors import ValidationFailed

EMAIL_MAX = 256
NAME_MAX = 100
PASSWORD_MIN = 8
PROJECT_NAME_MAX = 200
PROJECT_DESCRIPTION_MAX = 1000
TASK_TITLE_MAX = 300
TASK_DESCRIPTION_MAX = 2000
TASK_TAGS_MAX = 500
COMMENT_MAX = 2000

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def raise_if_errors(errors: list[str], message: str = "Validation failed") -> None:
    """Raise ValidationFailed carrying all collected errors, if any."""
    if errors:
        raise ValidationFailed(message, errors=errors)


def check_text(
    errors: list[str],
    label: str,
    value: str | None,
    max_length: int,
    required: bool = False,
) -> None:
    if value is None or not value.strip():
        if required:
            errors.append(f"{label} is required")
        return
    if len(value) > max_length:
        errors.append(f"{label} must not exceed {max_length} characters")


def check_email(errors: list[str], email: str | None) -> None:
    check_text(errors, "Email", email, EMAIL_MAX, required=True)
    if email and email.strip() and not _EMAIL_RE.match(email.strip()):
        errors.append("Email is not a valid email address")


def check_password_strength(errors: list[str], password: str | None) -> None:
    """At least 8 characters with a lowercase letter, an uppercase letter and a digit."""
    if not password:
        errors.append("Password is required")
        return
    if len(password) < PASSWORD_MIN:
        errors.append(f"Password must be at least {PASSWORD_MIN} characters long")
    if not any(c.islower() for c in password):
        errors.append("Password must contain at least one lowercase letter")
    if not any(c.isupper() for c in password):
        errors.append("Password must contain at least one uppercase letter")
    if not any(c.isdigit() for c in password):
        errors.append("Password must contain at least one digit")


def check_language(errors: list[str], language: str | None) -> None:
    if language is not None and language not in SUPPORTED_LANGUAGES:
        errors.append(
            f"Preferred language must be one of: {', '.join(SUPPORTED_LANGUAGES)}"
        )


def check_color(errors: list[str], color: str | None) -> None:
    if color is not None and not _COLOR_RE.match(color):
        errors.append("Color must be a valid hex color code (e.g. #3498db)")


def check_date_range(
    errors: list[str],
    start_date: datetime | None,
    end_date: datetime | None,
) -> None:
    start, end = ensure_utc(start_date), ensure_utc(end_date)
    if start is not None and end is not None and end <= start:
        errors.append("End date must be after start date")


def check_future(errors: list[str], label: str, value: datetime | None) -> None:
    due = ensure_utc(value)
    if due is not None and due <= utcnow():
        errors.append(f"{label} must be in the future")


def check_non_negative(errors: list[str], label: str, value: int | None) -> None:
    if value is not None and value < 0:
        errors.append(f"{label} must not be negative")
