"""Unit tests for the error taxonomy."""

from __future__ import annotations

import pytest

from taskhub.errors import (
    AccessDenied,
    AuthenticationFailed,
    ConcurrencyConflict,
    NotFound,
    StorageUnavailable,
    TaskhubError,
    ValidationFailed,
)


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (ValidationFailed("bad"), 400, "validation.failed"),
        (AuthenticationFailed("nope"), 401, "auth.invalid.credentials"),
        (AccessDenied("project"), 403, "project.access.denied"),
        (NotFound("task"), 404, "task.not.found"),
        (ConcurrencyConflict("task"), 409, "concurrency.conflict"),
        (StorageUnavailable("down"), 503, "storage.unavailable"),
    ],
)
def test_status_and_code(error: TaskhubError, status_code: int, code: str) -> None:
    assert isinstance(error, TaskhubError)
    assert error.status_code == status_code
    assert error.code == code


def test_message_becomes_default_error() -> None:
    error = ValidationFailed("Title is required")
    assert error.errors == ["Title is required"]
    assert str(error) == "Title is required"


def test_explicit_errors_and_code() -> None:
    error = ValidationFailed("Email already exists", errors=[], code="user.email.exists")
    assert error.errors == []
    assert error.code == "user.email.exists"


def test_not_found_message() -> None:
    assert NotFound("project").errors == ["Project not found"]


def test_conflict_reports_versions() -> None:
    error = ConcurrencyConflict("task", expected_version=2, actual_version=3)
    assert error.expected_version == 2
    assert error.actual_version == 3
    assert "expected version 2, found 3" in str(error)
