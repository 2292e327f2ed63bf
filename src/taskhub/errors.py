"""Error taxonomy for Taskhub.

Every failure a caller can observe is one of the TaskhubError subclasses
below. Each carries a machine-readable ``code`` and a list of human-readable
``errors`` so the web layer can render the response envelope without
inspecting the exception type further.

Reads of entities the caller cannot see raise NotFound whether or not the
row exists; writes against a parent the caller cannot see raise
AccessDenied whether or not the parent exists.
"""

from __future__ import annotations


class TaskhubError(Exception):
    """Base class for all expected Taskhub failures.

    Attributes:
        code: Dotted machine-readable error code.
        errors: Human-readable error details.
        status_code: HTTP status the web layer responds with.
    """

    status_code: int = 500
    default_code: str = "internal.server.error"

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        code: str | None = None,
    ) -> None:
        self.code = code or self.default_code
        self.errors = errors if errors is not None else [message]
        super().__init__(message)


class ValidationFailed(TaskhubError):
    """Malformed or missing input."""

    status_code = 400
    default_code = "validation.failed"


class AuthenticationFailed(TaskhubError):
    """Credentials or bearer token could not be verified."""

    status_code = 401
    default_code = "auth.invalid.credentials"


class AccessDenied(TaskhubError):
    """The access policy rejected the request."""

    status_code = 403
    default_code = "access.denied"

    def __init__(self, entity: str, errors: list[str] | None = None) -> None:
        super().__init__(
            f"Access to {entity} denied",
            errors=errors,
            code=f"{entity}.access.denied",
        )
        self.entity = entity


class NotFound(TaskhubError):
    """Entity absent, deleted, or outside the caller's visible set."""

    status_code = 404
    default_code = "not.found"

    def __init__(self, entity: str, errors: list[str] | None = None) -> None:
        super().__init__(
            f"{entity.capitalize()} not found",
            errors=errors,
            code=f"{entity}.not.found",
        )
        self.entity = entity


class ConcurrencyConflict(TaskhubError):
    """The entity changed since the caller loaded it; reload and retry."""

    status_code = 409
    default_code = "concurrency.conflict"

    def __init__(
        self,
        entity: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ) -> None:
        message = f"{entity.capitalize()} was modified by another request"
        if expected_version is not None and actual_version is not None:
            message += f" (expected version {expected_version}, found {actual_version})"
        super().__init__(message)
        self.entity = entity
        self.expected_version = expected_version
        self.actual_version = actual_version


class StorageUnavailable(TaskhubError):
    """The entity store could not be reached or failed mid-operation."""

    status_code = 503
    default_code = "storage.unavailable"
