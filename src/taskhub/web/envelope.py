"""Response envelope for the Taskhub API.

Every response body, success or failure, has the same shape::

    {
        "data": ...,
        "message": "task.created.success",
        "errors": [],
        "success": true,
        "timestamp": "2024-01-01T00:00:00Z",
        "request_id": "...",
        "pagination": {...} | null
    }

``message`` carries a dotted machine-readable code; ``request_id`` is the
request's correlation id when one is set.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import AfterValidator, BaseModel, Field

from taskhub.core.pagination import Page
from taskhub.database.models.base import ensure_utc, utcnow
from taskhub.logging import get_correlation_id

T = TypeVar("T")

# Datetimes read back from SQLite are naive; tag them as UTC before output.
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def _request_id() -> str:
    return get_correlation_id() or str(uuid.uuid4())


class PaginationInfo(BaseModel):
    """Page navigation metadata for list responses."""

    current_page: int
    page_size: int
    total_pages: int
    total_items: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_page(cls, page: Page[Any]) -> PaginationInfo:
        return cls(
            current_page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages,
            total_items=page.total_items,
            has_next=page.has_next,
            has_previous=page.has_previous,
        )


class ApiResponse(BaseModel, Generic[T]):
    """The envelope wrapped around every response body."""

    data: T | None = None
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    success: bool = True
    timestamp: datetime = Field(default_factory=utcnow)
    request_id: str = Field(default_factory=_request_id)
    pagination: PaginationInfo | None = None


def ok(data: Any = None, message: str = "", page: Page[Any] | None = None) -> ApiResponse[Any]:
    """Build a success envelope, with pagination when page is given."""
    return ApiResponse(
        data=data,
        message=message,
        pagination=PaginationInfo.from_page(page) if page is not None else None,
    )


def error_response(
    status_code: int,
    code: str,
    errors: list[str],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render a failure envelope as a JSONResponse."""
    body = ApiResponse[Any](message=code, errors=errors, success=False)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )
