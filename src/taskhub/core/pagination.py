"""Deterministic pagination and task filtering for Taskhub list reads.

``paginate`` works on an already-materialized, already-visible list so the
same ordering and page arithmetic apply to every list endpoint regardless
of how the rows were fetched.

Ordering is newest first by ``created_at`` with ``id`` (descending) as the
tie-breaker. Pages are 1-based; pages below 1 clamp to 1 and pages past the
end return an empty slice with the totals still filled in.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Protocol, TypeVar

from taskhub.database.models.base import ensure_utc
from taskhub.database.models.task import Task, TaskStatus
from taskhub.errors import ValidationFailed

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class Orderable(Protocol):
    id: Any
    created_at: Any


T = TypeVar("T", bound=Orderable)
R = TypeVar("R")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the totals needed to render navigation."""

    items: list[T]
    total_items: int
    total_pages: int
    page: int
    page_size: int
    has_next: bool
    has_previous: bool

    def map(self, fn: Callable[[T], R]) -> Page[R]:
        """Return a copy of this page with fn applied to every item."""
        return Page(
            items=[fn(item) for item in self.items],
            total_items=self.total_items,
            total_pages=self.total_pages,
            page=self.page,
            page_size=self.page_size,
            has_next=self.has_next,
            has_previous=self.has_previous,
        )


def _sort_key(item: Orderable) -> tuple[datetime, str]:
    created = ensure_utc(item.created_at) or _EPOCH
    ident = item.id
    return created, ident.hex if isinstance(ident, uuid.UUID) else str(ident)


def paginate(
    items: Iterable[T],
    page: int,
    page_size: int,
    max_page_size: int | None = None,
) -> Page[T]:
    """Order items newest first and cut out one page.

    Args:
        items: The full visible, filtered result set.
        page: 1-based page number; values below 1 are treated as 1.
        page_size: Items per page; must be positive.
        max_page_size: Optional upper bound page_size is capped to.

    Returns:
        The requested Page.

    Raises:
        ValidationFailed: If page_size is zero or negative.
    """
    if page_size <= 0:
        raise ValidationFailed(
            "Page size must be greater than zero",
            errors=[f"page_size must be >= 1, got {page_size}"],
        )
    if max_page_size is not None:
        page_size = min(page_size, max_page_size)
    page = max(page, 1)

    ordered = sorted(items, key=_sort_key, reverse=True)
    total_items = len(ordered)
    total_pages = math.ceil(total_items / page_size)
    start = (page - 1) * page_size

    return Page(
        items=ordered[start : start + page_size],
        total_items=total_items,
        total_pages=total_pages,
        page=page,
        page_size=page_size,
        has_next=page < total_pages,
        has_previous=page > 1,
    )


@dataclass(frozen=True)
class TaskFilter:
    """Optional equality filters applied to tasks before paging.

    Attributes:
        project_id: Only tasks of this project.
        status: Only tasks in this status.
        assigned_to_id: Only tasks assigned to this user.
    """

    project_id: uuid.UUID | None = None
    status: TaskStatus | None = None
    assigned_to_id: uuid.UUID | None = None

    def matches(self, task: Task) -> bool:
        """True if the task satisfies every set filter."""
        if self.project_id is not None and task.project_id != self.project_id:
            return False
        if self.status is not None and task.status != self.status:
            return False
        if self.assigned_to_id is not None and task.assigned_to_id != self.assigned_to_id:
            return False
        return True

    def apply(self, tasks: Sequence[Task]) -> list[Task]:
        """Return the tasks that satisfy every set filter, order preserved."""
        return [task for task in tasks if self.matches(task)]
