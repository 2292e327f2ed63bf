"""Unit tests for paginate and TaskFilter."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from factories import make_project, make_task, make_user

from taskhub.core.pagination import TaskFilter, paginate
from taskhub.database.models import TaskStatus
from taskhub.errors import ValidationFailed

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


@dataclass
class Row:
    id: uuid.UUID
    created_at: datetime


def rows(count: int) -> list[Row]:
    return [Row(id=uuid.uuid4(), created_at=BASE + timedelta(minutes=i)) for i in range(count)]


class TestPaginate:
    def test_first_page_of_25(self) -> None:
        page = paginate(rows(25), 1, 10)
        assert len(page.items) == 10
        assert page.total_items == 25
        assert page.total_pages == 3
        assert page.has_next is True
        assert page.has_previous is False

    def test_last_partial_page(self) -> None:
        page = paginate(rows(25), 3, 10)
        assert len(page.items) == 5
        assert page.has_next is False
        assert page.has_previous is True

    def test_page_past_end_is_empty_with_totals(self) -> None:
        page = paginate(rows(25), 4, 10)
        assert page.items == []
        assert page.total_items == 25
        assert page.total_pages == 3

    def test_newest_first(self) -> None:
        items = rows(5)
        page = paginate(items, 1, 10)
        assert page.items == list(reversed(items))

    def test_ties_broken_by_id_descending(self) -> None:
        a = Row(id=uuid.UUID(int=1), created_at=BASE)
        b = Row(id=uuid.UUID(int=2), created_at=BASE)
        assert paginate([a, b], 1, 10).items == [b, a]

    def test_naive_and_aware_timestamps_compare(self) -> None:
        naive = Row(id=uuid.uuid4(), created_at=datetime(2024, 1, 2))
        aware = Row(id=uuid.uuid4(), created_at=BASE)
        assert paginate([aware, naive], 1, 10).items == [naive, aware]

    def test_page_below_one_clamps(self) -> None:
        page = paginate(rows(3), 0, 2)
        assert page.page == 1
        assert len(page.items) == 2

    @pytest.mark.parametrize("size", [0, -5])
    def test_non_positive_page_size_rejected(self, size: int) -> None:
        with pytest.raises(ValidationFailed):
            paginate(rows(3), 1, size)

    def test_page_size_capped(self) -> None:
        page = paginate(rows(30), 1, 500, max_page_size=20)
        assert page.page_size == 20
        assert len(page.items) == 20
        assert page.total_pages == 2

    def test_empty_input(self) -> None:
        page = paginate([], 1, 10)
        assert page.items == []
        assert page.total_pages == 0
        assert page.has_next is False

    def test_map_keeps_totals(self) -> None:
        page = paginate(rows(12), 2, 5).map(lambda row: row.id)
        assert len(page.items) == 5
        assert all(isinstance(item, uuid.UUID) for item in page.items)
        assert page.total_items == 12
        assert page.page == 2


class TestTaskFilter:
    def test_empty_filter_matches_everything(self) -> None:
        owner = make_user()
        task = make_task(make_project(owner), owner)
        task_filter = TaskFilter()
        assert task_filter.matches(task) is True

    def test_filters_combine(self) -> None:
        owner = make_user()
        helper = make_user()
        project = make_project(owner)
        other = make_project(owner)
        wanted = make_task(project, owner, status=TaskStatus.in_progress, assignee=helper)
        tasks = [
            wanted,
            make_task(project, owner, status=TaskStatus.todo, assignee=helper),
            make_task(other, owner, status=TaskStatus.in_progress, assignee=helper),
            make_task(project, owner, status=TaskStatus.in_progress),
        ]
        task_filter = TaskFilter(
            project_id=project.id,
            status=TaskStatus.in_progress,
            assigned_to_id=helper.id,
        )
        assert task_filter.apply(tasks) == [wanted]
