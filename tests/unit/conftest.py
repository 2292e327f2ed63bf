"""Shared fixtures for unit tests."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from factories import make_project, make_user

from taskhub.database.models import Project, User, utcnow


@pytest.fixture
def owner() -> User:
    return make_user(first_name="Olive", last_name="Owner")


@pytest.fixture
def outsider() -> User:
    return make_user(first_name="Oscar", last_name="Outsider")


@pytest.fixture
def project(owner: User) -> Project:
    return make_project(owner)


@pytest.fixture
def yesterday() -> datetime:
    return utcnow() - timedelta(days=1)
