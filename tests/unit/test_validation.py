"""Unit tests for the field validation helpers."""

from __future__ import annotations

from datetime import timedelta

import pytest

from taskhub.core import validation
from taskhub.database.models import utcnow
from taskhub.errors import ValidationFailed


def collect(check, *args) -> list[str]:  # type: ignore[no-untyped-def]
    errors: list[str] = []
    check(errors, *args)
    return errors


class TestText:
    def test_required_blank(self) -> None:
        assert collect(validation.check_text, "Title", "   ", 10, True) == ["Title is required"]

    def test_optional_blank(self) -> None:
        assert collect(validation.check_text, "Tags", None, 10) == []

    def test_too_long(self) -> None:
        errors = collect(validation.check_text, "Title", "x" * 11, 10)
        assert errors == ["Title must not exceed 10 characters"]


class TestEmail:
    @pytest.mark.parametrize("email", ["a@b.co", "first.last@example.org"])
    def test_valid(self, email: str) -> None:
        assert collect(validation.check_email, email) == []

    @pytest.mark.parametrize("email", ["plain", "a@b", "a b@c.de"])
    def test_invalid(self, email: str) -> None:
        assert collect(validation.check_email, email) == ["Email is not a valid email address"]


class TestPassword:
    def test_strong_password(self) -> None:
        assert collect(validation.check_password_strength, "Secret123") == []

    def test_every_rule_reported(self) -> None:
        errors = collect(validation.check_password_strength, "abc")
        assert len(errors) == 3
        assert any("8 characters" in e for e in errors)
        assert any("uppercase" in e for e in errors)
        assert any("digit" in e for e in errors)

    def test_missing(self) -> None:
        assert collect(validation.check_password_strength, "") == ["Password is required"]


class TestMisc:
    def test_language(self) -> None:
        assert collect(validation.check_language, "fr") == []
        assert len(collect(validation.check_language, "xx")) == 1

    def test_color(self) -> None:
        assert collect(validation.check_color, "#3498db") == []
        assert collect(validation.check_color, None) == []
        assert len(collect(validation.check_color, "blue")) == 1

    def test_date_range(self) -> None:
        now = utcnow()
        assert collect(validation.check_date_range, now, now + timedelta(days=1)) == []
        assert collect(validation.check_date_range, now, now) == [
            "End date must be after start date"
        ]
        assert collect(validation.check_date_range, None, now) == []

    def test_future(self) -> None:
        assert collect(validation.check_future, "Due date", utcnow() + timedelta(hours=1)) == []
        assert collect(validation.check_future, "Due date", utcnow() - timedelta(hours=1)) == [
            "Due date must be in the future"
        ]

    def test_non_negative(self) -> None:
        assert collect(validation.check_non_negative, "Hours", 0) == []
        assert collect(validation.check_non_negative, "Hours", -1) == ["Hours must not be negative"]


def test_raise_if_errors() -> None:
    validation.raise_if_errors([])
    with pytest.raises(ValidationFailed) as exc_info:
        validation.raise_if_errors(["one", "two"])
    assert exc_info.value.errors == ["one", "two"]
    assert exc_info.value.code == "validation.failed"
