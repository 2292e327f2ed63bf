"""Tests for the structlog setup in taskhub.logging."""

from __future__ import annotations

import json
import logging
import logging.handlers
from io import StringIO
from pathlib import Path
from typing import Any
from uuid import UUID

import pytest
import structlog

from taskhub.config import LoggingConfig
from taskhub.database.models import TaskStatus
from taskhub.logging import (
    NOISY_LOGGERS,
    add_correlation_id,
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    get_logger,
    plain_values,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def pristine_logging() -> None:
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
    clear_request_context()
    set_correlation_id(None)


def _redirect(stream: StringIO) -> StringIO:
    logging.getLogger().handlers[0].stream = stream  # type: ignore[attr-defined]
    return stream


def _events(stream: StringIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


@pytest.fixture
def json_stream() -> StringIO:
    """Configure INFO-level JSON logging and collect the output."""
    setup_logging(LoggingConfig(level="INFO", format="json"))
    return _redirect(StringIO())


class TestRendering:
    def test_json_event_fields(self, json_stream: StringIO) -> None:
        get_logger("taskhub.tests").info("task_created", task_id="t-1", count=2)

        (event,) = _events(json_stream)
        assert event["event"] == "task_created"
        assert (event["task_id"], event["count"]) == ("t-1", 2)
        assert event["level"] == "info"
        assert event["logger"] == "taskhub.tests"
        assert event["timestamp"].endswith("Z")

    def test_console_renderer_is_not_json(self) -> None:
        setup_logging(LoggingConfig(level="DEBUG", format="console"))
        stream = _redirect(StringIO())

        get_logger("taskhub.tests").debug("project_updated", status="planning")

        rendered = stream.getvalue()
        assert "project_updated" in rendered
        assert "planning" in rendered
        with pytest.raises(json.JSONDecodeError):
            json.loads(rendered)

    def test_enums_and_ids_become_strings(self, json_stream: StringIO) -> None:
        task_id = UUID("12345678-1234-5678-1234-567812345678")

        get_logger("taskhub.tests").info(
            "task_status_changed",
            task_id=task_id,
            to_status=TaskStatus.done,
            statuses=(TaskStatus.todo, TaskStatus.on_hold),
        )

        (event,) = _events(json_stream)
        assert event["task_id"] == "12345678-1234-5678-1234-567812345678"
        assert event["to_status"] == "done"
        assert event["statuses"] == ["todo", "on_hold"]

    def test_scalars_pass_through(self) -> None:
        event = plain_values(None, "info", {"event": "x", "count": 3, "ok": True})

        assert event == {"event": "x", "count": 3, "ok": True}


class TestLevels:
    def test_below_threshold_is_dropped(self, json_stream: StringIO) -> None:
        log = get_logger("taskhub.tests")

        log.debug("too_quiet")
        log.warning("loud_enough")

        assert [e["event"] for e in _events(json_stream)] == ["loud_enough"]

    def test_library_loggers_follow_debug(self) -> None:
        setup_logging(LoggingConfig(level="INFO"))
        assert {logging.getLogger(n).level for n in NOISY_LOGGERS} == {logging.WARNING}

        setup_logging(LoggingConfig(level="DEBUG"))
        assert {logging.getLogger(n).level for n in NOISY_LOGGERS} == {logging.DEBUG}

    def test_repeated_setup_keeps_one_handler(self) -> None:
        setup_logging(LoggingConfig())
        setup_logging(LoggingConfig())

        assert len(logging.getLogger().handlers) == 1


class TestContext:
    def test_correlation_id_is_stamped_while_set(self, json_stream: StringIO) -> None:
        log = get_logger("taskhub.tests")

        set_correlation_id("corr-12345")
        log.info("inside_request")
        set_correlation_id(None)
        log.info("outside_request")

        inside, outside = _events(json_stream)
        assert inside["correlation_id"] == "corr-12345"
        assert "correlation_id" not in outside
        assert get_correlation_id() is None

    def test_processor_without_logger(self) -> None:
        assert add_correlation_id(None, "info", {"event": "e"}) == {"event": "e"}

        set_correlation_id("abc")
        assert add_correlation_id(None, "info", {"event": "e"})["correlation_id"] == "abc"

    def test_bound_user_until_cleared(self, json_stream: StringIO) -> None:
        log = get_logger("taskhub.tests")

        bind_request_context(user_id="user-42", route="/tasks")
        log.info("authenticated_event")
        clear_request_context()
        log.info("anonymous_event")

        bound, cleared = _events(json_stream)
        assert (bound["user_id"], bound["route"]) == ("user-42", "/tasks")
        assert "user_id" not in cleared


def test_rotating_file_output(tmp_path: Path) -> None:
    target = tmp_path / "logs" / "taskhub.log"
    setup_logging(
        LoggingConfig(format="json", file=target, rotation_size_mb=2, retention_count=4)
    )

    (handler,) = logging.getLogger().handlers
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 2 * 1024 * 1024
    assert handler.backupCount == 4

    get_logger("taskhub.tests").info("written_to_file", item="x")
    handler.flush()

    assert json.loads(target.read_text())["item"] == "x"
