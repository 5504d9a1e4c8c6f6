from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator

import pytest

from jira_clone.core.config import Settings
from jira_clone.core.context import bound, current
from jira_clone.core.logging import configure_logging


@pytest.fixture()
def json_stream() -> Iterator[io.StringIO]:
    settings = Settings(environment="test", log_level="INFO")
    configure_logging(settings)
    handler = next(
        (h for h in logging.getLogger().handlers if isinstance(h, logging.StreamHandler)),
        None,
    )
    assert handler is not None, "Expected JSON stream handler to be configured"

    buffer = io.StringIO()
    previous_stream = handler.setStream(buffer)
    try:
        yield buffer
    finally:
        handler.flush()
        handler.setStream(previous_stream)


def last_line(buffer: io.StringIO) -> dict:
    lines = buffer.getvalue().strip().splitlines()
    assert lines, "Expected a structured log line to be captured"
    return json.loads(lines[-1])


def test_configure_logging_outputs_json_with_request_context(json_stream: io.StringIO) -> None:
    with bound(request_id="req-json-1", user_id="user-42"):
        logging.getLogger("jira_clone.tests").info("structured log event", extra={"component": "unit-test"})

    payload = last_line(json_stream)
    assert payload["message"] == "structured log event"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-json-1"
    assert payload["user_id"] == "user-42"
    assert payload["component"] == "unit-test"
    assert payload["environment"] == "test"
    assert payload["service"] == "Jira Clone"


def test_explicit_user_id_wins_over_context(json_stream: io.StringIO) -> None:
    logging.getLogger("jira_clone.tests").warning("signed up", extra={"user_id": "explicit"})

    payload = last_line(json_stream)
    assert payload["user_id"] == "explicit"
    assert payload["request_id"] == "-"


def test_exceptions_are_rendered(json_stream: io.StringIO) -> None:
    try:
        raise ValueError("broken")
    except ValueError:
        logging.getLogger("jira_clone.tests").exception("failure")

    payload = last_line(json_stream)
    assert payload["level"] == "ERROR"
    assert "ValueError: broken" in payload["exception"]


def test_bound_context_restores_outer_values() -> None:
    with bound(request_id="outer"):
        with bound(user_id="user-1"):
            assert current() == {"request_id": "outer", "user_id": "user-1"}
        assert current() == {"request_id": "outer", "user_id": "-"}
    assert current() == {"request_id": "-", "user_id": "-"}
