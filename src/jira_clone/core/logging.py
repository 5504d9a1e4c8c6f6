"""JSON logging for the API, websocket sessions and the database layer.

Every line is one JSON object. The request id and the signed-in user id are
taken from :mod:`jira_clone.core.context` unless a call passes them in
``extra``; any other ``extra`` keys are emitted as top-level fields.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Mapping

from .config import Settings
from .context import current

_STANDARD_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}
_CONTEXT_FIELDS = ("request_id", "user_id")

_FRAMEWORK_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JsonLogFormatter(logging.Formatter):
    """Format records as JSON with fixed ``static_fields`` on every line."""

    def __init__(self, static_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        document: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.static_fields,
        }
        context = current()
        for name in _CONTEXT_FIELDS:
            document[name] = getattr(record, name, None) or context[name]

        for name, value in vars(record).items():
            if name in _STANDARD_RECORD_FIELDS or name in document:
                continue
            document[name] = _jsonable(value)

        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            document["stack"] = self.formatStack(record.stack_info)
        return json.dumps(document, ensure_ascii=False, default=str)


class RequestContextFilter(logging.Filter):
    """Copy the bound request and user ids onto records that lack them.

    Handlers that do not use :class:`JsonLogFormatter` can still reference
    ``%(request_id)s`` and ``%(user_id)s``.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for name, value in current().items():
            if not getattr(record, name, None):
                setattr(record, name, value)
        return True


def configure_logging(settings: Settings) -> None:
    """Route the root, uvicorn and SQLAlchemy loggers to one JSON stdout handler."""

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.captureWarnings(True)

    routed = {"handlers": ["stdout"], "level": level, "propagate": False}
    loggers: dict[str, dict[str, Any]] = {name: dict(routed) for name in _FRAMEWORK_LOGGERS}
    loggers["sqlalchemy.engine"] = {
        **routed,
        "level": logging.INFO if settings.db_echo else logging.WARNING,
    }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonLogFormatter,
                    "static_fields": {
                        "service": settings.project_name,
                        "environment": settings.environment,
                    },
                }
            },
            "filters": {"request_context": {"()": RequestContextFilter}},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                    "filters": ["request_context"],
                    "level": level,
                }
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": loggers,
        }
    )


__all__ = ["JsonLogFormatter", "RequestContextFilter", "configure_logging"]
