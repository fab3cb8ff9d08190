"""Stdout logging configuration for the bot runtime process.

Logs always go to stdout. Records carry the bound context plus any
``extra={...}`` fields named in :mod:`.fields`, rendered either as JSON lines or
as a plain line with ``key=value`` suffixes.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from . import fields
from .context import bind_context, get_context

# Extra fields promoted into structured output when present on a record.
_STRUCTURED_EXTRAS = (
    fields.EVENT,
    fields.SERVICE_KEY,
    fields.DEPENDENCIES,
    fields.COMPOSER_COUNT,
    fields.PLUGIN_NAME,
    fields.SETTINGS_PREFIX,
    fields.CONFIG_PATH,
    fields.ERRORS,
    fields.STAGE,
    fields.APPLICATION_ROOT,
)


class ContextFilter(logging.Filter):
    """Inject the bound logging context into each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_context()
        setattr(record, "context", context)
        for key, value in context.items():
            setattr(record, key, value)
        return True


def _structured_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect bound context and known ``extra`` fields from one record."""
    payload: dict[str, Any] = {}
    context = getattr(record, "context", None)
    if isinstance(context, dict):
        payload.update(context)
    for key in _STRUCTURED_EXTRAS:
        if hasattr(record, key):
            payload[key] = getattr(record, key)
    return payload


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON logs with stable core fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.now(UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(_structured_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that still appends structured context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        structured = _structured_fields(record)
        if not structured:
            return message
        suffix = " ".join(
            f"{key}={value}" for key, value in sorted(structured.items())
        )
        return f"{message} {suffix}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Configure root logging with a single stdout handler.

    Existing root handlers are replaced, so calling this more than once does
    not duplicate emissions.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root.addHandler(handler)

    seed_context: dict[str, str] = {}
    if service:
        seed_context[fields.SERVICE] = service
    if environment:
        seed_context[fields.ENVIRONMENT] = environment
    if seed_context:
        bind_context(**seed_context)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger using Python's standard logging hierarchy."""
    return logging.getLogger(name)
