"""Logging setup: readable lines with structured extras and bound batch context."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_LOG_CONTEXT: ContextVar[dict[str, Any]] = ContextVar("plexipedia_log_context", default={})

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
}


@contextmanager
def bind_log_context(**fields: Any) -> Iterator[None]:
    """Attach fields to every record logged inside the block (task-local)."""
    token = _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **fields})
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


class LogContextFilter(logging.Filter):
    """Copy bound context onto records; explicit extras win."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _LOG_CONTEXT.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JSONExtrasFormatter(logging.Formatter):
    """Formatter that outputs a readable log line with extras as JSON.

    Output format:
        2024-01-15 10:30:45 | INFO | app.services.moderation_queue | Revision approved {"revision_id": "c..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        line = f"{self.formatTime(record, self.datefmt)} | {record.levelname:<8} | {record.name} | {record.message}"

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extras:
            line = f"{line} {json.dumps(extras, default=str, ensure_ascii=False, sort_keys=True)}"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        return line


def setup_logging(level: str | None = None) -> None:
    """Configure the 'app' logger; the level defaults to LOG_LEVEL from settings."""
    from app.config import settings

    logger = logging.getLogger("app")
    resolved = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger.setLevel(resolved)

    # Lifespan runs once per TestClient
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JSONExtrasFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
