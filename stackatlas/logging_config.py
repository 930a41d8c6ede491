"""
Logging for StackAtlas.

Log lines carry a context of correlation fields: the request id, the
authenticated user and, inside a review, the contribution being decided.
Fields are bound with ``log_context`` (scoped) or ``add_log_context``
(rest of the current request) and show up on every record logged while
they are bound, in both the JSON and the console format.

Usage:
    from stackatlas.logging_config import get_logger, log_context
    logger = get_logger(__name__)

    with log_context(contribution_id=str(cid)):
        logger.info("Contribution approved", extra={"stack_id": str(sid)})
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional

_log_context: ContextVar[Mapping[str, str]] = ContextVar("stackatlas_log_context", default={})

# Attribute names of a bare LogRecord; anything else on a record came from extra=
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "context",
}

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpx")


def _merge(fields: Mapping[str, Any]) -> Dict[str, str]:
    merged = dict(_log_context.get())
    merged.update({key: str(value) for key, value in fields.items() if value is not None})
    return merged


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind correlation fields for the duration of the block."""
    token = _log_context.set(_merge(fields))
    try:
        yield
    finally:
        _log_context.reset(token)


def add_log_context(**fields: Any) -> None:
    """Bind correlation fields until the enclosing ``log_context`` exits."""
    _log_context.set(_merge(fields))


def current_log_context() -> Dict[str, str]:
    return dict(_log_context.get())


def get_request_id() -> Optional[str]:
    return _log_context.get().get("request_id")


class LogContextFilter(logging.Filter):
    """Copy the bound correlation fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = current_log_context()
        return True


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and value is not None
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record: context fields first, then extra= fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", {}))
        entry.update(_extras(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``12:00:01 INFO  [stackatlas.x] message key=value ...``"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-5s [%(name)s] %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {**getattr(record, "context", {}), **_extras(record)}
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        head, sep, trace = line.partition("\n")
        return f"{head} {pairs}{sep}{trace}"


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install one stderr handler on the root logger.

    Production logs JSON; every other environment logs console lines.
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else ConsoleFormatter())
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
