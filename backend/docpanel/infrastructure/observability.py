"""Structured Logging — JSON records tagged with the stream they belong to.

Invariants:
    - Every record carries timestamp, level, logger and message
    - Records emitted inside a stream task carry its session_id even when
      the call site passes no extra
    - setup_logging is idempotent: repeated lifespans never stack handlers

Design Decisions:
    - JSONFormatter on stdlib logging, no third-party log library
    - Session binding via a ContextVar: each stream runs in its own task,
      so the binding never leaks into a sibling stream
"""

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

_current_session: ContextVar[str | None] = ContextVar(
    "docpanel_session_id", default=None,
)

_EXTRA_FIELDS = (
    "session_id", "document_type", "tool_name", "tool_call_id",
    "error_code", "outcome", "input_tokens", "output_tokens", "page_count",
)

# SDK and HTTP transport log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")


@contextmanager
def bind_session(session_id: str):
    """Tag every record logged in this context with session_id."""
    token = _current_session.set(session_id)
    try:
        yield
    finally:
        _current_session.reset(token)


class SessionContextFilter(logging.Filter):
    """Fill record.session_id from the bound stream when the caller omitted it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "session_id", None) is None:
            session_id = _current_session.get()
            if session_id is not None:
                record.session_id = session_id
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; unset extras are omitted."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log.update({
            key: record.__dict__[key]
            for key in _EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    handler = logging.StreamHandler()
    handler.set_name("docpanel")
    handler.addFilter(SessionContextFilter())
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(session_id)s] %(message)s",
            defaults={"session_id": "-"},
        ))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "docpanel":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
