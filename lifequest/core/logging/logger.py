"""
LifeQuest logging subsystem.

Purpose
-------
One logging setup shared by the engine, the persistence gateway and the CLI:

- JSON lines for the daily log file (and for the console in production)
- Per-action context (user, category, action) carried in a ContextVar and
  stamped onto every record
- A short correlation id so one CLI command can be followed from the
  progression service down to the store
- Non-blocking output through a bounded QueueHandler/QueueListener pair;
  records are dropped, never blocked on, when the queue is full

Public API
----------
- setup_logging() / shutdown_logging()
- get_logger()
- LogContext (sync + async context manager)
- set_log_context() / clear_log_context()
- get_logging_health()

Notes
-----
Nothing is configured on import. Library code only calls ``get_logger``;
the CLI entry point owns ``setup_logging``. Values passed through
``extra={...}`` win over the ambient context.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from lifequest.core.config.config import Config

_log_context: ContextVar[Dict[str, Any]] = ContextVar("lifequest_log_context", default={})

# Fields every record carries after ContextFilter runs
CONTEXT_FIELDS = (
    "user_id",
    "category",
    "action",
    "component",
    "operation",
    "correlation_id",
    "request_id",
)
UNSET = "N/A"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DAILY_LOG_NAME = "lifequest.json.log"
QUEUE_MAX_SIZE = 10_000

# Attributes every LogRecord has; anything else on a record came from extra=
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}


# ============================================================================
# Settings (read from Config at setup time)
# ============================================================================


def _environment() -> str:
    return str(getattr(Config, "ENVIRONMENT", "development")).lower()


def _log_level() -> int:
    name = getattr(Config, "LOG_LEVEL", "INFO")
    level = logging.getLevelName(name.upper()) if isinstance(name, str) else None
    return level if isinstance(level, int) else logging.INFO


def _json_console() -> bool:
    flag = getattr(Config, "LOG_JSON", None)
    return _environment() == "production" if flag is None else bool(flag)


def _logs_dir() -> Path:
    return Path(Config.LOGS_DIR).resolve()


# ============================================================================
# Health
# ============================================================================


@dataclass(slots=True)
class _Counters:
    enqueued: int = 0
    dropped: int = 0


@dataclass(frozen=True, slots=True)
class LoggingHealth:
    initialized: bool
    queue_size: int
    queue_max_size: int
    records_enqueued: int
    records_dropped: int


_counters = _Counters()


# ============================================================================
# Filter & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Stamp the ambient LogContext onto records without overriding extras."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for field in CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, context.get(field) or UNSET)
        if record.component == UNSET:
            record.component = record.name.split(".", 1)[0]
        if record.request_id == UNSET:
            record.request_id = record.correlation_id
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[94m",
        logging.WARNING: "\033[93m",
        logging.ERROR: "\033[91m",
        logging.CRITICAL: "\033[1;91m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        plain = record.levelname
        record.levelname = f"{color}{plain}\033[0m"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context fields are top-level keys (omitted while unset); everything
    passed through ``extra=`` is nested under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(
            (field, value)
            for field in CONTEXT_FIELDS
            if (value := getattr(record, field, None)) not in (None, UNSET)
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Queue Handler & Listener
# ============================================================================


class BoundedQueueHandler(QueueHandler):
    """Drops (and counts) records instead of blocking when the queue is full."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _counters.enqueued += 1
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _counters.dropped += 1
            sys.stderr.write("lifequest: log queue full, record dropped\n")


# ============================================================================
# Setup / Shutdown
# ============================================================================

_listener: Optional[QueueListener] = None
_queue: Optional["queue.Queue[logging.LogRecord]"] = None
_console: Optional[logging.Handler] = None
_INITIALIZED_FLAG = "_lifequest_logging_initialized"


def _console_handler(level: int) -> logging.Handler:
    # stdout is reserved for CLI output
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if _json_console():
        handler.setFormatter(JSONFormatter())
    elif sys.stderr.isatty() and getattr(Config, "LOG_COLORS", True):
        handler.setFormatter(ColoredFormatter(TEXT_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))
    return handler


def _daily_file_handler(level: int) -> logging.Handler:
    directory = _logs_dir()
    directory.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        directory / DAILY_LOG_NAME,
        when="midnight",
        backupCount=7,
        encoding="utf-8",
        utc=True,
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(console_level: Optional[int] = None) -> None:
    """
    Install the queue-backed root handler.

    ``console_level`` moves the console threshold only; the JSON file log
    always uses ``LOG_LEVEL``. Calling again after setup just applies a new
    ``console_level``.
    """
    global _listener, _queue, _console, _counters

    root = logging.getLogger()
    level = _log_level()

    if getattr(root, _INITIALIZED_FLAG, False):
        if console_level is not None and _console is not None:
            _console.setLevel(console_level)
        return

    _counters = _Counters()
    _queue = queue.Queue(QUEUE_MAX_SIZE)
    _console = _console_handler(console_level if console_level is not None else level)
    _listener = QueueListener(
        _queue, _console, _daily_file_handler(level), respect_handler_level=True
    )
    _listener.start()

    handler = BoundedQueueHandler(_queue)
    handler.setLevel(min(level, _console.level))
    handler.addFilter(ContextFilter())

    root.handlers.clear()
    root.addHandler(handler)
    root.addFilter(ContextFilter())
    root.setLevel(handler.level)

    for noisy in ("sqlalchemy.engine", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    setattr(root, _INITIALIZED_FLAG, True)
    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={
            "environment": _environment(),
            "log_level": logging.getLevelName(level),
            "logs_dir": str(_logs_dir()),
        },
    )


def shutdown_logging() -> None:
    """Stop the listener, flushing queued records, and detach root handlers."""
    global _listener, _queue, _console

    root = logging.getLogger()
    if not getattr(root, _INITIALIZED_FLAG, False):
        return

    if _listener is not None:
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
        _listener = None

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for log_filter in list(root.filters):
        if isinstance(log_filter, ContextFilter):
            root.removeFilter(log_filter)

    setattr(root, _INITIALIZED_FLAG, False)
    _queue = None
    _console = None


def get_logging_health() -> LoggingHealth:
    return LoggingHealth(
        initialized=bool(getattr(logging.getLogger(), _INITIALIZED_FLAG, False)),
        queue_size=_queue.qsize() if _queue is not None else 0,
        queue_max_size=_queue.maxsize if _queue is not None else 0,
        records_enqueued=_counters.enqueued,
        records_dropped=_counters.dropped,
    )


# ============================================================================
# Context API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


class LogContext:
    """
    Scope log context to a block.

    Unset fields are inherited from the enclosing context, so nesting a
    ``LogContext(action=...)`` inside ``LogContext(user_id=...)`` keeps the
    user. A new correlation id is generated only at the outermost level.

    Example:
        >>> with LogContext(user_id="u1", category="books", action="award"):
        ...     logger.info("Awarded")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = {key: value for key, value in fields.items() if value is not None}
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        context = {**_log_context.get(), **self.fields}
        if "user_id" in context:
            context["user_id"] = str(context["user_id"])
        context.setdefault(
            "correlation_id", context.get("request_id") or _new_correlation_id()
        )
        self._token = _log_context.set(context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current context (no scoping; see LogContext)."""
    current = dict(_log_context.get())
    current.update((key, value) for key, value in fields.items() if value is not None)
    if "request_id" in current:
        current.setdefault("correlation_id", current["request_id"])
    _log_context.set(current)


def current_log_context() -> Mapping[str, Any]:
    return dict(_log_context.get())


def clear_log_context() -> None:
    _log_context.set({})
