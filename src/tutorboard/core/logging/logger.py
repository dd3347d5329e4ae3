"""
tutorboard logging.

Records are handed to a bounded queue and written by a QueueListener
thread, so an event loop never blocks on a slow console or disk. Output is
JSON in production (and whenever `LOG_JSON` is set) and plain or coloured
text in development; `LOGS_DIR` adds a daily rotating JSON file.

Context
-------
`LogContext` binds fields such as `user_id`, `component`, `operation`
and `correlation_id` to every record emitted inside its block. Contexts
nest: an inner block inherits the outer fields and its own fields win
until it exits. A correlation id is generated only for the outermost
block.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from tutorboard.core.config.config import Config

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DAILY_FILE_NAME = "tutorboard_daily.json.log"
QUEUE_MAX_SIZE = 10_000

_INITIALIZED_FLAG = "_tutorboard_logging_initialized"

_log_context: ContextVar[Dict[str, Any]] = ContextVar("tutorboard_log_context", default={})
_queue_listener: Optional[QueueListener] = None


def _environment() -> str:
    return str(Config.ENVIRONMENT).lower()


def _log_level() -> int:
    level = logging.getLevelName(str(Config.LOG_LEVEL).upper())
    return level if isinstance(level, int) else logging.INFO


def _use_json() -> bool:
    if Config.LOG_JSON is None:
        return _environment() == "production"
    return bool(Config.LOG_JSON)


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        color = self.COLORS.get(plain)
        if color:
            record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields passed through `extra=` and fields bound by LogContext are
    emitted under `context`.
    """

    _RESERVED = frozenset(
        vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in self._RESERVED and not key.startswith("_")
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class DroppingQueueHandler(QueueHandler):
    """Drop records instead of blocking when the queue is full."""

    dropped = 0

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            DroppingQueueHandler.dropped += 1


# ============================================================================
# Setup / Shutdown
# ============================================================================


def _build_handlers() -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if _use_json():
        console.setFormatter(JSONFormatter())
    elif Config.LOG_COLORS and sys.stdout.isatty():
        console.setFormatter(ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT))
    else:
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if Config.LOGS_DIR is not None:
        Config.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        daily = TimedRotatingFileHandler(
            Config.LOGS_DIR / DAILY_FILE_NAME,
            when="midnight",
            backupCount=1,
            encoding="utf-8",
            utc=True,
        )
        daily.setFormatter(JSONFormatter())
        handlers.append(daily)

    return handlers


def setup_logging() -> None:
    """Install the queue handler on the root logger. Idempotent."""
    global _queue_listener

    root = logging.getLogger()
    if getattr(root, _INITIALIZED_FLAG, False):
        return

    level = _log_level()
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_MAX_SIZE)

    _queue_listener = QueueListener(log_queue, *_build_handlers())
    _queue_listener.start()

    handler = DroppingQueueHandler(log_queue)
    handler.addFilter(ContextFilter())
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("asyncio", "aiosqlite", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    setattr(root, _INITIALIZED_FLAG, True)
    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": _environment(),
            "log_level": logging.getLevelName(level),
            "json": _use_json(),
            "logs_dir": str(Config.LOGS_DIR) if Config.LOGS_DIR else None,
        },
    )


def shutdown_logging() -> None:
    """Flush queued records and detach the queue handler."""
    global _queue_listener

    root = logging.getLogger()
    if not getattr(root, _INITIALIZED_FLAG, False):
        return

    if _queue_listener is not None:
        _queue_listener.stop()
        _queue_listener = None

    for handler in list(root.handlers):
        if isinstance(handler, DroppingQueueHandler):
            root.removeHandler(handler)
            handler.close()

    setattr(root, _INITIALIZED_FLAG, False)


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind fields to every record logged inside the block.

    Usable with both `with` and `async with`.
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = {key: value for key, value in fields.items() if value is not None}
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        merged = {**_log_context.get(), **self.fields}
        merged.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def current_log_context() -> Dict[str, Any]:
    """Fields bound by the enclosing LogContext blocks."""
    return dict(_log_context.get())


setup_logging()
