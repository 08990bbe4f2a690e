"""
Structured logging for the slack alert bridge.

Console output is plain text by default, or JSON when requested.
An optional rotating JSONL file receives the same events.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from slack_alert.config import LoggingConfig

if TYPE_CHECKING:
    from structlog.types import Processor

SERVICE_NAME = "2steps-slack-alert"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

NOISY_LIBRARIES = ("aio_pika", "aiormq", "pamqp", "httpx", "httpcore", "asyncio")


class JSONLRotatingHandler(RotatingFileHandler):
    """Rotating file handler writing one JSON object per line."""

    def __init__(
        self,
        filename: str | Path,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        encoding: str = "utf-8",
    ):
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            filename=str(path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=encoding,
        )


def _add_service_info(
    _logger: logging.Logger, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Add service metadata to each file log entry."""
    event_dict["service"] = SERVICE_NAME
    event_dict["pid"] = os.getpid()
    return event_dict


def _add_timestamp_utc(
    _logger: logging.Logger, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _format_exception(
    _logger: logging.Logger, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Format exceptions as structured data instead of multiline strings."""
    if "exception" in event_dict:
        exc_info = event_dict.pop("exception")
        if exc_info:
            event_dict["exception"] = {
                "type": type(exc_info).__name__,
                "message": str(exc_info),
            }
    return event_dict


def setup_logging(
    level: str | None = None,
    format: str | None = None,
    log_file: str | None = None,
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> None:
    """
    Configure structured logging for the process.

    Arguments left as None fall back to the SLACK_ALERT_LOG_* environment
    settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: Console format (json, plain).
        log_file: Path of a JSONL log file. No file output when unset.
        max_bytes: Maximum size per log file before rotation. Default 10MB.
        backup_count: Number of rotated files to keep. Default 5.
    """
    config = LoggingConfig()

    level = level or config.level
    format = format or config.format
    log_file = log_file or config.file
    max_bytes = max_bytes or DEFAULT_MAX_BYTES
    backup_count = backup_count or DEFAULT_BACKUP_COUNT

    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handlers: list[logging.Handler] = []

    if format.lower() == "json":
        console_renderer: Processor = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )

    console_formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.TimeStamper(fmt="iso"),
            console_renderer,
        ],
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    if log_file:
        jsonl_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _add_timestamp_utc,
                _add_service_info,
                _format_exception,
                structlog.processors.JSONRenderer(),
            ],
        )
        file_handler = JSONLRotatingHandler(
            filename=log_file,
            max_bytes=max_bytes,
            backup_count=backup_count,
        )
        file_handler.setFormatter(jsonl_formatter)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, JSONLRotatingHandler):
            handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(log_level)

    for lib in NOISY_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("broker_initialized", exchange="2steps")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log messages in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def with_context(**kwargs: Any) -> Iterator[None]:
    """
    Context manager for temporary context binding.

    Example:
        with with_context(run_id="abc123"):
            logger.info("run_started")
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
