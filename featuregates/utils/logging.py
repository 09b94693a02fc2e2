"""Structured logging setup for featuregates."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import Processor

from .config import Settings, get_settings


class _TeeLoggerFactory:
    """Logger factory that writes to both stdout and a log file."""

    def __init__(self, file_path: Path) -> None:
        self._file = open(file_path, "a", buffering=1)  # line-buffered

    def __call__(self, *args: Any, **kwargs: Any) -> "_TeeLogger":
        return _TeeLogger(self._file)


class _TeeLogger:
    """Logger that writes each message to stdout and a file."""

    def __init__(self, file: Any) -> None:
        self._file = file

    def msg(self, message: str) -> None:
        print(message, flush=True)
        self._file.write(message + "\n")

    log = debug = info = warn = warning = msg
    fatal = failure = err = error = critical = msg


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    settings: Settings | None = None,
) -> None:
    """
    Set up structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Output format ('json' or 'text')
        settings: Settings to read; defaults to the cached global settings
    """
    settings = settings or get_settings()
    log_level = (level or settings.logging.level).upper()
    log_format = format_type or settings.logging.format

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    logger_factory: Any = structlog.PrintLoggerFactory(sys.stdout)

    # A log file is optional; in a pod stdout is usually enough
    if settings.logging.file:
        log_file = Path(settings.logging.file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=settings.logging.max_size_mb * 1024 * 1024,
                backupCount=settings.logging.backup_count,
            )
        )
        logger_factory = _TeeLoggerFactory(log_file)

    # Configure standard library logging (for third-party libs like httpx, uvicorn)
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level),
        handlers=handlers,
        force=True,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level)
        ),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__ of the calling module)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)
