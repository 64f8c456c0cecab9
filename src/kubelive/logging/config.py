"""Structured logging configuration using structlog.

The terminal belongs to the TUI while it runs, so by default records only
go to a rotating JSON file. A stderr handler can be requested for plain CLI
invocations.
"""

from __future__ import annotations

import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

LOG_DIR = Path.home() / ".local" / "state" / "kubelive"
LOG_FILE = LOG_DIR / "kubelive.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
RETENTION_DAYS = 30

# Chatty at DEBUG: every watch line and HTTP request
QUIET_LOGGERS = ("kubernetes", "urllib3")

SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _level_for(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def _formatter(renderer: structlog.types.Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=SHARED_PROCESSORS,
    )


def _cleanup_old_logs() -> None:
    """Delete kubelive log files not written to in RETENTION_DAYS."""
    if not LOG_DIR.exists():
        return
    cutoff = time.time() - RETENTION_DAYS * 24 * 60 * 60
    for log_file in LOG_DIR.glob("kubelive.log*"):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
        except OSError:
            # Removed concurrently or not ours to delete; retried next start
            continue


def _setup_file_logging() -> None:
    """Attach the rotating JSON file handler to the root logger."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs()

    handler = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    logging.getLogger().addHandler(handler)


def configure_logging(
    verbose: bool = False,
    debug: bool = False,
    json_output: bool = False,
    console: bool = False,
) -> None:
    """Configure structlog on top of stdlib logging.

    File logs go to ~/.local/state/kubelive/kubelive.log, rotated at 10 MB
    with 5 backups; files older than 30 days are removed at startup.

    Args:
        verbose: Log at INFO.
        debug: Log at DEBUG, with locals in console tracebacks.
        json_output: Render console records as JSON.
        console: Also log to stderr. Leave off while the TUI owns the terminal.
    """
    level = _level_for(verbose, debug)

    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    if console:
        if json_output:
            renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=debug),
            )
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(_formatter(renderer))
        root.addHandler(stream_handler)

    _setup_file_logging()


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Return a structlog logger, optionally with context already bound.

    Args:
        name: Logger name; None lets structlog pick the caller's module.
        **initial_context: Key/value pairs bound to every record.
    """
    logger: structlog.BoundLogger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
