"""Logging helpers for the transactions client."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

from transactions_client.config import load_settings

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# httpx logs every request at INFO; only show that when debugging.
_CHATTY_LOGGERS = ("httpx", "httpcore")

_logging_configured = False
_logging_lock = threading.Lock()

_logger = logging.getLogger(__name__)


def _formatter() -> logging.Formatter:
    return logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)


def _open_file_handler(path: str) -> logging.Handler | None:
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path)
    except OSError as exc:
        _logger.warning("Failed to open log file %s: %s", path, exc)
        return None
    handler.setFormatter(_formatter())
    return handler


def configure_logging(level_override: str | None = None) -> None:
    """Route client logs to stderr and, when ``LOG_FILE`` is set, to a file.

    ``level_override`` takes precedence over ``LOG_LEVEL``; the CLI uses it
    for ``--verbose``.
    """
    global _logging_configured

    settings = load_settings()
    level_name = (level_override or settings.logging.level).upper()
    level = getattr(logging, level_name, logging.INFO)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_formatter())
    handlers: list[logging.Handler] = [stream_handler]

    if settings.logging.file:
        file_handler = _open_file_handler(settings.logging.file)
        if file_handler is not None:
            handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    if not _logging_configured:
        with _logging_lock:
            if not _logging_configured:
                configure_logging()
    return logging.getLogger(name)
