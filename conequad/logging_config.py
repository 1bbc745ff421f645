"""Logging configuration utilities for conequad.

conequad is silent by default (the package logger only has a NullHandler).
Progress of the refinement loop is logged at DEBUG, terminal states at
INFO, and the diagnostics attached to a result at WARNING.

Example usage:
    import conequad

    conequad.enable_console_logging(level="DEBUG")
    conequad.enable_file_logging("conequad.log", max_bytes=10_000_000)
    conequad.enable_json_logging()
    conequad.configure_from_env()

Environment variables:
    CONEQUAD_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    CONEQUAD_LOG_FILE: Path to log file (enables rotating file logging)
    CONEQUAD_LOG_JSON: Set to "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from conequad.results import RunResult

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "log_diagnostics",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "conequad"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """Formats log records as one JSON object per line.

    Diagnostics logged through ``log_diagnostics`` carry their kind and
    iteration under ``"diagnostic"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "diagnostic"):
            log_data["diagnostic"] = record.diagnostic
        return json.dumps(log_data)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Remove and close every handler on the conequad logger except NullHandler."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _attach(handler: logging.Handler, level: LogLevel | int) -> None:
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    logger.addHandler(handler)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Enable console (stderr) logging for conequad.

    Args:
        level: Log level name or int.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created StreamHandler.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format, date_format))
    _attach(handler, level)
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    json_format: bool = False,
) -> RotatingFileHandler:
    """Enable rotating file logging for conequad.

    Args:
        path: Path to the log file. Parent directories are created.
        level: Log level name or int.
        max_bytes: Size at which the file is rotated. Default 10 MB.
        backup_count: Number of rotated files to keep.
        json_format: Write one JSON object per record instead of text.

    Returns:
        The created RotatingFileHandler.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, DEFAULT_DATE_FORMAT))
    _attach(handler, level)
    return handler


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Enable JSON console logging for conequad."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    _attach(handler, level)
    return handler


def configure_from_env() -> None:
    """Configure logging from CONEQUAD_* environment variables.

    Does nothing if neither CONEQUAD_LOGGING nor CONEQUAD_LOG_FILE is set.
    """
    level = os.environ.get("CONEQUAD_LOGGING", "").upper()
    log_file = os.environ.get("CONEQUAD_LOG_FILE", "")
    use_json = os.environ.get("CONEQUAD_LOG_JSON", "") == "1"

    if not level and not log_file:
        return

    level = level or "INFO"
    if log_file:
        enable_file_logging(log_file, level=level, json_format=use_json)
    elif use_json:
        enable_json_logging(level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the log level for one submodule, e.g. ``"core.loop"``."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Remove all handlers and silence the conequad logger."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)


def log_diagnostics(result: RunResult, logger: logging.Logger | None = None) -> None:
    """Log every diagnostic attached to ``result`` at WARNING level."""
    logger = logger or _get_logger()
    for diagnostic in result.diagnostics:
        logger.warning(
            "%s (iteration %d)",
            diagnostic.message,
            diagnostic.iteration,
            extra={"diagnostic": diagnostic.to_dict()},
        )
