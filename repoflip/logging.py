"""Logging helpers for femtologging integration.

This module centralizes log level normalization, message formatting and the
append-only event log that records inventory fetches, mutation attempts and
their outcomes. The interactive shell owns the terminal, so when an event log
file is configured records are written there instead of stderr.

Example:
>>> from repoflip.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Fetched %d repositories", 12)

"""

from __future__ import annotations

import datetime as dt
import enum
import typing as typ
from pathlib import Path

from femtologging import basicConfig, get_logger

ROOT_LOGGER_NAME = "repoflip"


class LogLevel(enum.StrEnum):
    """Supported log levels for femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Normalize a log level string and report invalid inputs.

    Parameters
    ----------
    level : str | None
        Raw log level string to normalize.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    """
    if not level:
        return ("INFO", True)

    normalized = level.strip().upper()
    if normalized in LogLevel.__members__:
        return (normalized, False)

    return ("INFO", True)


class EventLogHandler:
    """Append timestamped records to the process-local event log.

    femtologging calls ``handle`` from its worker thread for every record
    routed to the logger the handler is attached to. Each record becomes one
    line: ``<ISO timestamp> [LEVEL] <logger>: <message>``.
    """

    def __init__(self, path: Path) -> None:
        """Remember the log path, creating its parent directory."""
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_line(self, logger: str, level: str, message: str) -> str:
        """Render a single event log line without the trailing newline."""
        timestamp = dt.datetime.now(dt.UTC).isoformat(timespec="seconds")
        return f"{timestamp} [{level}] {logger}: {message}"

    def handle(self, logger: str, level: str, message: str) -> None:
        """Append a record to the event log."""
        line = self.format_line(str(logger), str(level), message)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")


# Only one event log handler is attached at a time.
_event_handler: EventLogHandler | None = None


def configure_logging(
    level: str, *, log_file: Path | None = None, force: bool = False
) -> tuple[str, bool]:
    """Configure femtologging and return the normalized level.

    Parameters
    ----------
    level : str
        Raw log level string to normalize.
    log_file : Path | None, optional
        Event log destination. When set, ``repoflip`` loggers write only to
        this file; when ``None`` records go to femtologging's default stderr
        handler.
    force : bool, optional
        Whether to replace any existing handler configuration.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    """
    normalized, invalid = normalize_log_level(level)
    if log_file is None:
        basicConfig(level=normalized, force=force)
        return (normalized, invalid)

    global _event_handler  # noqa: PLW0603
    logger = get_logger(ROOT_LOGGER_NAME)
    logger.set_level(normalized)
    logger.set_propagate(False)
    if _event_handler is not None:
        logger.remove_handler(_event_handler)
    _event_handler = EventLogHandler(log_file)
    logger.add_handler(_event_handler)
    return (normalized, invalid)


def _format_message(template: str, *args: object) -> str:
    """Format a message using percent-style interpolation."""
    return template % args


def format_log_message(template: str, *args: object) -> str:
    """Format a log message using percent-style interpolation.

    Parameters
    ----------
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.

    Returns
    -------
    str
        The formatted message.

    """
    return _format_message(template, *args)


class _SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _log_at_level(
    logger: _SupportsLog,
    level: str,
    message: str,
    *,
    exc_info: object | None = None,
) -> None:
    """Log a pre-formatted message at the specified level."""
    logger.log(
        level,
        message,
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(logger: _SupportsLog, template: str, *args: object) -> None:
    """Log a DEBUG message with percent-style formatting."""
    _log_at_level(logger, "DEBUG", _format_message(template, *args))


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception information to attach to the log record.

    """
    _log_at_level(
        logger,
        "INFO",
        _format_message(template, *args),
        exc_info=exc_info,
    )


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message with percent-style formatting."""
    _log_at_level(
        logger,
        "WARNING",
        _format_message(template, *args),
        exc_info=exc_info,
    )


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message with percent-style formatting."""
    _log_at_level(
        logger,
        "ERROR",
        _format_message(template, *args),
        exc_info=exc_info,
    )


__all__ = [
    "ROOT_LOGGER_NAME",
    "EventLogHandler",
    "configure_logging",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
