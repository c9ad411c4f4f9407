"""System logger for operational events.

This module provides the package's own loggers, kept apart from the
transaction records it produces:

- System logger (``wsgi-json-logs.system``): problems inside the middleware
  itself, e.g. a failing formatter or an unparseable Content-Length header.
  Written to stderr, never captured into a request's event log.
- Default request logger (``wsgi-json-logs.requests``): where formatters emit
  transaction records when neither an explicit logger nor a request logger
  is available. Message-only output to stdout.

Both loggers are created once and reused.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "get_default_request_logger",
    "get_system_logger",
]

import logging
import sys

from wsgi_json_logs.constants import APP_NAME


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts 'message' or 'event' field from dict messages for cleaner stderr output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human-readable console output.

        Args:
            record: The log record to format.

        Returns:
            str: Formatted log message with level prefix.
        """
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
        else:
            msg = record.getMessage()
        line = f"{record.levelname}: {msg}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


# Module-level singletons - initialized on first use
_system_logger: logging.Logger | None = None
_default_request_logger: logging.Logger | None = None


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Handler binds to the real process stderr (``sys.__stderr__``) so that
    operational warnings are never mistaken for request output, even while
    stdio capture is installed.

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "formatter_failed", "message": "..."})
    """
    global _system_logger

    if _system_logger is not None:
        return _system_logger

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.INFO)
    _system_logger.propagate = False

    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.__stderr__ or sys.stderr)
    stderr_handler.setLevel(logging.INFO)
    stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(stderr_handler)

    return _system_logger


def get_default_request_logger() -> logging.Logger:
    """Get the process default logger used for transaction records.

    Logs at DEBUG and above, one message per line with no prefix, so that a
    JSON record line reaches stdout exactly as the formatter built it.

    Returns:
        logging.Logger: Configured default request logger.
    """
    global _default_request_logger

    if _default_request_logger is not None:
        return _default_request_logger

    _default_request_logger = logging.getLogger(f"{APP_NAME}.requests")
    _default_request_logger.setLevel(logging.DEBUG)
    _default_request_logger.propagate = False

    for handler in _default_request_logger.handlers:
        handler.close()
    _default_request_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.__stdout__ or sys.stdout)
    stdout_handler.setFormatter(logging.Formatter("%(message)s"))
    _default_request_logger.addHandler(stdout_handler)

    return _default_request_logger
