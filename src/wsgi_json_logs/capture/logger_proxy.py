"""Logger proxy that captures log calls made inside a scope.

LoggerProxy is a ``logging.LoggerAdapter``, so handlers use it like any
logger (``log.info(...)``, ``log.exception(...)``). The wrapped logger's
level check always applies first. After that:

- Scope active: the call becomes one LogEvent (severity, formatted message,
  optional ``extra={"source": ...}`` label as tag) and no handler runs.
- No scope: the call is forwarded, and the record reports the caller's
  location rather than this module.
"""

from __future__ import annotations

__all__ = [
    "SOURCE_EXTRA_KEY",
    "LoggerProxy",
]

import logging
import sys
from collections.abc import Mapping, MutableMapping
from typing import Any

from wsgi_json_logs.capture.scope import current_event_log
from wsgi_json_logs.constants import LOGGER_KEY
from wsgi_json_logs.models.events import Severity

# Key in ``extra`` whose value is recorded as the event tag
SOURCE_EXTRA_KEY = "source"

_exception_formatter = logging.Formatter()


class LoggerProxy(logging.LoggerAdapter):
    """Capturing wrapper around a logger.

    Attributes:
        stream_name: Stream name recorded on captured events.
    """

    def __init__(self, logger: logging.Logger | logging.LoggerAdapter, stream_name: str = LOGGER_KEY) -> None:
        """Wrap a logger.

        Args:
            logger: Logger (or adapter) to forward to outside a scope.
            stream_name: Stream name for captured events.
        """
        super().__init__(logger, {})
        self.stream_name = stream_name

    @classmethod
    def wrap(cls, logger: logging.Logger | logging.LoggerAdapter, stream_name: str = LOGGER_KEY) -> LoggerProxy:
        """Wrap ``logger``, re-targeting an existing proxy instead of stacking one.

        Args:
            logger: Logger or LoggerProxy to wrap.
            stream_name: Stream name for captured events.

        Returns:
            LoggerProxy: Proxy forwarding to the innermost real logger.
        """
        if isinstance(logger, LoggerProxy):
            logger = logger.logger
        return cls(logger, stream_name)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        """Pass the caller's keyword arguments (including ``extra``) through untouched."""
        return msg, kwargs

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Capture or forward one log call.

        Args:
            level: Numeric logging level.
            msg: Message or format string.
            *args: Format arguments.
            **kwargs: ``exc_info``, ``extra``, ``stack_info``, ``stacklevel``.
        """
        if not self.isEnabledFor(level):
            return

        event_log = current_event_log()
        if event_log is None:
            kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
            self.logger.log(level, msg, *args, **kwargs)
            return

        event_log.record(
            self.stream_name,
            _message_text(self.logger.name, level, msg, args, kwargs.get("exc_info")),
            severity=Severity.from_level(level),
            tag=_source_label(kwargs.get("extra")),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stream={self.stream_name!r} wrapping {self.logger!r}>"


def _message_text(name: str, level: int, msg: Any, args: tuple[Any, ...], exc_info: Any) -> str:
    """Render a log call's message the way ``LogRecord.getMessage`` would."""
    record = logging.LogRecord(name, level, "", 0, msg, args or None, None)
    try:
        text = record.getMessage()
    except (TypeError, ValueError, KeyError):
        text = f"{msg} {args!r}"

    if exc_info:
        if isinstance(exc_info, BaseException):
            exc_info = (type(exc_info), exc_info, exc_info.__traceback__)
        elif not isinstance(exc_info, tuple):
            exc_info = sys.exc_info()
        if exc_info[0] is not None:
            text = f"{text}\n{_exception_formatter.formatException(exc_info)}"
    return text


def _source_label(extra: Any) -> str | None:
    """Extract the optional source label from a log call's ``extra``."""
    if isinstance(extra, Mapping) and extra.get(SOURCE_EXTRA_KEY) is not None:
        return str(extra[SOURCE_EXTRA_KEY])
    return None
