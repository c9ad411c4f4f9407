"""Human-readable console formatter.

Renders a record as log lines meant for a developer terminal:

    0.0320s 200 - GET "/test?foo=bar"          INFO, green (2xx) / red (3xx-5xx) / cyan
    Exception: ValueError boom                 ERROR, failed requests only
      app.py:12:in view                        DEBUG, one per backtrace frame
    Request ENV follows:                       DEBUG, when the record has an env
    {'HTTP_HOST': 'localhost', ...}            DEBUG, one call per pprint line

When the record carries a request id, every line is prefixed ``"<id>| "``.
"""

from __future__ import annotations

__all__ = [
    "PrettyFormatter",
    "status_color",
]

import json
import logging
import pprint
from collections.abc import Mapping
from typing import Any

import click

from wsgi_json_logs.models.record import TransactionRecord


def status_color(status: int) -> str:
    """Terminal color for a status code."""
    if 200 <= status < 300:
        return "green"
    if 300 <= status < 600:
        return "red"
    return "cyan"


class PrettyFormatter:
    """Colorized one-line summary, plus exception and env details when present."""

    def __init__(self, color: bool = True, width: int = 80) -> None:
        """Initialize the formatter.

        Args:
            color: Whether to colorize the summary line.
            width: Line width for the env dump.
        """
        self.color = color
        self.width = width

    def summary(self, record: TransactionRecord) -> str:
        """Summary line: duration, status, method and quoted path."""
        line = "%05.4fs %i - %s %s" % (
            record.response.duration,
            record.response.status,
            record.request.method,
            json.dumps(record.request.path, ensure_ascii=False),
        )
        if not self.color:
            return line
        return click.style(line, fg=status_color(record.response.status))

    def __call__(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
        record: TransactionRecord,
        environ: Mapping[str, Any],
    ) -> None:
        tag = f"{record.id}| " if record.id else ""

        _emit(logger, logging.INFO, tag, self.summary(record))

        if record.exception is not None:
            _emit(logger, logging.ERROR, tag, f"Exception: {record.exception.class_name} {record.exception.message}")
            for frame in record.exception.backtrace:
                _emit(logger, logging.DEBUG, tag, f"  {frame}")

        if record.env is not None:
            _emit(logger, logging.DEBUG, tag, "Request ENV follows:")
            _emit(logger, logging.DEBUG, tag, pprint.pformat(record.env, width=self.width, sort_dicts=False))


def _emit(logger: logging.Logger | logging.LoggerAdapter, level: int, tag: str, message: str) -> None:
    """Log each line of ``message`` separately, prefixed with the tag."""
    for line in message.split("\n"):
        logger.log(level, tag + line)
