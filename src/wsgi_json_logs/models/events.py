"""Pydantic models for captured request events.

A LogEvent is one captured write or logger call, stamped with its offset from
the start of the request. Events are frozen once created; the EventLog that
holds them is append-only.

Serialization drops None fields, so a raw channel write serializes as
``{"stream", "offset", "body"}`` while a logger call also carries
``severity`` and, when given, ``tag``.
"""

from __future__ import annotations

__all__ = [
    "LogEvent",
    "Severity",
]

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Severity(str, Enum):
    """Fixed set of severities a captured logger call can carry."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_level(cls, level: int) -> "Severity":
        """Map a numeric logging level onto the fixed severity set.

        Custom levels map to the highest standard level not above them;
        anything below DEBUG is DEBUG.

        Args:
            level: Numeric logging level (e.g. ``logging.INFO``, 25).

        Returns:
            Severity: The matching severity.
        """
        if level >= logging.CRITICAL:
            return cls.CRITICAL
        if level >= logging.ERROR:
            return cls.ERROR
        if level >= logging.WARNING:
            return cls.WARNING
        if level >= logging.INFO:
            return cls.INFO
        return cls.DEBUG


class LogEvent(BaseModel):
    """One captured write or log call.

    Attributes:
        stream: Logical channel name ("stdout", "stderr", "wsgi.errors",
            or the logger stream name).
        offset: Seconds since the request started (monotonic clock).
        body: Payload exactly as written (str or bytes), or the logger message text.
        severity: Severity of a logger call; None for raw channel writes.
        tag: Optional source label passed with a logger call.
    """

    stream: str
    offset: float = Field(ge=0.0)
    body: Any = None
    severity: Optional[Severity] = None
    tag: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_serializer("body", when_used="json")
    def _serialize_body(self, body: Any) -> Any:
        if isinstance(body, (bytes, bytearray)):
            return bytes(body).decode("utf-8", errors="replace")
        if body is None or isinstance(body, (str, int, float, bool)):
            return body
        return str(body)
