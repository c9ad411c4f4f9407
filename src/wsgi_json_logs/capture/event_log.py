"""Append-only, per-request event log.

An EventLog is created by the middleware for each request, made current
through the capture scope, and filled by the output and logger proxies.
After the handler returns it is read by the recorder and never written again.
"""

from __future__ import annotations

__all__ = ["EventLog"]

import threading
import time
from collections.abc import Iterator
from typing import Any, Callable

from wsgi_json_logs.models.events import LogEvent, Severity
from wsgi_json_logs.system_logger import get_system_logger


class EventLog:
    """Ordered, timestamped sequence of events captured during one request.

    Offsets are taken from ``clock`` (monotonic by default) at append time, so
    within one stream they never decrease. Appends hold a lock so a scope
    carried into worker threads keeps a consistent order.

    Attributes:
        start_time: Clock reading the offsets are measured from.
    """

    def __init__(
        self,
        start_time: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty event log.

        Args:
            start_time: Clock reading at request start. Defaults to ``clock()``.
            clock: Time source in seconds; must match the one used for start_time.
        """
        self._clock = clock
        self.start_time = clock() if start_time is None else start_time
        self._events: list[LogEvent] = []
        self._lock = threading.Lock()

    def record(
        self,
        stream: str,
        body: Any,
        severity: Severity | None = None,
        tag: str | None = None,
    ) -> None:
        """Append an event stamped with the time since start.

        Never raises: a failure to capture is reported to the system logger
        and the request carries on.

        Args:
            stream: Stream name the event belongs to.
            body: Payload as written, or the logger message text.
            severity: Severity for logger calls.
            tag: Optional source label for logger calls.
        """
        try:
            offset = max(0.0, self._clock() - self.start_time)
            event = LogEvent(stream=stream, offset=offset, body=body, severity=severity, tag=tag)
            with self._lock:
                self._events.append(event)
        except Exception as e:
            get_system_logger().warning(
                {
                    "event": "event_capture_failed",
                    "stream": stream,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Failed to capture event on stream {stream!r}: {e}",
                }
            )

    def snapshot(self) -> tuple[LogEvent, ...]:
        """Return the events captured so far, in insertion order."""
        with self._lock:
            return tuple(self._events)

    def __iter__(self) -> Iterator[LogEvent]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._events)

    def __bool__(self) -> bool:
        return bool(self._events)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} events={len(self._events)} at {id(self):#x}>"
