"""Shared fixtures for wsgi-json-logs tests.

Provides a request environ factory, a recording formatter, a logger whose
records are kept in memory, and a controllable clock.
"""

from __future__ import annotations

import io
import itertools
import logging
from collections.abc import Callable
from typing import Any

import pytest

from wsgi_json_logs.models.record import TransactionRecord

_logger_ids = itertools.count()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ListHandler(logging.Handler):
    """Keeps every emitted LogRecord."""

    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    @property
    def messages(self) -> list[str]:
        return [record.getMessage() for record in self.records]


class RecordingFormatter:
    """Formatter that keeps every record and the logger it was given."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, TransactionRecord, Any]] = []

    def __call__(self, logger: Any, record: TransactionRecord, environ: Any) -> None:
        self.calls.append((logger, record, environ))

    @property
    def records(self) -> list[TransactionRecord]:
        return [record for _, record, _ in self.calls]

    @property
    def last(self) -> TransactionRecord:
        return self.calls[-1][1]


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_logger() -> Callable[..., tuple[logging.Logger, ListHandler]]:
    """Factory for isolated loggers with an in-memory handler."""

    def _make(level: int = logging.DEBUG) -> tuple[logging.Logger, ListHandler]:
        logger = logging.getLogger(f"tests.wsgi_json_logs.{next(_logger_ids)}")
        logger.setLevel(level)
        logger.propagate = False
        handler = ListHandler()
        logger.addHandler(handler)
        return logger, handler

    return _make


@pytest.fixture
def request_logger(make_logger) -> tuple[logging.Logger, ListHandler]:
    """Logger a server would place in the environ, with its handler."""
    return make_logger()


@pytest.fixture
def formatter() -> RecordingFormatter:
    """Formatter keeping every record it receives."""
    return RecordingFormatter()


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at 100.0 seconds."""
    return FakeClock()


@pytest.fixture
def make_environ() -> Callable[..., dict[str, Any]]:
    """Factory for a minimal request environ; keyword arguments override entries."""

    def _make(**overrides: Any) -> dict[str, Any]:
        environ: dict[str, Any] = {
            "REQUEST_METHOD": "GET",
            "SCRIPT_NAME": "",
            "PATH_INFO": "/test",
            "QUERY_STRING": "foo=bar",
            "SERVER_NAME": "localhost",
            "SERVER_PORT": "80",
            "REMOTE_ADDR": "127.0.0.1",
            "HTTP_USER_AGENT": "pytest",
            "wsgi.url_scheme": "http",
            "wsgi.errors": io.StringIO(),
        }
        environ.update(overrides)
        return environ

    return _make
