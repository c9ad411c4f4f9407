"""Execution scope: which EventLog, if any, captures output right now.

The association lives in a ContextVar. Every thread starts with its own empty
context and every asyncio task runs in a copy of its creator's context, so the
lookup done by the proxies on each write is specific to the calling thread of
control. No process-wide pointer is read or written.

Work handed to another thread does not inherit the scope. Carry it explicitly:

    event_log = environ[EVENT_LOG_KEY]
    executor.submit(carry_scope(task, event_log))

or wrap the worker body in ``activate(event_log)``.
"""

from __future__ import annotations

__all__ = [
    "activate",
    "carry_scope",
    "current_event_log",
    "event_log_var",
]

import functools
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, TypeVar

from wsgi_json_logs.capture.event_log import EventLog
from wsgi_json_logs.exceptions import ScopeError

T = TypeVar("T")

event_log_var: ContextVar[EventLog | None] = ContextVar("wsgi_json_logs_event_log", default=None)
"""EventLog receiving captured output for the current thread of control."""


def current_event_log() -> EventLog | None:
    """Get the EventLog of the active scope.

    Returns:
        EventLog | None: The capturing log, or None when no scope is active.
    """
    return event_log_var.get()


@contextmanager
def activate(event_log: EventLog) -> Iterator[EventLog]:
    """Make ``event_log`` the capture target for the current thread of control.

    The previous state is restored on exit, whatever the exit path.

    Args:
        event_log: Log that should receive captured output.

    Yields:
        EventLog: The activated log.

    Raises:
        ScopeError: If a different scope is already active in this context.
    """
    active = event_log_var.get()
    if active is not None and active is not event_log:
        raise ScopeError(f"Capture scope already active ({active!r}); scopes cannot be nested")

    token = event_log_var.set(event_log)
    try:
        yield event_log
    finally:
        event_log_var.reset(token)


def carry_scope(fn: Callable[..., T], event_log: EventLog | None = None) -> Callable[..., T]:
    """Wrap ``fn`` so it runs under a scope wherever it is called.

    Args:
        fn: Callable to run, typically submitted to a thread pool.
        event_log: Log to capture into. Defaults to the caller's active log.

    Returns:
        Callable: ``fn`` wrapped in ``activate``; ``fn`` itself when there is
        nothing to carry.
    """
    target = event_log if event_log is not None else current_event_log()
    if target is None:
        return fn

    @functools.wraps(fn)
    def run(*args: Any, **kwargs: Any) -> T:
        with activate(target):
            return fn(*args, **kwargs)

    return run
