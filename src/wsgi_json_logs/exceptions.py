"""Custom exceptions for wsgi-json-logs.

Exceptions are organized into two categories:

Configuration Errors (raised at setup time):
    - ConfigurationError: Invalid middleware option or settings file

Internal Invariant Violations (signal a bug, never expected at runtime):
    - ResponseNotFinishedError: Response fields read before the response was recorded
    - MalformedResponseError: Handler returned a response without a status
    - ScopeError: Capture scope activated while another is active

Exceptions raised by the wrapped handler are never wrapped or replaced;
the middleware re-raises the original object.

Usage:
    from wsgi_json_logs.exceptions import ConfigurationError
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "MalformedResponseError",
    "ResponseNotFinishedError",
    "ScopeError",
]


class ConfigurationError(ValueError):
    """Raised when a middleware option or settings file is invalid.

    Raised at assignment time (e.g. ``middleware.trace_env = ...``), never
    while a request is being handled.

    Attributes:
        option: Name of the offending option, if known.
    """

    def __init__(self, message: str, *, option: str | None = None) -> None:
        super().__init__(message)
        self.option = option


class ResponseNotFinishedError(RuntimeError):
    """Raised when response fields are read before the response is recorded."""


class MalformedResponseError(RuntimeError):
    """Raised when a handler returns no status and no exception occurred."""


class ScopeError(RuntimeError):
    """Raised when a capture scope is activated while another is active.

    Only one scope may be active per thread of control. Nested middleware
    instances must not both capture the same request.
    """
