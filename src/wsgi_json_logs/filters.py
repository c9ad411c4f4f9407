"""Trace filters for exception records.

``trace_env`` and ``trace_stack`` accept either a constant boolean or a
predicate. Both forms are resolved once, when the option is assigned, into
one of three filter variants:

    AlwaysTrue        keep everything
    AlwaysFalse       drop everything
    Predicate(fn)     keep what fn accepts

A predicate whose signature cannot take the required number of positional
arguments is rejected at assignment with a ConfigurationError naming the
option, rather than failing later in the middle of a request.
"""

from __future__ import annotations

__all__ = [
    "AlwaysFalse",
    "AlwaysTrue",
    "Predicate",
    "TraceFilter",
    "build_trace_filter",
]

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Union

from wsgi_json_logs.exceptions import ConfigurationError


@dataclass(frozen=True)
class AlwaysTrue:
    """Keep every entry."""

    def __call__(self, *args: Any) -> bool:
        return True


@dataclass(frozen=True)
class AlwaysFalse:
    """Drop every entry."""

    def __call__(self, *args: Any) -> bool:
        return False


@dataclass(frozen=True)
class Predicate:
    """Keep entries the wrapped callable accepts (truthiness of its result)."""

    fn: Callable[..., Any]

    def __call__(self, *args: Any) -> bool:
        return bool(self.fn(*args))


TraceFilter = Union[AlwaysTrue, AlwaysFalse, Predicate]


def build_trace_filter(option: str, value: Any, arity: int) -> TraceFilter:
    """Resolve a ``trace_*`` option value into a filter.

    Args:
        option: Option name, used in error messages (e.g. "trace_env").
        value: Boolean, an existing filter, or a predicate.
        arity: Number of positional arguments the predicate is called with.

    Returns:
        TraceFilter: The resolved filter.

    Raises:
        ConfigurationError: If ``value`` is neither boolean nor a callable
            accepting ``arity`` positional arguments.
    """
    if isinstance(value, (AlwaysTrue, AlwaysFalse, Predicate)):
        return value
    if isinstance(value, bool):
        return AlwaysTrue() if value else AlwaysFalse()

    args_desc = "(key, value)" if arity == 2 else "(frame)"
    if not callable(value):
        raise ConfigurationError(
            f"{option} should be either a boolean or a callable accepting {args_desc}, got {value!r}",
            option=option,
        )

    try:
        signature = inspect.signature(value)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures are taken on trust
        return Predicate(value)

    try:
        signature.bind(*([None] * arity))
    except TypeError as e:
        raise ConfigurationError(
            f"{option} should be either a boolean or a callable accepting {args_desc}: {e}",
            option=option,
        ) from e

    return Predicate(value)
