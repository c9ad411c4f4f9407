"""Request logging middleware.

JsonLogsMiddleware wraps a handler ``app(environ) -> (status, headers, body)``
and produces exactly one TransactionRecord per request:

1. Open a capture scope with a fresh EventLog for the calling thread.
2. Substitute output channels: ``sys.stdout``/``sys.stderr`` (process-wide,
   reference counted), ``environ["wsgi.errors"]`` and the request logger at
   ``environ["wsgi_json_logs.logger"]``.
3. Call the handler, keeping either its response or its exception.
4. Restore every substituted channel and close the scope (``finally``).
5. Build the record and hand it to the formatter.
6. Re-raise the handler's exception, or return its response unchanged.

The middleware is a pass-through, not an error boundary: it never turns an
exception into a response.
"""

from __future__ import annotations

__all__ = [
    "JsonLogsMiddleware",
]

import logging
import time
from collections.abc import Iterator, MutableMapping
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING, Any, Callable

from wsgi_json_logs.capture.event_log import EventLog
from wsgi_json_logs.capture.logger_proxy import LoggerProxy
from wsgi_json_logs.capture.output_proxy import OutputProxy, stdio_capture
from wsgi_json_logs.capture.scope import activate
from wsgi_json_logs.constants import (
    ERRORS_KEY,
    EVENT_LOG_KEY,
    HANDLED_ERROR_KEYS,
    LOGGER_KEY,
)
from wsgi_json_logs.exceptions import ConfigurationError
from wsgi_json_logs.filters import TraceFilter, build_trace_filter
from wsgi_json_logs.formatters.json_formatter import JSONFormatter
from wsgi_json_logs.formatters.protocol import Formatter
from wsgi_json_logs.models.record import TransactionRecord
from wsgi_json_logs.recorder import TransactionRecorder
from wsgi_json_logs.system_logger import get_default_request_logger, get_system_logger

if TYPE_CHECKING:
    from wsgi_json_logs.config import MiddlewareSettings

Handler = Callable[[MutableMapping[str, Any]], Any]
AnyLogger = logging.Logger | logging.LoggerAdapter

_MISSING = object()


class JsonLogsMiddleware:
    """Captures a request's output and logs it as one structured record.

    Options can be changed after construction; ``trace_env``, ``trace_stack``
    and ``formatter`` are validated when assigned.

    Attributes:
        app: Wrapped handler.
        logger: Explicit logger for records; None to use the request's logger.
        capture_stdio: Whether ``sys.stdout``/``sys.stderr`` writes are captured.
        error_keys: Environ slots checked for exceptions a framework handled itself.
    """

    def __init__(
        self,
        app: Handler,
        *,
        logger: AnyLogger | None = None,
        formatter: Formatter | None = None,
        trace_env: bool | Callable[[str, Any], Any] = True,
        trace_stack: bool | Callable[[str], Any] = True,
        capture_stdio: bool = True,
        error_keys: tuple[str, ...] = HANDLED_ERROR_KEYS,
        clock: Callable[[], float] = time.monotonic,
        configure: Callable[[JsonLogsMiddleware], None] | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: Handler called with the request environ.
            logger: Logger passed to the formatter. Defaults to the request's
                own logger, then to the package default request logger.
            formatter: Record sink. Defaults to JSONFormatter.
            trace_env: Boolean or ``(key, value)`` predicate selecting environ
                entries for records of failed requests.
            trace_stack: Boolean or ``(frame)`` predicate selecting backtrace frames.
            capture_stdio: Capture ``sys.stdout``/``sys.stderr`` writes.
            error_keys: Environ slots checked, in order, for handled exceptions.
            clock: Monotonic time source in seconds.
            configure: Called with the new middleware to adjust options.

        Raises:
            ConfigurationError: If an option is invalid.
        """
        self.app = app
        self.logger = logger
        self.formatter = formatter if formatter is not None else JSONFormatter()
        self.trace_env = trace_env
        self.trace_stack = trace_stack
        self.capture_stdio = capture_stdio
        self.error_keys = tuple(error_keys)
        self._clock = clock

        if configure is not None:
            configure(self)

    @classmethod
    def from_settings(
        cls,
        app: Handler,
        settings: MiddlewareSettings,
        **overrides: Any,
    ) -> JsonLogsMiddleware:
        """Create a middleware from validated settings.

        Args:
            app: Handler to wrap.
            settings: Loaded settings.
            **overrides: Constructor options taking precedence over settings.

        Returns:
            JsonLogsMiddleware: Configured middleware.
        """
        options = settings.middleware_options()
        options.update(overrides)
        return cls(app, **options)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    @property
    def trace_env(self) -> TraceFilter:
        """Filter applied to environ entries of failed requests."""
        return self._trace_env_filter

    @trace_env.setter
    def trace_env(self, value: bool | Callable[[str, Any], Any]) -> None:
        self._trace_env_filter = build_trace_filter("trace_env", value, arity=2)

    @property
    def trace_stack(self) -> TraceFilter:
        """Filter applied to backtrace frames."""
        return self._trace_stack_filter

    @trace_stack.setter
    def trace_stack(self, value: bool | Callable[[str], Any]) -> None:
        self._trace_stack_filter = build_trace_filter("trace_stack", value, arity=1)

    @property
    def formatter(self) -> Formatter:
        """Record sink called once per request."""
        return self._formatter

    @formatter.setter
    def formatter(self, value: Formatter) -> None:
        if not callable(value):
            raise ConfigurationError(
                "formatter should be a callable accepting (logger, record, environ)",
                option="formatter",
            )
        self._formatter = value

    def effective_logger(self, environ: MutableMapping[str, Any]) -> AnyLogger:
        """Logger handed to the formatter: explicit, request, then default."""
        if self.logger is not None:
            return self.logger
        request_logger = environ.get(LOGGER_KEY)
        if request_logger is not None:
            return request_logger
        return get_default_request_logger()

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    def __call__(self, environ: MutableMapping[str, Any]) -> Any:
        """Handle one request.

        Args:
            environ: Request environ. Only the channel and logger entries are
                substituted while the handler runs; all are restored afterwards.

        Returns:
            The handler's response, unchanged.

        Raises:
            BaseException: Whatever the handler raised, after the record is emitted.
        """
        start_time = self._clock()
        event_log = EventLog(start_time, clock=self._clock)

        response: Any = None
        exception: BaseException | None = None

        with self._captured_output(environ, event_log):
            try:
                response = self.app(environ)
            except BaseException as e:  # recorded, then re-raised below
                exception = e

        duration = self._clock() - start_time

        recorder = TransactionRecorder(
            environ,
            event_log=event_log,
            env_filter=self._trace_env_filter,
            stack_filter=self._trace_stack_filter,
            error_keys=self.error_keys,
        )
        recorder.record_response(response, exception)

        record = self._build_record(recorder, duration)
        if record is not None:
            self._emit(record, environ)

        if exception is not None:
            raise exception
        return response

    @contextmanager
    def _captured_output(self, environ: MutableMapping[str, Any], event_log: EventLog) -> Iterator[None]:
        """Capture scope plus channel substitutions, undone in reverse order on exit."""
        with ExitStack() as stack:
            stack.enter_context(activate(event_log))
            if self.capture_stdio:
                stack.enter_context(stdio_capture.installed_for())

            _substitute(stack, environ, EVENT_LOG_KEY, event_log)

            errors = environ.get(ERRORS_KEY)
            if errors is not None:
                _substitute(stack, environ, ERRORS_KEY, OutputProxy(errors, ERRORS_KEY))

            request_logger = environ.get(LOGGER_KEY) or get_default_request_logger()
            _substitute(stack, environ, LOGGER_KEY, LoggerProxy.wrap(request_logger, LOGGER_KEY))

            yield

    def _build_record(
        self,
        recorder: TransactionRecorder,
        duration: float,
    ) -> TransactionRecord | None:
        """Build the record.

        When the request failed (propagated or handled exception), a build
        failure is reported and no record is emitted, so the handler's own
        outcome is what the caller sees.
        """
        if recorder.exception is None:
            return recorder.build(duration)
        try:
            return recorder.build(duration)
        except Exception as e:
            get_system_logger().error(
                {
                    "event": "record_build_failed",
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "message": f"Could not build transaction record for failed request: {e}",
                },
                exc_info=True,
            )
            return None

    def _emit(self, record: TransactionRecord, environ: MutableMapping[str, Any]) -> None:
        """Hand the record to the formatter; a failing formatter is reported, not raised."""
        try:
            self.formatter(self.effective_logger(environ), record, environ)
        except Exception as e:
            get_system_logger().error(
                {
                    "event": "formatter_failed",
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "request_id": record.id,
                    "message": f"Formatter {self.formatter!r} failed: {e}",
                },
                exc_info=True,
            )


def _substitute(stack: ExitStack, environ: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Set ``environ[key]`` and register restoration of its previous state."""
    previous = environ.get(key, _MISSING)
    environ[key] = value
    stack.callback(_restore, environ, key, previous)


def _restore(environ: MutableMapping[str, Any], key: str, previous: Any) -> None:
    if previous is _MISSING:
        environ.pop(key, None)
    else:
        environ[key] = previous
