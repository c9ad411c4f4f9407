"""Transaction record assembly.

TransactionRecorder turns what the middleware observed (the request environ,
the handler's response or exception, the request's EventLog and its duration)
into one TransactionRecord. It performs no capture and no I/O.

Request fields fall back through environ keys, first present wins:

    path         REQUEST_URI -> RAW_URI -> SCRIPT_NAME + PATH_INFO [+ "?" QUERY_STRING]
    remote_addr  HTTP_X_REAL_IP -> REMOTE_ADDR
    host         HTTP_HOST -> SERVER_NAME
    scheme       HTTP_X_FORWARDED_PROTO -> wsgi.url_scheme
    id           wsgi_json_logs.request_id -> HTTP_X_REQUEST_ID
"""

from __future__ import annotations

__all__ = [
    "TransactionRecorder",
    "exception_class_name",
    "format_backtrace",
    "header_value",
    "safe_repr",
    "safe_str",
    "status_code",
]

import traceback
from collections.abc import Iterable, Mapping
from typing import Any, Callable

from wsgi_json_logs.capture.event_log import EventLog
from wsgi_json_logs.constants import (
    DEFAULT_ERROR_STATUS,
    HANDLED_ERROR_KEYS,
    PRIMITIVE_TYPES,
    REDIRECT_STATUSES,
    REQUEST_ID_KEY,
    URL_SCHEME_KEY,
)
from wsgi_json_logs.exceptions import MalformedResponseError, ResponseNotFinishedError
from wsgi_json_logs.filters import AlwaysTrue, TraceFilter
from wsgi_json_logs.models.record import (
    ExceptionInfo,
    RequestInfo,
    ResponseInfo,
    TransactionRecord,
)
from wsgi_json_logs.system_logger import get_system_logger

_MISSING = object()


class TransactionRecorder:
    """Builds the TransactionRecord for one request.

    Call ``record_response()`` once the handler has finished, then ``build()``.
    Reading response fields earlier is an internal error.
    """

    def __init__(
        self,
        environ: Mapping[str, Any],
        *,
        event_log: EventLog | None = None,
        env_filter: TraceFilter | Callable[[str, Any], bool] = AlwaysTrue(),
        stack_filter: TraceFilter | Callable[[str], bool] = AlwaysTrue(),
        error_keys: tuple[str, ...] = HANDLED_ERROR_KEYS,
    ) -> None:
        """Initialize the recorder.

        Args:
            environ: Request environ as restored after the handler ran.
            event_log: Events captured during the request.
            env_filter: ``(key, value) -> bool`` deciding which environ entries
                appear in the record of a failed request.
            stack_filter: ``(frame) -> bool`` deciding which backtrace frames appear.
            error_keys: Environ slots checked, in order, for an exception the
                framework handled itself.
        """
        self.environ = environ
        self.event_log = event_log
        self.env_filter = env_filter
        self.stack_filter = stack_filter
        self.error_keys = error_keys
        self._finished = False
        self._response: Any = None
        self._exception: BaseException | None = None

    def record_response(self, response: Any, exception: BaseException | None) -> None:
        """Store the handler outcome.

        Args:
            response: ``(status, headers, body)`` returned by the handler, or None.
            exception: Exception that propagated out of the handler, or None.
        """
        self._finished = True
        self._response = response
        self._exception = exception

    @property
    def exception(self) -> BaseException | None:
        """Exception to record: propagated first, then each handled-error slot."""
        if self._exception is not None:
            return self._exception
        for key in self.error_keys:
            candidate = self.environ.get(key)
            if isinstance(candidate, BaseException):
                return candidate
        return None

    def build(self, duration: float) -> TransactionRecord:
        """Assemble the record.

        Args:
            duration: Seconds the request took.

        Returns:
            TransactionRecord: The finished record.

        Raises:
            ResponseNotFinishedError: If ``record_response()`` was not called.
            MalformedResponseError: If the response has no status and no
                exception occurred.
        """
        exception = self.exception
        events = self.event_log.snapshot() if self.event_log is not None else ()

        return TransactionRecord(
            request=self._request_info(),
            response=self._response_info(duration),
            events=list(events) if events else None,
            exception=self._exception_info(exception) if exception is not None else None,
            env=self._filtered_env() if exception is not None else None,
        )

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------

    def _request_info(self) -> RequestInfo:
        env = self.environ
        return RequestInfo(
            method=_text(env.get("REQUEST_METHOD")),
            path=_text(self._fetch("REQUEST_URI", "RAW_URI", default=self._path_from_parts)),
            user_agent=_text(env.get("HTTP_USER_AGENT")),
            remote_addr=_text(self._fetch("HTTP_X_REAL_IP", "REMOTE_ADDR")),
            host=_text(self._fetch("HTTP_HOST", "SERVER_NAME")),
            scheme=_text(self._fetch("HTTP_X_FORWARDED_PROTO", URL_SCHEME_KEY)),
            id=_text(self._fetch(REQUEST_ID_KEY, "HTTP_X_REQUEST_ID")),
        )

    def _fetch(self, *keys: str, default: Callable[[], Any] | None = None) -> Any:
        """Value of the first key present in the environ."""
        for key in keys:
            value = self.environ.get(key, _MISSING)
            if value is not _MISSING:
                return value
        return default() if default is not None else None

    def _path_from_parts(self) -> str | None:
        script = self.environ.get("SCRIPT_NAME") or ""
        path = self.environ.get("PATH_INFO")
        if path is None and not script:
            return None
        full_path = f"{script}{path or ''}"
        query = self.environ.get("QUERY_STRING")
        return f"{full_path}?{query}" if query else full_path

    # ------------------------------------------------------------------
    # Response
    # ------------------------------------------------------------------

    def _response_part(self, index: int) -> Any:
        if not self._finished:
            raise ResponseNotFinishedError("Response not finished")
        if self._response is None:
            return None
        try:
            return self._response[index]
        except (IndexError, KeyError, TypeError):
            return None

    @property
    def status(self) -> int:
        """Response status; 500 when the handler raised without a response."""
        status = self._response_part(0)
        if status is None:
            if self.exception is not None:
                return DEFAULT_ERROR_STATUS
            raise MalformedResponseError("response did not include a status")
        return status_code(status)

    @property
    def headers(self) -> Any:
        """Response headers, a mapping or a list of ``(name, value)`` pairs."""
        headers = self._response_part(1)
        return headers if headers is not None else {}

    def _response_info(self, duration: float) -> ResponseInfo:
        status = self.status
        headers = self.headers
        length = _content_length(header_value(headers, "Content-Length"))
        redirect = header_value(headers, "Location") if status in REDIRECT_STATUSES else None
        return ResponseInfo(
            duration=duration,
            status=status,
            length=length,
            redirect=_text(redirect),
        )

    # ------------------------------------------------------------------
    # Exception
    # ------------------------------------------------------------------

    def _exception_info(self, exception: BaseException) -> ExceptionInfo:
        return ExceptionInfo(
            class_name=exception_class_name(exception),
            message=safe_str(exception),
            backtrace=[frame for frame in format_backtrace(exception) if self.stack_filter(frame)],
        )

    def _filtered_env(self) -> dict[str, Any]:
        """Environ entries accepted by env_filter, non-primitives as repr()."""
        env: dict[str, Any] = {}
        for key, value in self.environ.items():
            if not self.env_filter(key, value):
                continue
            env[safe_str(key)] = value if isinstance(value, PRIMITIVE_TYPES) else safe_repr(value)
        return env


# ============================================================================
# Helpers
# ============================================================================


def status_code(status: Any) -> int:
    """Normalize a status (``200`` or ``"200 OK"``) to an integer.

    Raises:
        MalformedResponseError: If no integer status can be read.
    """
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    if isinstance(status, bytes):
        status = status.decode("latin-1")
    if isinstance(status, str):
        code = status.strip().split(" ", 1)[0]
        if code.isdigit():
            return int(code)
    raise MalformedResponseError(f"response status is not an HTTP status: {status!r}")


def header_value(headers: Mapping[str, Any] | Iterable[tuple[str, Any]], name: str) -> Any:
    """Case-insensitive header lookup in a mapping or a list of pairs.

    Returns:
        The header value, or None if absent.
    """
    items = headers.items() if isinstance(headers, Mapping) else headers
    wanted = name.lower()
    for key, value in items:
        if str(key).lower() == wanted:
            return value
    return None


def exception_class_name(exception: BaseException) -> str:
    """``ValueError`` for builtins, ``package.module.Class`` otherwise."""
    cls = type(exception)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def format_backtrace(exception: BaseException) -> list[str]:
    """Frames of the exception as ``file:line:in name``, most recent call last.

    Covers the full stack: the frames that called the one where the exception
    was caught, followed by the traceback down to the raise.
    """
    tb = exception.__traceback__
    if tb is None:
        return []
    frames = list(traceback.extract_tb(tb))
    caller = tb.tb_frame.f_back
    if caller is not None:
        frames = list(traceback.extract_stack(caller)) + frames
    return [f"{frame.filename}:{frame.lineno}:in {frame.name}" for frame in frames]


def safe_repr(value: Any) -> str:
    """``repr(value)``, or a placeholder naming the type if repr() fails."""
    try:
        return repr(value)
    except Exception:
        return f"<unrepresentable {type(value).__qualname__}>"


def safe_str(value: Any) -> str:
    """``str(value)``, falling back to :func:`safe_repr` if str() fails."""
    try:
        return str(value)
    except Exception:
        return safe_repr(value)


def _content_length(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(safe_str(value).strip())
    except ValueError:
        get_system_logger().warning(
            {
                "event": "invalid_content_length",
                "value": safe_repr(value),
                "message": f"Ignoring unparseable Content-Length header: {safe_repr(value)}",
            }
        )
        return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return safe_str(value)
