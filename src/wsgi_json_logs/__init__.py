"""wsgi-json-logs: one structured log record per request.

Wraps a request handler so that every request produces exactly one
TransactionRecord: request and response metadata, duration, any exception,
and everything the handler wrote to stdout, stderr, ``wsgi.errors`` or the
request logger while it ran.

Structure:
    capture/      EventLog, capture scope, output and logger proxies
    models/       Pydantic models for events and transaction records
    formatters/   Formatter protocol, JSONFormatter, PrettyFormatter
    middleware    JsonLogsMiddleware (handler contract)
    wsgi          WSGIJsonLogs (PEP 3333 adapter)
    recorder      TransactionRecorder
    config        MiddlewareSettings and settings file loading

Usage:
    from wsgi_json_logs import WSGIJsonLogs
    application = WSGIJsonLogs(wsgi_app)
"""

__version__ = "0.3.0"

from wsgi_json_logs.capture import EventLog, LoggerProxy, OutputProxy, activate, carry_scope, current_event_log
from wsgi_json_logs.config import MiddlewareSettings, load_settings
from wsgi_json_logs.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    ResponseNotFinishedError,
    ScopeError,
)
from wsgi_json_logs.formatters import Formatter, JSONFormatter, PrettyFormatter
from wsgi_json_logs.middleware import JsonLogsMiddleware
from wsgi_json_logs.models import LogEvent, Severity, TransactionRecord
from wsgi_json_logs.recorder import TransactionRecorder
from wsgi_json_logs.wsgi import WSGIJsonLogs

__all__ = [
    "ConfigurationError",
    "EventLog",
    "Formatter",
    "JSONFormatter",
    "JsonLogsMiddleware",
    "LogEvent",
    "LoggerProxy",
    "MalformedResponseError",
    "MiddlewareSettings",
    "OutputProxy",
    "PrettyFormatter",
    "ResponseNotFinishedError",
    "ScopeError",
    "Severity",
    "TransactionRecord",
    "TransactionRecorder",
    "WSGIJsonLogs",
    "__version__",
    "activate",
    "carry_scope",
    "current_event_log",
    "load_settings",
]
