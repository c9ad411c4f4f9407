"""Output capture: event log, execution scope and channel/logger proxies.

Structure:
    event_log.py      EventLog, the per-request append-only event sequence
    scope.py          ContextVar association of the current thread to an EventLog
    output_proxy.py   OutputProxy over writable channels, StdioCapture for sys streams
    logger_proxy.py   LoggerProxy, a capturing logging.LoggerAdapter
"""

from wsgi_json_logs.capture.event_log import EventLog
from wsgi_json_logs.capture.logger_proxy import LoggerProxy
from wsgi_json_logs.capture.output_proxy import OutputProxy, StdioCapture, stdio_capture
from wsgi_json_logs.capture.scope import activate, carry_scope, current_event_log

__all__ = [
    "EventLog",
    "LoggerProxy",
    "OutputProxy",
    "StdioCapture",
    "activate",
    "carry_scope",
    "current_event_log",
    "stdio_capture",
]
