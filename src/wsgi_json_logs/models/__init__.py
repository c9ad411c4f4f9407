"""Pydantic models for captured events and transaction records.

Structure:
    events.py   LogEvent and Severity (one captured write or logger call)
    record.py   TransactionRecord and its request/response/exception sections
"""

from wsgi_json_logs.models.events import LogEvent, Severity
from wsgi_json_logs.models.record import (
    ExceptionInfo,
    RequestInfo,
    ResponseInfo,
    TransactionRecord,
)

__all__ = [
    "ExceptionInfo",
    "LogEvent",
    "RequestInfo",
    "ResponseInfo",
    "Severity",
    "TransactionRecord",
]
