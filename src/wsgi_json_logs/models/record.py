"""Pydantic models for the per-request transaction record.

One TransactionRecord is built per request by the TransactionRecorder and
handed to a formatter. Records are frozen; formatters read them through
attributes or through ``as_json()``.

Optional sections follow the request outcome:
- ``events``: only when something was captured during the request
- ``exception`` and ``env``: only when the request ended in an exception
"""

from __future__ import annotations

__all__ = [
    "ExceptionInfo",
    "RequestInfo",
    "ResponseInfo",
    "TransactionRecord",
]

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from wsgi_json_logs.models.events import LogEvent


class RequestInfo(BaseModel):
    """Request metadata resolved from the environ."""

    method: Optional[str] = None
    path: Optional[str] = None
    user_agent: Optional[str] = None
    remote_addr: Optional[str] = None
    host: Optional[str] = None
    scheme: Optional[str] = None
    id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ResponseInfo(BaseModel):
    """Response facts: duration in seconds, status, and optional length/redirect."""

    duration: float
    status: int
    length: Optional[int] = None
    redirect: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ExceptionInfo(BaseModel):
    """Exception raised (or stashed) while handling the request."""

    class_name: str
    message: str
    backtrace: list[str] = []

    model_config = ConfigDict(frozen=True)


class TransactionRecord(BaseModel):
    """The single structured log entry for one request."""

    request: RequestInfo
    response: ResponseInfo
    events: Optional[list[LogEvent]] = None
    exception: Optional[ExceptionInfo] = None
    env: Optional[dict[str, Any]] = None

    model_config = ConfigDict(frozen=True)

    @property
    def id(self) -> str | None:
        """Request id, if one was resolved."""
        return self.request.id

    def as_json(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict, omitting absent fields.

        Returns:
            dict: Record data ready for ``json.dumps``.
        """
        data = self.model_dump(mode="json", exclude_none=True, exclude={"env"})
        # env values are already primitives; None values inside it are kept
        if self.env is not None:
            data["env"] = dict(self.env)
        return data
