"""PEP 3333 adapter for JsonLogsMiddleware.

JsonLogsMiddleware speaks a simple handler contract,
``app(environ) -> (status, headers, body)``. WSGIJsonLogs puts a standard
WSGI application behind it:

    application = WSGIJsonLogs(flask_app, formatter=PrettyFormatter())

The wrapped application runs and its body iterable is drained (and closed)
inside the capture scope, so output produced while the body is generated
lands in the same record. The buffered body is then returned to the server.
"""

from __future__ import annotations

__all__ = [
    "WSGIJsonLogs",
]

from collections.abc import Callable, Iterable, MutableMapping
from typing import Any

from wsgi_json_logs.middleware import JsonLogsMiddleware

StartResponse = Callable[..., Callable[[bytes], Any]]
WSGIApplication = Callable[[MutableMapping[str, Any], StartResponse], Iterable[bytes]]


class WSGIJsonLogs:
    """WSGI application logging each request of ``wsgi_app`` as one record.

    Attributes:
        wsgi_app: The wrapped WSGI application.
        middleware: The JsonLogsMiddleware doing the capture; its options
            (``trace_env``, ``formatter``, ...) can be adjusted here.
    """

    def __init__(self, wsgi_app: WSGIApplication, **options: Any) -> None:
        """Wrap a WSGI application.

        Args:
            wsgi_app: PEP 3333 application.
            **options: JsonLogsMiddleware options.
        """
        self.wsgi_app = wsgi_app
        self.middleware = JsonLogsMiddleware(self._run_app, **options)

    def __call__(self, environ: MutableMapping[str, Any], start_response: StartResponse) -> list[bytes]:
        status, headers, body = self.middleware(environ)
        start_response(status, headers)
        return body

    def _run_app(self, environ: MutableMapping[str, Any]) -> tuple[Any, list[tuple[str, str]], list[bytes]]:
        """Run the WSGI app to completion and return its buffered response."""
        started: dict[str, Any] = {}
        chunks: list[bytes] = []

        def start_response(status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Callable[[bytes], Any]:
            # Headers are buffered; a later call with exc_info replaces them.
            started["status"] = status
            started["headers"] = list(headers)
            return chunks.append

        result = self.wsgi_app(environ, start_response)
        try:
            for chunk in result:
                chunks.append(chunk)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        return started.get("status"), started.get("headers", []), chunks
