"""Tests for the PEP 3333 adapter."""

import sys

import pytest

from wsgi_json_logs.constants import ERRORS_KEY
from wsgi_json_logs.wsgi import WSGIJsonLogs


class StartResponse:
    """Records what the adapter passes to the server."""

    def __init__(self):
        self.calls = []

    def __call__(self, status, headers, exc_info=None):
        self.calls.append((status, headers))
        return lambda data: None


class ClosingBody:
    """Body iterable with a close() method, as returned by streaming apps."""

    def __init__(self, chunks):
        self.chunks = chunks
        self.closed = False

    def __iter__(self):
        for chunk in self.chunks:
            print(f"sending {chunk!r}")
            yield chunk

    def close(self):
        self.closed = True


def hello_app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain"), ("Content-Length", "5")])
    return [b"hello"]


class TestWSGIJsonLogs:
    """Tests for WSGIJsonLogs."""

    def test_passes_response_to_server(self, make_environ, formatter):
        start_response = StartResponse()
        application = WSGIJsonLogs(hello_app, formatter=formatter)

        body = application(make_environ(), start_response)

        assert body == [b"hello"]
        assert start_response.calls == [("200 OK", [("Content-Type", "text/plain"), ("Content-Length", "5")])]

    def test_one_record_with_wsgi_status(self, make_environ, formatter):
        application = WSGIJsonLogs(hello_app, formatter=formatter)

        application(make_environ(), StartResponse())

        [record] = formatter.records
        assert record.response.status == 200
        assert record.response.length == 5
        assert record.request.path == "/test?foo=bar"

    def test_body_iteration_captured_and_closed(self, make_environ, formatter, capsys):
        body = ClosingBody([b"a", b"b"])

        def streaming_app(environ, start_response):
            start_response("200 OK", [])
            return body

        result = WSGIJsonLogs(streaming_app, formatter=formatter)(make_environ(), StartResponse())

        assert result == [b"a", b"b"]
        assert body.closed
        assert "".join(e.body for e in formatter.last.events) == "sending b'a'\nsending b'b'\n"
        assert capsys.readouterr().out == ""

    def test_write_callable_output_kept(self, make_environ, formatter):
        def legacy_app(environ, start_response):
            write = start_response("200 OK", [])
            write(b"early ")
            return [b"late"]

        result = WSGIJsonLogs(legacy_app, formatter=formatter)(make_environ(), StartResponse())

        assert result == [b"early ", b"late"]

    def test_exc_info_call_replaces_headers(self, make_environ, formatter):
        def recovering_app(environ, start_response):
            start_response("200 OK", [("X-Partial", "1")])
            try:
                raise ValueError("render failed")
            except ValueError:
                start_response("500 Internal Server Error", [], sys.exc_info())
            return [b"error page"]

        start_response = StartResponse()
        WSGIJsonLogs(recovering_app, formatter=formatter)(make_environ(), start_response)

        assert start_response.calls == [("500 Internal Server Error", [])]
        assert formatter.last.response.status == 500

    def test_app_exception_propagates(self, make_environ, formatter):
        def failing_app(environ, start_response):
            environ[ERRORS_KEY].write("about to fail")
            raise RuntimeError("boom")

        start_response = StartResponse()

        with pytest.raises(RuntimeError, match="boom"):
            WSGIJsonLogs(failing_app, formatter=formatter)(make_environ(), start_response)

        assert start_response.calls == []
        record = formatter.last
        assert record.response.status == 500
        assert record.exception.class_name == "RuntimeError"
        assert [e.body for e in record.events] == ["about to fail"]

    def test_options_reach_middleware(self, formatter):
        application = WSGIJsonLogs(hello_app, formatter=formatter, capture_stdio=False)

        assert application.middleware.formatter is formatter
        assert application.middleware.capture_stdio is False
