"""Tests for JSONFormatter and PrettyFormatter."""

import json
import logging
import pprint

import click
import pytest

from wsgi_json_logs.formatters import Formatter, JSONFormatter, PrettyFormatter
from wsgi_json_logs.formatters.pretty_formatter import status_color
from wsgi_json_logs.models.record import ExceptionInfo, RequestInfo, ResponseInfo, TransactionRecord


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def ok_record() -> TransactionRecord:
    return TransactionRecord(
        request=RequestInfo(method="GET", path="/test?foo=bar"),
        response=ResponseInfo(duration=0.032, status=200),
    )


@pytest.fixture
def failed_record() -> TransactionRecord:
    return TransactionRecord(
        request=RequestInfo(method="POST", path="/orders", id="req-1"),
        response=ResponseInfo(duration=1.5, status=500),
        exception=ExceptionInfo(
            class_name="ValueError",
            message="boom",
            backtrace=["app.py:10:in create", "app.py:3:in validate"],
        ),
        env={"REQUEST_METHOD": "POST", "PATH_INFO": "/orders"},
    )


# ============================================================================
# Protocol
# ============================================================================


class TestProtocol:
    """Formatters are structural."""

    @pytest.mark.parametrize("formatter", [JSONFormatter(), PrettyFormatter()])
    def test_builtin_formatters_satisfy_protocol(self, formatter):
        assert isinstance(formatter, Formatter)

    def test_plain_function_satisfies_protocol(self):
        def sink(logger, record, environ):
            pass

        assert isinstance(sink, Formatter)


# ============================================================================
# JSONFormatter
# ============================================================================


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_single_info_line_with_separator(self, ok_record, request_logger):
        logger, handler = request_logger

        JSONFormatter()(logger, ok_record, {})

        [log_record] = handler.records
        assert log_record.levelno == logging.INFO
        message = log_record.getMessage()
        assert message.startswith("\x1e")
        assert "\n" not in message
        assert json.loads(message[1:]) == ok_record.as_json()

    def test_custom_prefix(self, ok_record):
        assert JSONFormatter(prefix="").encode(ok_record).startswith("{")

    def test_absent_sections_omitted(self, ok_record):
        data = json.loads(JSONFormatter().encode(ok_record)[1:])

        assert set(data) == {"request", "response"}


# ============================================================================
# PrettyFormatter
# ============================================================================


class TestPrettyFormatter:
    """Tests for PrettyFormatter."""

    @pytest.mark.parametrize(
        "status,color",
        [(200, "green"), (204, "green"), (301, "red"), (404, "red"), (503, "red"), (101, "cyan"), (600, "cyan")],
    )
    def test_status_color(self, status, color):
        assert status_color(status) == color

    def test_plain_summary(self, ok_record):
        assert PrettyFormatter(color=False).summary(ok_record) == '0.0320s 200 - GET "/test?foo=bar"'

    def test_colored_summary(self, ok_record):
        expected = click.style('0.0320s 200 - GET "/test?foo=bar"', fg="green")

        assert PrettyFormatter().summary(ok_record) == expected

    def test_success_logs_summary_only(self, ok_record, request_logger):
        logger, handler = request_logger

        PrettyFormatter(color=False)(logger, ok_record, {})

        assert handler.messages == ['0.0320s 200 - GET "/test?foo=bar"']
        assert handler.records[0].levelno == logging.INFO

    def test_failure_logs_exception_backtrace_and_env(self, failed_record, request_logger):
        logger, handler = request_logger

        PrettyFormatter(color=False)(logger, failed_record, {})

        env_lines = pprint.pformat(failed_record.env, width=80, sort_dicts=False).split("\n")
        assert handler.messages == [
            'req-1| 1.5000s 500 - POST "/orders"',
            "req-1| Exception: ValueError boom",
            "req-1|   app.py:10:in create",
            "req-1|   app.py:3:in validate",
            "req-1| Request ENV follows:",
            *[f"req-1| {line}" for line in env_lines],
        ]
        assert [r.levelno for r in handler.records[:3]] == [logging.INFO, logging.ERROR, logging.DEBUG]

    def test_narrow_width_splits_env_lines(self, failed_record, request_logger):
        logger, handler = request_logger

        PrettyFormatter(color=False, width=20)(logger, failed_record, {})

        env_start = handler.messages.index("req-1| Request ENV follows:") + 1
        assert len(handler.messages[env_start:]) == 2

    def test_debug_lines_respect_logger_level(self, failed_record, make_logger):
        logger, handler = make_logger(logging.INFO)

        PrettyFormatter(color=False)(logger, failed_record, {})

        assert handler.messages == [
            'req-1| 1.5000s 500 - POST "/orders"',
            "req-1| Exception: ValueError boom",
        ]

    def test_missing_path_rendered_as_null(self, request_logger):
        logger, handler = request_logger
        record = TransactionRecord(
            request=RequestInfo(method="GET"),
            response=ResponseInfo(duration=0.0, status=200),
        )

        PrettyFormatter(color=False)(logger, record, {})

        assert handler.messages == ["0.0000s 200 - GET null"]
