"""Unit tests for EventLog."""

from unittest.mock import MagicMock

import pytest

from wsgi_json_logs.capture.event_log import EventLog
from wsgi_json_logs.models.events import Severity


class TestRecord:
    """Tests for EventLog.record()."""

    def test_offset_measured_from_start_time(self, clock):
        """Offset is the clock reading minus the start time."""
        # Arrange
        log = EventLog(start_time=clock(), clock=clock)
        clock.advance(0.5)

        # Act
        log.record("stdout", "hello")

        # Assert
        [event] = log.snapshot()
        assert event.stream == "stdout"
        assert event.body == "hello"
        assert event.offset == pytest.approx(0.5)

    def test_start_time_defaults_to_clock(self, clock):
        log = EventLog(clock=clock)

        assert log.start_time == clock.now

    def test_offset_never_negative(self, clock):
        """A clock reading before start_time is clamped to zero."""
        log = EventLog(start_time=clock.now + 10, clock=clock)

        log.record("stdout", "early")

        assert log.snapshot()[0].offset == 0.0

    def test_offsets_non_decreasing_in_insertion_order(self, clock):
        log = EventLog(start_time=clock(), clock=clock)

        for i in range(5):
            clock.advance(0.1)
            log.record("stdout", str(i))

        events = log.snapshot()
        assert [e.body for e in events] == ["0", "1", "2", "3", "4"]
        offsets = [e.offset for e in events]
        assert offsets == sorted(offsets)

    def test_logger_event_keeps_severity_and_tag(self, clock):
        log = EventLog(clock=clock)

        log.record("wsgi_json_logs.logger", "query slow", severity=Severity.WARNING, tag="db")

        [event] = log.snapshot()
        assert event.severity is Severity.WARNING
        assert event.tag == "db"

    def test_keeps_bytes_payload_unchanged(self, clock):
        log = EventLog(clock=clock)

        log.record("stdout", b"\x00raw")

        assert log.snapshot()[0].body == b"\x00raw"

    def test_failure_is_reported_not_raised(self, clock, monkeypatch):
        """An event that cannot be built is reported to the system logger."""
        # Arrange
        system_logger = MagicMock()
        monkeypatch.setattr("wsgi_json_logs.capture.event_log.get_system_logger", lambda: system_logger)
        log = EventLog(clock=clock)

        # Act
        log.record(None, "body")  # type: ignore[arg-type]

        # Assert
        assert len(log) == 0
        system_logger.warning.assert_called_once()
        payload = system_logger.warning.call_args.args[0]
        assert payload["event"] == "event_capture_failed"


class TestReading:
    """Tests for snapshot and container behavior."""

    def test_empty_log_is_falsy(self):
        log = EventLog()

        assert not log
        assert len(log) == 0
        assert log.snapshot() == ()

    def test_snapshot_is_immutable_copy(self, clock):
        log = EventLog(clock=clock)
        log.record("stdout", "a")

        snapshot = log.snapshot()
        log.record("stdout", "b")

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1
        assert len(log) == 2

    def test_iterates_in_order(self, clock):
        log = EventLog(clock=clock)
        log.record("stdout", "a")
        log.record("stderr", "b")

        assert [(e.stream, e.body) for e in log] == [("stdout", "a"), ("stderr", "b")]
