"""Unit tests for the capture scope (activate, carry_scope, current_event_log)."""

import asyncio
import threading

import pytest

from wsgi_json_logs.capture.event_log import EventLog
from wsgi_json_logs.capture.scope import activate, carry_scope, current_event_log
from wsgi_json_logs.exceptions import ScopeError


class TestActivate:
    """Tests for activate()."""

    def test_no_scope_by_default(self):
        assert current_event_log() is None

    def test_sets_and_restores(self):
        log = EventLog()

        with activate(log) as active:
            assert active is log
            assert current_event_log() is log

        assert current_event_log() is None

    def test_restores_after_exception(self):
        log = EventLog()

        with pytest.raises(ValueError):
            with activate(log):
                raise ValueError("boom")

        assert current_event_log() is None

    def test_nested_different_log_raises(self):
        """Only one scope may be active per thread of control."""
        outer, inner = EventLog(), EventLog()

        with activate(outer):
            with pytest.raises(ScopeError):
                with activate(inner):
                    pass
            assert current_event_log() is outer

    def test_reactivating_same_log_allowed(self):
        log = EventLog()

        with activate(log):
            with activate(log):
                assert current_event_log() is log
            assert current_event_log() is log

        assert current_event_log() is None


class TestIsolation:
    """Scopes are specific to the calling thread or task."""

    def test_other_thread_sees_own_scope(self):
        main_log, worker_log = EventLog(), EventLog()
        seen = {}
        entered = threading.Event()
        release = threading.Event()

        def worker():
            with activate(worker_log):
                entered.set()
                release.wait(5)
                seen["worker"] = current_event_log()

        with activate(main_log):
            thread = threading.Thread(target=worker)
            thread.start()
            entered.wait(5)
            seen["main"] = current_event_log()
            release.set()
            thread.join(5)

        assert seen == {"main": main_log, "worker": worker_log}

    def test_concurrent_tasks_isolated(self):
        """Each asyncio task keeps its own scope across await points."""

        async def handle(log: EventLog) -> EventLog | None:
            with activate(log):
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                return current_event_log()

        async def main():
            logs = [EventLog() for _ in range(3)]
            results = await asyncio.gather(*(handle(log) for log in logs))
            return logs, results

        logs, results = asyncio.run(main())

        assert results == logs


class TestCarryScope:
    """Tests for carry_scope()."""

    def test_returns_fn_when_nothing_to_carry(self):
        def task():
            return 1

        assert carry_scope(task) is task

    def test_carries_active_scope_into_thread(self):
        log = EventLog()
        seen = []

        with activate(log):
            wrapped = carry_scope(lambda: seen.append(current_event_log()))

        thread = threading.Thread(target=wrapped)
        thread.start()
        thread.join(5)

        assert seen == [log]

    def test_explicit_log_and_arguments(self):
        log = EventLog()

        def task(a, b=0):
            return current_event_log(), a + b

        result = carry_scope(task, log)(1, b=2)

        assert result == (log, 3)
        assert current_event_log() is None

    def test_preserves_function_metadata(self):
        def task():
            """Docstring."""

        wrapped = carry_scope(task, EventLog())

        assert wrapped.__name__ == "task"
        assert wrapped.__doc__ == "Docstring."
