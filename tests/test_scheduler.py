"""Tests for the periodic recurrence scheduler."""

import threading
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

from personal_ledger.services.interfaces import ProcessingReport
from personal_ledger.services.processor import RecurrenceProcessor
from personal_ledger.services.scheduler import RecurrenceScheduler

WAIT = 5.0


@pytest.fixture
def processor():
    mock = MagicMock(spec=RecurrenceProcessor)
    mock.process_due_transactions.return_value = ProcessingReport(
        started_at=datetime(2024, 1, 15, tzinfo=UTC)
    )
    return mock


class TestRunOnce:
    def test_returns_and_remembers_report(self, processor):
        scheduler = RecurrenceScheduler(processor, tick_timeout=timedelta(seconds=5))

        report = scheduler.run_once()

        assert report is processor.process_due_transactions.return_value
        assert scheduler.last_report is report
        kwargs = processor.process_due_transactions.call_args.kwargs
        assert kwargs["timeout"] == timedelta(seconds=5)
        assert isinstance(kwargs["cancel_event"], threading.Event)

    def test_overlapping_tick_is_skipped(self, processor):
        entered = threading.Event()
        release = threading.Event()

        def slow_tick(**kwargs):
            entered.set()
            release.wait(WAIT)
            return ProcessingReport(started_at=datetime(2024, 1, 15, tzinfo=UTC))

        processor.process_due_transactions.side_effect = slow_tick
        scheduler = RecurrenceScheduler(processor)
        worker = threading.Thread(target=scheduler.run_once)
        worker.start()
        assert entered.wait(WAIT)

        with capture_logs() as logs:
            skipped = scheduler.run_once()

        release.set()
        worker.join(WAIT)
        assert skipped is None
        assert processor.process_due_transactions.call_count == 1
        assert any(log["event"] == "tick_skipped" for log in logs)


class TestLifecycle:
    def test_start_runs_immediately_and_stop_joins(self, processor):
        ticked = threading.Event()
        processor.process_due_transactions.side_effect = lambda **kw: ticked.set()
        scheduler = RecurrenceScheduler(processor, interval=timedelta(hours=1))

        scheduler.start()
        assert ticked.wait(WAIT)
        assert scheduler.is_running

        scheduler.stop(timeout=WAIT)

        assert not scheduler.is_running

    def test_start_twice_keeps_one_thread(self, processor):
        scheduler = RecurrenceScheduler(
            processor, interval=timedelta(hours=1), run_immediately=False
        )

        scheduler.start()
        first = scheduler._thread
        scheduler.start()

        assert scheduler._thread is first
        scheduler.stop(timeout=WAIT)

    def test_stop_signals_the_running_tick(self, processor):
        seen: list[threading.Event] = []
        ticked = threading.Event()

        def record(**kwargs):
            seen.append(kwargs["cancel_event"])
            ticked.set()

        processor.process_due_transactions.side_effect = record
        scheduler = RecurrenceScheduler(processor, interval=timedelta(hours=1))
        scheduler.start()
        assert ticked.wait(WAIT)

        scheduler.stop(timeout=WAIT)

        assert seen[0].is_set()

    def test_crashing_tick_does_not_kill_the_loop(self, processor):
        calls = []
        second_tick = threading.Event()

        def flaky(**kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            second_tick.set()

        processor.process_due_transactions.side_effect = flaky
        scheduler = RecurrenceScheduler(processor, interval=timedelta(milliseconds=10))

        with capture_logs() as logs:
            scheduler.start()
            assert second_tick.wait(WAIT)
            scheduler.stop(timeout=WAIT)

        assert any(log["event"] == "tick_crashed" for log in logs)

    def test_wait_returns_after_stop(self, processor):
        scheduler = RecurrenceScheduler(
            processor, interval=timedelta(hours=1), run_immediately=False
        )
        scheduler.start()
        threading.Timer(0.05, scheduler.stop).start()

        scheduler.wait()

        processor.process_due_transactions.assert_not_called()
