"""Periodic background runner for the recurrence processor."""

import threading
from datetime import timedelta

from personal_ledger.logging_config import get_logger
from personal_ledger.services.interfaces import ProcessingReport
from personal_ledger.services.processor import RecurrenceProcessor

logger = get_logger(__name__)


class RecurrenceScheduler:
    """Runs ``process_due_transactions`` every ``interval`` on a daemon thread.

    Ticks never overlap: a tick requested while another is running is skipped,
    not queued. ``stop()`` is observed between transactions, never inside one.
    """

    def __init__(
        self,
        processor: RecurrenceProcessor,
        interval: timedelta = timedelta(hours=1),
        tick_timeout: timedelta | None = timedelta(seconds=30),
        run_immediately: bool = True,
    ) -> None:
        self._processor = processor
        self._interval = interval
        self._tick_timeout = tick_timeout
        self._run_immediately = run_immediately
        self._stop_event = threading.Event()
        self._tick_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self.last_report: ProcessingReport | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="recurrence-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            "scheduler_started",
            interval_seconds=self._interval.total_seconds(),
            tick_timeout_seconds=self._tick_timeout.total_seconds()
            if self._tick_timeout
            else None,
        )

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("scheduler_stopped")

    def wait(self) -> None:
        """Block until ``stop()`` is called from another thread or a signal handler."""
        while not self._stop_event.wait(timeout=1.0):
            pass

    def run_once(self) -> ProcessingReport | None:
        """Run a single tick now. Returns None if a tick is already running."""
        if not self._tick_lock.acquire(blocking=False):
            logger.info("tick_skipped", reason="previous tick still running")
            return None
        try:
            report = self._processor.process_due_transactions(
                cancel_event=self._stop_event, timeout=self._tick_timeout
            )
            self.last_report = report
            return report
        finally:
            self._tick_lock.release()

    def _run(self) -> None:
        if self._run_immediately:
            self._safe_tick()
        while not self._stop_event.wait(self._interval.total_seconds()):
            self._safe_tick()

    def _safe_tick(self) -> None:
        try:
            self.run_once()
        except Exception:
            logger.exception("tick_crashed")
