"""Due-transaction processing: turns due recurring transactions into ledger entries."""

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import structlog

from personal_ledger.domain.recurring import RecurringTransaction
from personal_ledger.domain.value_objects import RecurrenceStatus
from personal_ledger.exceptions import PersonalLedgerError, SchedulingError
from personal_ledger.logging_config import get_logger
from personal_ledger.repositories.interfaces import (
    LedgerRepository,
    RecurringTransactionRepository,
    ReminderRepository,
)
from personal_ledger.services.interfaces import LedgerService, ProcessingReport
from personal_ledger.services.recurrence import (
    DEFAULT_REMINDER_LEAD_TIME,
    calculate_next_due,
    calculate_reminder_date,
)

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def recurring_entry_note(recurring: RecurringTransaction) -> str:
    return f"{recurring.note} (Recurring: {recurring.name})"


class RecurrenceProcessor:
    """Runs one tick over every active recurring transaction that is due.

    Each transaction is handled independently: post the entry, compute the
    next occurrence, then either complete the schedule or advance it and file a
    reminder. A failure in one transaction is logged and the tick moves on; the
    failed transaction keeps its ``next_due`` and is retried next tick.

    Posted entries carry ``(recurring_transaction_id, occurrence_due)``. When a
    previous tick posted an occurrence but stopped before rescheduling, the
    entry is found by that key and only the reschedule is repeated.
    """

    def __init__(
        self,
        recurring_repo: RecurringTransactionRepository,
        reminder_repo: ReminderRepository,
        ledger_repo: LedgerRepository,
        ledger_service: LedgerService,
        reminder_lead_time: timedelta = DEFAULT_REMINDER_LEAD_TIME,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._recurring_repo = recurring_repo
        self._reminder_repo = reminder_repo
        self._ledger_repo = ledger_repo
        self._ledger_service = ledger_service
        self._reminder_lead_time = reminder_lead_time
        self._clock = clock

    def process_due_transactions(
        self,
        now: datetime | None = None,
        *,
        cancel_event: threading.Event | None = None,
        timeout: timedelta | None = None,
    ) -> ProcessingReport:
        """Process every due transaction; never raises.

        Args:
            now: Tick instant; defaults to the processor clock
            cancel_event: Checked before each transaction; when set the tick stops
            timeout: Budget for the whole tick, checked before each transaction

        Returns:
            A ProcessingReport. Transactions not reached because of cancellation
            or timeout are left untouched.
        """
        if now is None:
            now = self._clock()
        report = ProcessingReport(started_at=now)
        deadline = (
            time.monotonic() + timeout.total_seconds() if timeout is not None else None
        )

        with structlog.contextvars.bound_contextvars(
            tick_id=str(uuid4()), tick_at=now.isoformat()
        ):
            try:
                due = list(self._recurring_repo.list_active_due(now))
            except Exception as exc:
                logger.error("due_transactions_fetch_failed", error=str(exc), exc_info=True)
                return report

            report.due = len(due)
            logger.info("tick_started", due=report.due)

            for recurring in due:
                if cancel_event is not None and cancel_event.is_set():
                    report.cancelled = True
                    logger.warning("tick_cancelled", remaining=report.remaining)
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    report.cancelled = True
                    logger.warning("tick_timed_out", remaining=report.remaining)
                    break

                try:
                    self._process_one(recurring, now, report)
                except Exception as exc:
                    report.failed += 1
                    report.failed_ids.append(recurring.id)
                    logger.error(
                        "recurring_transaction_failed",
                        recurring_transaction_id=str(recurring.id),
                        error=str(exc),
                        error_code=getattr(exc, "error_code", None),
                        exc_info=not isinstance(exc, PersonalLedgerError),
                    )

            logger.info(
                "tick_finished",
                due=report.due,
                posted=report.posted,
                skipped=report.skipped,
                completed=report.completed,
                failed=report.failed,
                cancelled=report.cancelled,
            )
        return report

    def _process_one(
        self, recurring: RecurringTransaction, now: datetime, report: ProcessingReport
    ) -> None:
        occurrence_due = recurring.next_due

        if self._ledger_repo.find_by_occurrence(recurring.id, occurrence_due) is None:
            try:
                entry_id = self._ledger_service.create_entry(
                    recurring.account_id,
                    now,
                    recurring.type,
                    recurring.amount,
                    recurring_entry_note(recurring),
                    recurring_transaction_id=recurring.id,
                    occurrence_due=occurrence_due,
                )
            except PersonalLedgerError as exc:
                raise SchedulingError(recurring.id, "post", exc.message) from exc
            report.posted += 1
            logger.info(
                "recurring_entry_posted",
                recurring_transaction_id=str(recurring.id),
                entry_id=str(entry_id),
                occurrence_due=occurrence_due.isoformat(),
            )
        else:
            report.skipped += 1
            logger.info(
                "recurring_entry_already_posted",
                recurring_transaction_id=str(recurring.id),
                occurrence_due=occurrence_due.isoformat(),
            )

        try:
            next_due = calculate_next_due(
                now,
                occurrence_due,
                recurring.recur_type,
                recurring.frequency,
                recurring.day_of_week,
                recurring.day_of_month,
                recurring.month_of_year,
            )
        except PersonalLedgerError as exc:
            raise SchedulingError(recurring.id, "next_due", exc.message) from exc

        if recurring.ends_before(next_due):
            if self._complete(recurring, now):
                report.completed += 1
            return

        try:
            rescheduled = self._recurring_repo.update_execution(recurring.id, now, next_due)
        except PersonalLedgerError as exc:
            raise SchedulingError(recurring.id, "reschedule", exc.message) from exc
        if rescheduled.status != RecurrenceStatus.ACTIVE:
            return

        reminder_date = calculate_reminder_date(next_due, self._reminder_lead_time)
        if reminder_date > now:
            try:
                self._reminder_repo.create(recurring.id, reminder_date)
            except PersonalLedgerError as exc:
                logger.warning(
                    "reminder_create_failed",
                    recurring_transaction_id=str(recurring.id),
                    error=exc.message,
                )

    def _complete(self, recurring: RecurringTransaction, now: datetime) -> bool:
        try:
            completed = self._recurring_repo.complete(recurring.id, now)
        except PersonalLedgerError as exc:
            raise SchedulingError(recurring.id, "complete", exc.message) from exc
        if completed is None:
            logger.info(
                "recurring_transaction_no_longer_active",
                recurring_transaction_id=str(recurring.id),
            )
            return False
        logger.info(
            "recurring_transaction_completed",
            recurring_transaction_id=str(recurring.id),
            end_date=recurring.end_date.isoformat() if recurring.end_date else None,
        )
        return True
