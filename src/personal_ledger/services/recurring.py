"""RecurringTransactionService implementation: schedule definitions and reminders."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import UUID

from personal_ledger.domain.recurring import (
    CreateRecurringTransactionRequest,
    RecurringTransaction,
    Reminder,
    UpdateRecurringTransactionRequest,
)
from personal_ledger.domain.value_objects import (
    RecurrenceStatus,
    RecurrenceType,
    recurrence_type_value,
)
from personal_ledger.exceptions import (
    AccountNotFoundError,
    InvalidRecurrenceError,
    PersonalLedgerError,
    RecurringTransactionNotFoundError,
    ReminderNotFoundError,
)
from personal_ledger.logging_config import get_logger
from personal_ledger.repositories.interfaces import (
    AccountRepository,
    RecurringTransactionRepository,
    ReminderRepository,
)
from personal_ledger.services.interfaces import RecurringTransactionService
from personal_ledger.services.recurrence import (
    DEFAULT_REMINDER_LEAD_TIME,
    calculate_next_due,
    calculate_reminder_date,
    validate_recurrence,
)

logger = get_logger(__name__)

DEFAULT_UPCOMING_REMINDER_DAYS = 7


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RecurringTransactionServiceImpl(RecurringTransactionService):
    def __init__(
        self,
        recurring_repo: RecurringTransactionRepository,
        reminder_repo: ReminderRepository,
        account_repo: AccountRepository,
        reminder_lead_time: timedelta = DEFAULT_REMINDER_LEAD_TIME,
        upcoming_reminder_days: int = DEFAULT_UPCOMING_REMINDER_DAYS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._recurring_repo = recurring_repo
        self._reminder_repo = reminder_repo
        self._account_repo = account_repo
        self._reminder_lead_time = reminder_lead_time
        self._upcoming_reminder_days = upcoming_reminder_days
        self._clock = clock

    def create(self, request: CreateRecurringTransactionRequest) -> RecurringTransaction:
        """Persist a new schedule with its first ``next_due`` and reminder.

        Raises:
            AccountNotFoundError: If the target account doesn't exist
            InvalidRecurrenceError: If the schedule fields are out of range
        """
        if self._account_repo.get(request.account_id) is None:
            raise AccountNotFoundError(request.account_id)
        validate_recurrence(
            request.frequency,
            request.day_of_week,
            request.day_of_month,
            request.month_of_year,
        )
        if request.end_date is not None and request.end_date < request.start_date:
            raise InvalidRecurrenceError(
                "end_date", request.end_date, "must not be before start_date"
            )

        now = self._clock()
        next_due = calculate_next_due(
            now,
            request.start_date,
            request.recur_type,
            request.frequency,
            request.day_of_week,
            request.day_of_month,
            request.month_of_year,
        )
        recurring = RecurringTransaction(
            user_id=request.user_id,
            account_id=request.account_id,
            name=request.name,
            type=request.type,
            amount=request.amount,
            start_date=request.start_date,
            recur_type=request.recur_type,
            next_due=next_due,
            note=request.note,
            end_date=request.end_date,
            frequency=request.frequency,
            day_of_week=request.day_of_week,
            day_of_month=request.day_of_month,
            month_of_year=request.month_of_year,
            created_at=now,
            updated_at=now,
        )
        self._recurring_repo.add(recurring)
        logger.info(
            "recurring_transaction_created",
            recurring_transaction_id=str(recurring.id),
            user_id=str(recurring.user_id),
            recur_type=recurrence_type_value(request.recur_type),
            next_due=next_due.isoformat(),
        )

        reminder_date = calculate_reminder_date(next_due, self._reminder_lead_time)
        if reminder_date > now:
            try:
                self._reminder_repo.create(recurring.id, reminder_date)
            except PersonalLedgerError as exc:
                logger.warning(
                    "initial_reminder_failed",
                    recurring_transaction_id=str(recurring.id),
                    error=str(exc),
                )
        return recurring

    def get(self, recurring_id: UUID) -> RecurringTransaction:
        recurring = self._recurring_repo.get(recurring_id)
        if recurring is None:
            raise RecurringTransactionNotFoundError(recurring_id)
        return recurring

    def list_by_user(self, user_id: UUID) -> list[RecurringTransaction]:
        return list(self._recurring_repo.list_by_user(user_id))

    def update(
        self, recurring_id: UUID, request: UpdateRecurringTransactionRequest
    ) -> RecurringTransaction:
        """Apply the provided fields; ``next_due`` keeps its current value.

        Raises:
            RecurringTransactionNotFoundError: If the schedule doesn't exist
            InvalidRecurrenceError: If the resulting schedule is out of range
            InvalidStatusTransitionError: If the status change is not allowed
            RecurringTransactionConflictError: If the status changed since it was read
        """
        recurring = self.get(recurring_id)
        read_status = recurring.status
        now = self._clock()

        if request.name is not None:
            recurring.name = request.name
        if request.type is not None:
            recurring.type = request.type
        if request.amount is not None:
            recurring.amount = request.amount
        if request.note is not None:
            recurring.note = request.note
        if request.end_date is not None:
            if request.end_date < recurring.start_date:
                raise InvalidRecurrenceError(
                    "end_date", request.end_date, "must not be before start_date"
                )
            recurring.end_date = request.end_date
        if request.recur_type is not None:
            recurring.recur_type = request.recur_type
        if request.frequency is not None:
            recurring.frequency = request.frequency
        if request.day_of_week is not None:
            recurring.day_of_week = request.day_of_week
        if request.day_of_month is not None:
            recurring.day_of_month = request.day_of_month
        if request.month_of_year is not None:
            recurring.month_of_year = request.month_of_year

        validate_recurrence(
            recurring.frequency,
            recurring.day_of_week,
            recurring.day_of_month,
            recurring.month_of_year,
        )
        if request.status is not None:
            recurring.transition_to(request.status, now)

        recurring.updated_at = now
        self._recurring_repo.update(recurring, expected_status=read_status)
        logger.info(
            "recurring_transaction_updated",
            recurring_transaction_id=str(recurring_id),
            status=recurring.status.value,
        )
        return recurring

    def cancel(self, recurring_id: UUID) -> None:
        """Soft delete: the schedule becomes ``cancelled`` and is never processed again.

        Raises RecurringTransactionConflictError if the schedule completed after it
        was read.
        """
        recurring = self.get(recurring_id)
        now = self._clock()
        recurring.transition_to(RecurrenceStatus.CANCELLED, now)
        self._recurring_repo.delete(recurring_id, now)
        logger.info("recurring_transaction_cancelled", recurring_transaction_id=str(recurring_id))

    def preview_next_due(
        self,
        start_date: datetime,
        recur_type: RecurrenceType,
        frequency: int = 1,
        day_of_week: int | None = None,
        day_of_month: int | None = None,
        month_of_year: int | None = None,
        reference: datetime | None = None,
    ) -> datetime:
        validate_recurrence(frequency, day_of_week, day_of_month, month_of_year)
        return calculate_next_due(
            reference if reference is not None else self._clock(),
            start_date,
            recur_type,
            frequency,
            day_of_week,
            day_of_month,
            month_of_year,
        )

    def list_reminders(self, recurring_id: UUID) -> list[Reminder]:
        self.get(recurring_id)
        return list(self._reminder_repo.list_by_recurring_transaction(recurring_id))

    def list_active_reminders(self, user_id: UUID) -> list[Reminder]:
        return list(self._reminder_repo.list_active_for_user(user_id, self._clock()))

    def list_upcoming_reminders(self, user_id: UUID, days: int | None = None) -> list[Reminder]:
        now = self._clock()
        window = timedelta(days=days if days is not None else self._upcoming_reminder_days)
        return list(self._reminder_repo.list_upcoming_for_user(user_id, now, now + window))

    def get_reminder(self, reminder_id: UUID) -> Reminder:
        reminder = self._reminder_repo.get(reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    def mark_reminder_read(self, reminder_id: UUID) -> Reminder:
        reminder = self._reminder_repo.mark_read(reminder_id, self._clock())
        logger.debug("reminder_marked_read", reminder_id=str(reminder_id))
        return reminder
