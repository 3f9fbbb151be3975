from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from personal_ledger.domain.value_objects import (
    LedgerType,
    RecurrenceStatus,
    RecurrenceType,
)
from personal_ledger.exceptions import InvalidStatusTransitionError


def _utc_now() -> datetime:
    return datetime.now(UTC)


_ALLOWED_TRANSITIONS: dict[RecurrenceStatus, set[RecurrenceStatus]] = {
    RecurrenceStatus.ACTIVE: {
        RecurrenceStatus.PAUSED,
        RecurrenceStatus.COMPLETED,
        RecurrenceStatus.CANCELLED,
    },
    RecurrenceStatus.PAUSED: {
        RecurrenceStatus.ACTIVE,
        RecurrenceStatus.CANCELLED,
    },
    RecurrenceStatus.COMPLETED: set(),
    RecurrenceStatus.CANCELLED: set(),
}


@dataclass
class RecurringTransaction:
    """A schedule that periodically materializes into ledger entries.

    ``day_of_week`` uses 0 for Sunday through 6 for Saturday.
    """

    user_id: UUID
    account_id: UUID
    name: str
    type: LedgerType
    amount: Decimal
    start_date: datetime
    recur_type: RecurrenceType | str
    next_due: datetime
    id: UUID = field(default_factory=uuid4)
    note: str = ""
    end_date: datetime | None = None
    frequency: int = 1
    day_of_week: int | None = None
    day_of_month: int | None = None
    month_of_year: int | None = None
    status: RecurrenceStatus = RecurrenceStatus.ACTIVE
    last_executed: datetime | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))

    @property
    def is_active(self) -> bool:
        return self.status == RecurrenceStatus.ACTIVE

    def is_due(self, now: datetime) -> bool:
        return self.is_active and self.next_due <= now

    def ends_before(self, instant: datetime) -> bool:
        return self.end_date is not None and instant > self.end_date

    def can_transition_to(self, status: RecurrenceStatus) -> bool:
        return status == self.status or status in _ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, status: RecurrenceStatus, now: datetime) -> None:
        if status == self.status:
            return
        if not self.can_transition_to(status):
            raise InvalidStatusTransitionError(self.id, self.status.value, status.value)
        self.status = status
        self.updated_at = now
        if status == RecurrenceStatus.CANCELLED:
            self.deleted_at = now


@dataclass
class Reminder:
    recurring_transaction_id: UUID
    reminder_date: datetime
    id: UUID = field(default_factory=uuid4)
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def mark_read(self, now: datetime) -> None:
        if self.is_read:
            return
        self.is_read = True
        self.read_at = now
        self.updated_at = now


@dataclass(frozen=True)
class CreateRecurringTransactionRequest:
    user_id: UUID
    account_id: UUID
    name: str
    type: LedgerType
    amount: Decimal
    start_date: datetime
    recur_type: RecurrenceType
    frequency: int = 1
    note: str = ""
    end_date: datetime | None = None
    day_of_week: int | None = None
    day_of_month: int | None = None
    month_of_year: int | None = None


@dataclass(frozen=True)
class UpdateRecurringTransactionRequest:
    """Partial update of a recurring transaction; ``None`` means "not provided"."""

    name: str | None = None
    type: LedgerType | None = None
    amount: Decimal | None = None
    note: str | None = None
    end_date: datetime | None = None
    recur_type: RecurrenceType | None = None
    status: RecurrenceStatus | None = None
    frequency: int | None = None
    day_of_week: int | None = None
    day_of_month: int | None = None
    month_of_year: int | None = None
