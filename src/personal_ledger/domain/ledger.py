from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from personal_ledger.domain.value_objects import LedgerType
from personal_ledger.exceptions import LedgerEntryAlreadyVoidedError

DEFAULT_EDITABLE_WINDOW = timedelta(minutes=15)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class LedgerEntry:
    """A single dated, signed line item against one account.

    ``amount`` is the exact delta this entry contributes to the account balance
    while it is not voided. Entries are never deleted.
    """

    account_id: UUID
    date: datetime
    type: LedgerType
    amount: Decimal
    id: UUID = field(default_factory=uuid4)
    currency: str = "USD"
    note: str = ""
    is_adjustment: bool = False
    adjusted_from: UUID | None = None
    is_voided: bool = False
    voided_at: datetime | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    version: int = 1
    recurring_transaction_id: UUID | None = None
    occurrence_due: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))

    @property
    def balance_contribution(self) -> Decimal:
        return Decimal("0") if self.is_voided else self.amount

    def age(self, now: datetime) -> timedelta:
        return now - self.created_at

    def is_editable(
        self, now: datetime, window: timedelta = DEFAULT_EDITABLE_WINDOW
    ) -> bool:
        return self.age(now) <= window

    def apply_update(self, request: "UpdateLedgerEntryRequest", now: datetime) -> Decimal:
        """Apply the provided fields and return the resulting balance delta."""
        delta = Decimal("0")
        if request.date is not None:
            self.date = request.date
        if request.type is not None:
            self.type = request.type
        if request.amount is not None:
            delta = request.amount - self.amount
            self.amount = request.amount
        if request.note is not None:
            self.note = request.note
        self.updated_at = now
        return delta

    def void(self, now: datetime) -> Decimal:
        """Mark the entry voided and return the balance delta that reverses it."""
        if self.is_voided:
            raise LedgerEntryAlreadyVoidedError(self.id)
        self.is_voided = True
        self.voided_at = now
        self.updated_at = now
        return -self.amount


@dataclass(frozen=True)
class UpdateLedgerEntryRequest:
    """Partial update of a ledger entry; ``None`` means "not provided"."""

    date: datetime | None = None
    type: LedgerType | None = None
    amount: Decimal | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        if self.amount is not None and not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

    @property
    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (self.date, self.type, self.amount, self.note)
        )


@dataclass(frozen=True)
class LedgerWrite:
    """The entry half of an atomic entry-plus-balance write.

    ``expected_version`` is None for inserts. For updates it is the version the
    caller read; the store rejects the write if the stored row has moved on.
    """

    entry: LedgerEntry
    expected_version: int | None = None

    @property
    def is_insert(self) -> bool:
        return self.expected_version is None
