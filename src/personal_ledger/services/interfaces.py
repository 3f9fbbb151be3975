from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from personal_ledger.domain.ledger import LedgerEntry, UpdateLedgerEntryRequest
from personal_ledger.domain.recurring import (
    CreateRecurringTransactionRequest,
    RecurringTransaction,
    Reminder,
    UpdateRecurringTransactionRequest,
)
from personal_ledger.domain.value_objects import LedgerType, RecurrenceType


@dataclass
class ProcessingReport:
    """Outcome of one due-transaction tick."""

    started_at: datetime
    due: int = 0
    posted: int = 0
    skipped: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: bool = False
    failed_ids: list[UUID] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.posted + self.skipped

    @property
    def remaining(self) -> int:
        return self.due - self.processed - self.failed


class LedgerService(ABC):
    @abstractmethod
    def create_entry(
        self,
        account_id: UUID,
        date: datetime,
        type: LedgerType,
        amount: Decimal,
        note: str = "",
        *,
        recurring_transaction_id: UUID | None = None,
        occurrence_due: datetime | None = None,
    ) -> UUID:
        pass

    @abstractmethod
    def update_entry(self, entry_id: UUID, request: UpdateLedgerEntryRequest) -> None:
        pass

    @abstractmethod
    def void_entry(self, entry_id: UUID) -> None:
        pass

    @abstractmethod
    def adjust_entry(
        self,
        original_id: UUID,
        account_id: UUID,
        date: datetime,
        type: LedgerType,
        amount: Decimal,
        note: str = "",
    ) -> UUID:
        pass

    @abstractmethod
    def get_entry(self, entry_id: UUID) -> LedgerEntry:
        pass

    @abstractmethod
    def list_entries(
        self, account_id: UUID, include_voided: bool = True
    ) -> list[LedgerEntry]:
        pass

    @abstractmethod
    def get_account_balance(self, account_id: UUID) -> Decimal:
        pass

    @abstractmethod
    def recompute_account_balance(self, account_id: UUID) -> Decimal:
        pass


class RecurringTransactionService(ABC):
    @abstractmethod
    def create(self, request: CreateRecurringTransactionRequest) -> RecurringTransaction:
        pass

    @abstractmethod
    def get(self, recurring_id: UUID) -> RecurringTransaction:
        pass

    @abstractmethod
    def list_by_user(self, user_id: UUID) -> list[RecurringTransaction]:
        pass

    @abstractmethod
    def update(
        self, recurring_id: UUID, request: UpdateRecurringTransactionRequest
    ) -> RecurringTransaction:
        pass

    @abstractmethod
    def cancel(self, recurring_id: UUID) -> None:
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    def list_reminders(self, recurring_id: UUID) -> list[Reminder]:
        pass

    @abstractmethod
    def list_active_reminders(self, user_id: UUID) -> list[Reminder]:
        pass

    @abstractmethod
    def list_upcoming_reminders(self, user_id: UUID, days: int | None = None) -> list[Reminder]:
        pass

    @abstractmethod
    def get_reminder(self, reminder_id: UUID) -> Reminder:
        pass

    @abstractmethod
    def mark_reminder_read(self, reminder_id: UUID) -> Reminder:
        pass
