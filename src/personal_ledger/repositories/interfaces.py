from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import LedgerEntry, LedgerWrite
from personal_ledger.domain.recurring import RecurringTransaction, Reminder
from personal_ledger.domain.value_objects import RecurrenceStatus


class AccountRepository(ABC):
    @abstractmethod
    def add(self, account: Account) -> None:
        pass

    @abstractmethod
    def get(self, account_id: UUID) -> Account | None:
        pass

    @abstractmethod
    def list_by_user(self, user_id: UUID) -> Iterable[Account]:
        pass

    @abstractmethod
    def update(self, account: Account) -> None:
        """Persist account metadata. The balance column is never written here."""


class LedgerRepository(ABC):
    @abstractmethod
    def get(self, entry_id: UUID) -> LedgerEntry | None:
        pass

    @abstractmethod
    def list_by_account(
        self, account_id: UUID, include_voided: bool = True
    ) -> Iterable[LedgerEntry]:
        pass

    @abstractmethod
    def find_by_occurrence(
        self, recurring_transaction_id: UUID, occurrence_due: datetime
    ) -> LedgerEntry | None:
        pass

    @abstractmethod
    def apply_ledger_delta(
        self, account_id: UUID, write: LedgerWrite, balance_delta: Decimal
    ) -> None:
        """Write the entry and add ``balance_delta`` to the account atomically.

        Holds an exclusive lock scoped to ``account_id`` for the duration of the
        write. Raises AccountNotFoundError if the account is missing,
        LedgerEntryNotFoundError if an update targets a missing entry,
        ConcurrentModificationError on a version mismatch and PersistenceError
        for any storage failure. On error nothing is written.
        """


class RecurringTransactionRepository(ABC):
    @abstractmethod
    def add(self, recurring: RecurringTransaction) -> None:
        pass

    @abstractmethod
    def get(self, recurring_id: UUID) -> RecurringTransaction | None:
        pass

    @abstractmethod
    def list_by_user(self, user_id: UUID) -> Iterable[RecurringTransaction]:
        pass

    @abstractmethod
    def list_active_due(self, before: datetime) -> Iterable[RecurringTransaction]:
        """Active rows whose next_due is at or before ``before``."""

    @abstractmethod
    def update(
        self, recurring: RecurringTransaction, expected_status: RecurrenceStatus
    ) -> None:
        """Write the editable fields and status.

        Applies only while the stored status still equals ``expected_status``;
        otherwise RecurringTransactionConflictError is raised and nothing changes.
        """

    @abstractmethod
    def complete(
        self, recurring_id: UUID, last_executed: datetime
    ) -> RecurringTransaction | None:
        """Move an active schedule to completed and stamp ``last_executed``.

        Returns None without writing when the schedule is no longer active.
        """

    @abstractmethod
    def update_execution(
        self, recurring_id: UUID, last_executed: datetime, next_due: datetime
    ) -> RecurringTransaction:
        pass

    @abstractmethod
    def delete(self, recurring_id: UUID, deleted_at: datetime) -> None:
        """Soft delete: set status to cancelled and stamp deleted_at.

        Already cancelled rows are left as they are. A completed row raises
        RecurringTransactionConflictError.
        """


class ReminderRepository(ABC):
    @abstractmethod
    def create(self, recurring_transaction_id: UUID, reminder_date: datetime) -> Reminder:
        pass

    @abstractmethod
    def get(self, reminder_id: UUID) -> Reminder | None:
        pass

    @abstractmethod
    def list_by_recurring_transaction(
        self, recurring_transaction_id: UUID
    ) -> Iterable[Reminder]:
        pass

    @abstractmethod
    def list_active_for_user(self, user_id: UUID, before: datetime) -> Iterable[Reminder]:
        """Unread reminders dated at or before ``before`` for the user's schedules."""

    @abstractmethod
    def list_upcoming_for_user(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> Iterable[Reminder]:
        pass

    @abstractmethod
    def mark_read(self, reminder_id: UUID, read_at: datetime) -> Reminder:
        pass
