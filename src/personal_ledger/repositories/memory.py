"""In-memory implementations of repository interfaces.

Used by tests and for previews. Records are deep-copied on the way in and out
so callers never alias stored state.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import LedgerEntry, LedgerWrite
from personal_ledger.domain.recurring import RecurringTransaction, Reminder
from personal_ledger.domain.value_objects import RecurrenceStatus
from personal_ledger.exceptions import (
    AccountNotFoundError,
    ConcurrentModificationError,
    LedgerEntryNotFoundError,
    RecurringTransactionConflictError,
    RecurringTransactionNotFoundError,
    ReminderNotFoundError,
)
from personal_ledger.repositories.interfaces import (
    AccountRepository,
    LedgerRepository,
    RecurringTransactionRepository,
    ReminderRepository,
)


class InMemoryDatabase:
    """Shared state for the in-memory repositories.

    ``_lock`` guards the dictionaries themselves; balance mutations take the
    per-account lock from ``account_lock`` so different accounts never block
    each other.
    """

    def __init__(self) -> None:
        self.accounts: dict[UUID, Account] = {}
        self.entries: dict[UUID, LedgerEntry] = {}
        self.recurring: dict[UUID, RecurringTransaction] = {}
        self.reminders: dict[UUID, Reminder] = {}
        self._lock = threading.RLock()
        self._account_locks: dict[UUID, threading.Lock] = {}

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def account_lock(self, account_id: UUID) -> threading.Lock:
        with self._lock:
            lock = self._account_locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._account_locks[account_id] = lock
            return lock

    def initialize(self) -> None:
        """Nothing to create; present for parity with the durable engines."""

    def close(self) -> None:
        with self._lock:
            self.accounts.clear()
            self.entries.clear()
            self.recurring.clear()
            self.reminders.clear()
            self._account_locks.clear()


class InMemoryAccountRepository(AccountRepository):
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    def add(self, account: Account) -> None:
        with self._db.lock:
            self._db.accounts[account.id] = copy.deepcopy(account)

    def get(self, account_id: UUID) -> Account | None:
        with self._db.lock:
            account = self._db.accounts.get(account_id)
            return copy.deepcopy(account) if account is not None else None

    def list_by_user(self, user_id: UUID) -> Iterable[Account]:
        with self._db.lock:
            return [
                copy.deepcopy(account)
                for account in self._db.accounts.values()
                if account.user_id == user_id
            ]

    def update(self, account: Account) -> None:
        with self._db.account_lock(account.id):
            with self._db.lock:
                stored = self._db.accounts.get(account.id)
                if stored is None:
                    raise AccountNotFoundError(account.id)
                stored.name = account.name
                stored.currency = account.currency
                stored.status = account.status
                stored.updated_at = account.updated_at


class InMemoryLedgerRepository(LedgerRepository):
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    def get(self, entry_id: UUID) -> LedgerEntry | None:
        with self._db.lock:
            entry = self._db.entries.get(entry_id)
            return copy.deepcopy(entry) if entry is not None else None

    def list_by_account(
        self, account_id: UUID, include_voided: bool = True
    ) -> Iterable[LedgerEntry]:
        with self._db.lock:
            entries = [
                copy.deepcopy(entry)
                for entry in self._db.entries.values()
                if entry.account_id == account_id
                and (include_voided or not entry.is_voided)
            ]
        return sorted(entries, key=lambda e: (e.date, e.created_at))

    def find_by_occurrence(
        self, recurring_transaction_id: UUID, occurrence_due: datetime
    ) -> LedgerEntry | None:
        with self._db.lock:
            for entry in self._db.entries.values():
                if (
                    entry.recurring_transaction_id == recurring_transaction_id
                    and entry.occurrence_due == occurrence_due
                ):
                    return copy.deepcopy(entry)
        return None

    def apply_ledger_delta(
        self, account_id: UUID, write: LedgerWrite, balance_delta: Decimal
    ) -> None:
        with self._db.account_lock(account_id):
            with self._db.lock:
                account = self._db.accounts.get(account_id)
                if account is None:
                    raise AccountNotFoundError(account_id)
                if not write.is_insert:
                    stored = self._db.entries.get(write.entry.id)
                    if stored is None:
                        raise LedgerEntryNotFoundError(write.entry.id)
                    if stored.version != write.expected_version:
                        raise ConcurrentModificationError(
                            write.entry.id, write.expected_version, stored.version
                        )
                # Both halves are computed before either is stored.
                new_balance = account.balance + balance_delta
                new_entry = copy.deepcopy(write.entry)
                self._db.entries[new_entry.id] = new_entry
                account.balance = new_balance
                account.updated_at = datetime.now(UTC)


class InMemoryRecurringTransactionRepository(RecurringTransactionRepository):
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    def add(self, recurring: RecurringTransaction) -> None:
        with self._db.lock:
            self._db.recurring[recurring.id] = copy.deepcopy(recurring)

    def get(self, recurring_id: UUID) -> RecurringTransaction | None:
        with self._db.lock:
            recurring = self._db.recurring.get(recurring_id)
            return copy.deepcopy(recurring) if recurring is not None else None

    def list_by_user(self, user_id: UUID) -> Iterable[RecurringTransaction]:
        with self._db.lock:
            return [
                copy.deepcopy(r)
                for r in self._db.recurring.values()
                if r.user_id == user_id and r.deleted_at is None
            ]

    def list_active_due(self, before: datetime) -> Iterable[RecurringTransaction]:
        with self._db.lock:
            due = [
                copy.deepcopy(r)
                for r in self._db.recurring.values()
                if r.status == RecurrenceStatus.ACTIVE
                and r.deleted_at is None
                and r.next_due <= before
            ]
        return sorted(due, key=lambda r: r.next_due)

    def update(
        self, recurring: RecurringTransaction, expected_status: RecurrenceStatus
    ) -> None:
        with self._db.lock:
            stored = self._db.recurring.get(recurring.id)
            if stored is None:
                raise RecurringTransactionNotFoundError(recurring.id)
            if stored.status != expected_status:
                raise RecurringTransactionConflictError(
                    recurring.id, expected_status.value, stored.status.value
                )
            updated = copy.deepcopy(recurring)
            updated.next_due = stored.next_due
            updated.last_executed = stored.last_executed
            self._db.recurring[recurring.id] = updated

    def complete(
        self, recurring_id: UUID, last_executed: datetime
    ) -> RecurringTransaction | None:
        with self._db.lock:
            stored = self._db.recurring.get(recurring_id)
            if stored is None:
                raise RecurringTransactionNotFoundError(recurring_id)
            if stored.status != RecurrenceStatus.ACTIVE:
                return None
            stored.status = RecurrenceStatus.COMPLETED
            stored.last_executed = last_executed
            stored.updated_at = datetime.now(UTC)
            return copy.deepcopy(stored)

    def update_execution(
        self, recurring_id: UUID, last_executed: datetime, next_due: datetime
    ) -> RecurringTransaction:
        with self._db.lock:
            stored = self._db.recurring.get(recurring_id)
            if stored is None:
                raise RecurringTransactionNotFoundError(recurring_id)
            stored.last_executed = last_executed
            stored.next_due = next_due
            stored.updated_at = datetime.now(UTC)
            return copy.deepcopy(stored)

    def delete(self, recurring_id: UUID, deleted_at: datetime) -> None:
        with self._db.lock:
            stored = self._db.recurring.get(recurring_id)
            if stored is None:
                raise RecurringTransactionNotFoundError(recurring_id)
            if stored.status == RecurrenceStatus.CANCELLED:
                return
            if stored.status == RecurrenceStatus.COMPLETED:
                raise RecurringTransactionConflictError(
                    recurring_id, RecurrenceStatus.CANCELLED.value, stored.status.value
                )
            stored.status = RecurrenceStatus.CANCELLED
            stored.deleted_at = deleted_at
            stored.updated_at = deleted_at


class InMemoryReminderRepository(ReminderRepository):
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    def create(self, recurring_transaction_id: UUID, reminder_date: datetime) -> Reminder:
        reminder = Reminder(
            recurring_transaction_id=recurring_transaction_id,
            reminder_date=reminder_date,
        )
        with self._db.lock:
            if recurring_transaction_id not in self._db.recurring:
                raise RecurringTransactionNotFoundError(recurring_transaction_id)
            self._db.reminders[reminder.id] = copy.deepcopy(reminder)
        return reminder

    def get(self, reminder_id: UUID) -> Reminder | None:
        with self._db.lock:
            reminder = self._db.reminders.get(reminder_id)
            return copy.deepcopy(reminder) if reminder is not None else None

    def list_by_recurring_transaction(
        self, recurring_transaction_id: UUID
    ) -> Iterable[Reminder]:
        with self._db.lock:
            reminders = [
                copy.deepcopy(r)
                for r in self._db.reminders.values()
                if r.recurring_transaction_id == recurring_transaction_id
            ]
        return sorted(reminders, key=lambda r: r.reminder_date)

    def list_active_for_user(self, user_id: UUID, before: datetime) -> Iterable[Reminder]:
        return [
            r for r in self._unread_for_user(user_id) if r.reminder_date <= before
        ]

    def list_upcoming_for_user(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> Iterable[Reminder]:
        return [
            r for r in self._unread_for_user(user_id) if start <= r.reminder_date <= end
        ]

    def mark_read(self, reminder_id: UUID, read_at: datetime) -> Reminder:
        with self._db.lock:
            stored = self._db.reminders.get(reminder_id)
            if stored is None:
                raise ReminderNotFoundError(reminder_id)
            stored.mark_read(read_at)
            return copy.deepcopy(stored)

    def _unread_for_user(self, user_id: UUID) -> list[Reminder]:
        with self._db.lock:
            owned = {
                r.id
                for r in self._db.recurring.values()
                if r.user_id == user_id and r.deleted_at is None
            }
            reminders = [
                copy.deepcopy(r)
                for r in self._db.reminders.values()
                if r.recurring_transaction_id in owned and not r.is_read
            ]
        return sorted(reminders, key=lambda r: r.reminder_date)
