"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from uuid import UUID

from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import LedgerEntry, LedgerWrite
from personal_ledger.domain.recurring import RecurringTransaction, Reminder
from personal_ledger.domain.value_objects import (
    AccountStatus,
    LedgerType,
    RecurrenceStatus,
    parse_recurrence_type,
    recurrence_type_value,
)
from personal_ledger.exceptions import (
    AccountNotFoundError,
    ConcurrentModificationError,
    LedgerEntryNotFoundError,
    PersistenceError,
    PersonalLedgerError,
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


def _to_db_time(value: datetime | None) -> str | None:
    """Serialize an instant as fixed-width UTC ISO text so it sorts correctly."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _from_db_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SQLiteDatabase:
    """SQLite database connection manager.

    A file database gives every thread its own connection in WAL mode. Readers
    never wait on each other, and a write holds only SQLite's database write
    lock for the length of its ``BEGIN IMMEDIATE`` transaction. SQLite allows
    one writer per file, so writes to different accounts still queue there;
    ``busy_timeout`` bounds that wait.

    An in-memory database lives inside a single connection. That connection is
    shared and each use of it is serialized by ``_memory_lock``.
    """

    def __init__(self, path: str | Path = ":memory:", busy_timeout: float = 30.0) -> None:
        self._path = str(path)
        self._busy_timeout = busy_timeout
        self._local = threading.local()
        self._generation = 0
        self._connections: list[sqlite3.Connection] = []
        self._registry_lock = threading.Lock()
        self._memory_lock = threading.RLock()

    @property
    def is_memory(self) -> bool:
        return self._path == ":memory:"

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._path,
            timeout=self._busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        if not self.is_memory:
            conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the connection for the calling thread."""
        if not self.is_memory and getattr(self._local, "generation", None) == self._generation:
            return self._local.connection
        with self._registry_lock:
            if self.is_memory and self._connections:
                return self._connections[0]
            conn = self._connect()
            self._connections.append(conn)
            self._local.connection = conn
            self._local.generation = self._generation
            return conn

    def _serialized(self) -> AbstractContextManager[Any]:
        return self._memory_lock if self.is_memory else nullcontext()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside BEGIN IMMEDIATE ... COMMIT, rolling back on error.

        Domain errors raised in the block propagate unchanged; sqlite3 errors
        become PersistenceError.
        """
        with self._serialized():
            conn = self.get_connection()
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise PersistenceError(f"Could not start transaction: {exc}") from exc
            try:
                yield conn
                conn.execute("COMMIT")
            except PersonalLedgerError:
                conn.execute("ROLLBACK")
                raise
            except sqlite3.Error as exc:
                conn.execute("ROLLBACK")
                raise PersistenceError(f"Transaction failed: {exc}") from exc
            except BaseException:
                conn.execute("ROLLBACK")
                raise

    def fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        with self._serialized():
            return self.get_connection().execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        with self._serialized():
            return self.get_connection().execute(sql, params).fetchall()

    def initialize(self) -> None:
        """Create all database tables."""
        with self._serialized():
            conn = self.get_connection()
            conn.executescript(
                """
                -- Accounts table
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    currency TEXT NOT NULL DEFAULT 'USD',
                    status TEXT NOT NULL DEFAULT 'active',
                    balance TEXT NOT NULL DEFAULT '0',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                -- Ledger entries table
                CREATE TABLE IF NOT EXISTS ledger_entries (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    type TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    note TEXT NOT NULL DEFAULT '',
                    is_adjustment INTEGER NOT NULL DEFAULT 0,
                    adjusted_from TEXT,
                    is_voided INTEGER NOT NULL DEFAULT 0,
                    voided_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1,
                    recurring_transaction_id TEXT,
                    occurrence_due TEXT,
                    FOREIGN KEY (account_id) REFERENCES accounts(id),
                    FOREIGN KEY (adjusted_from) REFERENCES ledger_entries(id)
                );

                -- Recurring transactions table
                CREATE TABLE IF NOT EXISTS recurring_transactions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    account_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    note TEXT NOT NULL DEFAULT '',
                    start_date TEXT NOT NULL,
                    end_date TEXT,
                    recur_type TEXT NOT NULL,
                    frequency INTEGER NOT NULL DEFAULT 1,
                    day_of_week INTEGER,
                    day_of_month INTEGER,
                    month_of_year INTEGER,
                    status TEXT NOT NULL DEFAULT 'active',
                    last_executed TEXT,
                    next_due TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    deleted_at TEXT,
                    FOREIGN KEY (account_id) REFERENCES accounts(id)
                );

                -- Reminders table
                CREATE TABLE IF NOT EXISTS reminders (
                    id TEXT PRIMARY KEY,
                    recurring_transaction_id TEXT NOT NULL,
                    reminder_date TEXT NOT NULL,
                    is_read INTEGER NOT NULL DEFAULT 0,
                    read_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (recurring_transaction_id) REFERENCES recurring_transactions(id)
                );

                -- Indexes for common queries
                CREATE INDEX IF NOT EXISTS idx_accounts_user_id ON accounts(user_id);
                CREATE INDEX IF NOT EXISTS idx_ledger_entries_account_id ON ledger_entries(account_id);
                CREATE UNIQUE INDEX IF NOT EXISTS idx_ledger_entries_occurrence
                    ON ledger_entries(recurring_transaction_id, occurrence_due)
                    WHERE recurring_transaction_id IS NOT NULL;
                CREATE INDEX IF NOT EXISTS idx_recurring_user_id ON recurring_transactions(user_id);
                CREATE INDEX IF NOT EXISTS idx_recurring_status_next_due ON recurring_transactions(status, next_due);
                CREATE INDEX IF NOT EXISTS idx_reminders_recurring_id ON reminders(recurring_transaction_id);
                CREATE INDEX IF NOT EXISTS idx_reminders_date ON reminders(reminder_date);
                """
            )

    def close(self) -> None:
        """Close every connection opened so far; later calls open new ones."""
        with self._memory_lock, self._registry_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
            self._generation += 1


class SQLiteAccountRepository(AccountRepository):
    """SQLite implementation of AccountRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, account: Account) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO accounts (id, user_id, name, currency, status, balance,
                                      created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(account.id),
                    str(account.user_id),
                    account.name,
                    account.currency,
                    account.status.value,
                    str(account.balance),
                    _to_db_time(account.created_at),
                    _to_db_time(account.updated_at),
                ),
            )

    def get(self, account_id: UUID) -> Account | None:
        row = self._db.fetchone(
            "SELECT * FROM accounts WHERE id = ?", (str(account_id),)
        )
        if row is None:
            return None
        return self._row_to_account(row)

    def list_by_user(self, user_id: UUID) -> Iterable[Account]:
        rows = self._db.fetchall(
            "SELECT * FROM accounts WHERE user_id = ? ORDER BY created_at",
            (str(user_id),),
        )
        return [self._row_to_account(row) for row in rows]

    def update(self, account: Account) -> None:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE accounts SET
                    name = ?,
                    currency = ?,
                    status = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    account.name,
                    account.currency,
                    account.status.value,
                    _to_db_time(account.updated_at),
                    str(account.id),
                ),
            )
            if cursor.rowcount == 0:
                raise AccountNotFoundError(account.id)

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            user_id=UUID(row["user_id"]),
            name=row["name"],
            id=UUID(row["id"]),
            currency=row["currency"],
            status=AccountStatus(row["status"]),
            balance=Decimal(row["balance"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
        )


class SQLiteLedgerRepository(LedgerRepository):
    """SQLite implementation of LedgerRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def get(self, entry_id: UUID) -> LedgerEntry | None:
        row = self._db.fetchone(
            "SELECT * FROM ledger_entries WHERE id = ?", (str(entry_id),)
        )
        if row is None:
            return None
        return self._row_to_entry(row)

    def list_by_account(
        self, account_id: UUID, include_voided: bool = True
    ) -> Iterable[LedgerEntry]:
        query = "SELECT * FROM ledger_entries WHERE account_id = ?"
        if not include_voided:
            query += " AND is_voided = 0"
        query += " ORDER BY date, created_at"
        rows = self._db.fetchall(query, (str(account_id),))
        return [self._row_to_entry(row) for row in rows]

    def find_by_occurrence(
        self, recurring_transaction_id: UUID, occurrence_due: datetime
    ) -> LedgerEntry | None:
        row = self._db.fetchone(
            """
            SELECT * FROM ledger_entries
            WHERE recurring_transaction_id = ? AND occurrence_due = ?
            """,
            (str(recurring_transaction_id), _to_db_time(occurrence_due)),
        )
        if row is None:
            return None
        return self._row_to_entry(row)

    def apply_ledger_delta(
        self, account_id: UUID, write: LedgerWrite, balance_delta: Decimal
    ) -> None:
        entry = write.entry
        with self._db.transaction() as conn:
            account_row = conn.execute(
                "SELECT balance FROM accounts WHERE id = ?", (str(account_id),)
            ).fetchone()
            if account_row is None:
                raise AccountNotFoundError(account_id)

            if write.is_insert:
                self._insert_entry(conn, entry)
            else:
                version_row = conn.execute(
                    "SELECT version FROM ledger_entries WHERE id = ?", (str(entry.id),)
                ).fetchone()
                if version_row is None:
                    raise LedgerEntryNotFoundError(entry.id)
                if version_row["version"] != write.expected_version:
                    raise ConcurrentModificationError(
                        entry.id, write.expected_version, version_row["version"]
                    )
                self._update_entry(conn, entry)

            new_balance = Decimal(account_row["balance"]) + balance_delta
            conn.execute(
                "UPDATE accounts SET balance = ?, updated_at = ? WHERE id = ?",
                (
                    str(new_balance),
                    _to_db_time(datetime.now(UTC)),
                    str(account_id),
                ),
            )

    def _insert_entry(self, conn: sqlite3.Connection, entry: LedgerEntry) -> None:
        conn.execute(
            """
            INSERT INTO ledger_entries (id, account_id, date, type, currency, amount, note,
                                        is_adjustment, adjusted_from, is_voided, voided_at,
                                        created_at, updated_at, version,
                                        recurring_transaction_id, occurrence_due)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(entry.id),
                str(entry.account_id),
                _to_db_time(entry.date),
                entry.type.value,
                entry.currency,
                str(entry.amount),
                entry.note,
                1 if entry.is_adjustment else 0,
                str(entry.adjusted_from) if entry.adjusted_from else None,
                1 if entry.is_voided else 0,
                _to_db_time(entry.voided_at),
                _to_db_time(entry.created_at),
                _to_db_time(entry.updated_at),
                entry.version,
                str(entry.recurring_transaction_id)
                if entry.recurring_transaction_id
                else None,
                _to_db_time(entry.occurrence_due),
            ),
        )

    def _update_entry(self, conn: sqlite3.Connection, entry: LedgerEntry) -> None:
        conn.execute(
            """
            UPDATE ledger_entries SET
                date = ?,
                type = ?,
                amount = ?,
                note = ?,
                is_voided = ?,
                voided_at = ?,
                updated_at = ?,
                version = ?
            WHERE id = ?
            """,
            (
                _to_db_time(entry.date),
                entry.type.value,
                str(entry.amount),
                entry.note,
                1 if entry.is_voided else 0,
                _to_db_time(entry.voided_at),
                _to_db_time(entry.updated_at),
                entry.version,
                str(entry.id),
            ),
        )

    def _row_to_entry(self, row: sqlite3.Row) -> LedgerEntry:
        return LedgerEntry(
            account_id=UUID(row["account_id"]),
            date=_from_db_time(row["date"]),
            type=LedgerType(row["type"]),
            amount=Decimal(row["amount"]),
            id=UUID(row["id"]),
            currency=row["currency"],
            note=row["note"],
            is_adjustment=bool(row["is_adjustment"]),
            adjusted_from=UUID(row["adjusted_from"]) if row["adjusted_from"] else None,
            is_voided=bool(row["is_voided"]),
            voided_at=_from_db_time(row["voided_at"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
            version=row["version"],
            recurring_transaction_id=UUID(row["recurring_transaction_id"])
            if row["recurring_transaction_id"]
            else None,
            occurrence_due=_from_db_time(row["occurrence_due"]),
        )


class SQLiteRecurringTransactionRepository(RecurringTransactionRepository):
    """SQLite implementation of RecurringTransactionRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, recurring: RecurringTransaction) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO recurring_transactions (
                    id, user_id, account_id, name, type, amount, note, start_date,
                    end_date, recur_type, frequency, day_of_week, day_of_month,
                    month_of_year, status, last_executed, next_due, created_at,
                    updated_at, deleted_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(recurring.id),
                    str(recurring.user_id),
                    str(recurring.account_id),
                    recurring.name,
                    recurring.type.value,
                    str(recurring.amount),
                    recurring.note,
                    _to_db_time(recurring.start_date),
                    _to_db_time(recurring.end_date),
                    recurrence_type_value(recurring.recur_type),
                    recurring.frequency,
                    recurring.day_of_week,
                    recurring.day_of_month,
                    recurring.month_of_year,
                    recurring.status.value,
                    _to_db_time(recurring.last_executed),
                    _to_db_time(recurring.next_due),
                    _to_db_time(recurring.created_at),
                    _to_db_time(recurring.updated_at),
                    _to_db_time(recurring.deleted_at),
                ),
            )

    def get(self, recurring_id: UUID) -> RecurringTransaction | None:
        row = self._db.fetchone(
            "SELECT * FROM recurring_transactions WHERE id = ?", (str(recurring_id),)
        )
        if row is None:
            return None
        return self._row_to_recurring(row)

    def list_by_user(self, user_id: UUID) -> Iterable[RecurringTransaction]:
        rows = self._db.fetchall(
            """
            SELECT * FROM recurring_transactions
            WHERE user_id = ? AND deleted_at IS NULL
            ORDER BY next_due
            """,
            (str(user_id),),
        )
        return [self._row_to_recurring(row) for row in rows]

    def list_active_due(self, before: datetime) -> Iterable[RecurringTransaction]:
        rows = self._db.fetchall(
            """
            SELECT * FROM recurring_transactions
            WHERE status = ? AND deleted_at IS NULL AND next_due <= ?
            ORDER BY next_due
            """,
            (RecurrenceStatus.ACTIVE.value, _to_db_time(before)),
        )
        return [self._row_to_recurring(row) for row in rows]

    def update(
        self, recurring: RecurringTransaction, expected_status: RecurrenceStatus
    ) -> None:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE recurring_transactions SET
                    name = ?,
                    type = ?,
                    amount = ?,
                    note = ?,
                    end_date = ?,
                    recur_type = ?,
                    frequency = ?,
                    day_of_week = ?,
                    day_of_month = ?,
                    month_of_year = ?,
                    status = ?,
                    updated_at = ?,
                    deleted_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    recurring.name,
                    recurring.type.value,
                    str(recurring.amount),
                    recurring.note,
                    _to_db_time(recurring.end_date),
                    recurrence_type_value(recurring.recur_type),
                    recurring.frequency,
                    recurring.day_of_week,
                    recurring.day_of_month,
                    recurring.month_of_year,
                    recurring.status.value,
                    _to_db_time(recurring.updated_at),
                    _to_db_time(recurring.deleted_at),
                    str(recurring.id),
                    expected_status.value,
                ),
            )
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT status FROM recurring_transactions WHERE id = ?",
                    (str(recurring.id),),
                ).fetchone()
                if row is None:
                    raise RecurringTransactionNotFoundError(recurring.id)
                raise RecurringTransactionConflictError(
                    recurring.id, expected_status.value, row["status"]
                )

    def complete(
        self, recurring_id: UUID, last_executed: datetime
    ) -> RecurringTransaction | None:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE recurring_transactions SET
                    status = ?,
                    last_executed = ?,
                    updated_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    RecurrenceStatus.COMPLETED.value,
                    _to_db_time(last_executed),
                    _to_db_time(datetime.now(UTC)),
                    str(recurring_id),
                    RecurrenceStatus.ACTIVE.value,
                ),
            )
            row = conn.execute(
                "SELECT * FROM recurring_transactions WHERE id = ?",
                (str(recurring_id),),
            ).fetchone()
        if row is None:
            raise RecurringTransactionNotFoundError(recurring_id)
        if cursor.rowcount == 0:
            return None
        return self._row_to_recurring(row)

    def update_execution(
        self, recurring_id: UUID, last_executed: datetime, next_due: datetime
    ) -> RecurringTransaction:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE recurring_transactions SET
                    last_executed = ?,
                    next_due = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    _to_db_time(last_executed),
                    _to_db_time(next_due),
                    _to_db_time(datetime.now(UTC)),
                    str(recurring_id),
                ),
            )
            if cursor.rowcount == 0:
                raise RecurringTransactionNotFoundError(recurring_id)
            row = conn.execute(
                "SELECT * FROM recurring_transactions WHERE id = ?",
                (str(recurring_id),),
            ).fetchone()
        return self._row_to_recurring(row)

    def delete(self, recurring_id: UUID, deleted_at: datetime) -> None:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE recurring_transactions SET
                    status = ?,
                    deleted_at = ?,
                    updated_at = ?
                WHERE id = ? AND status IN (?, ?)
                """,
                (
                    RecurrenceStatus.CANCELLED.value,
                    _to_db_time(deleted_at),
                    _to_db_time(deleted_at),
                    str(recurring_id),
                    RecurrenceStatus.ACTIVE.value,
                    RecurrenceStatus.PAUSED.value,
                ),
            )
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT status FROM recurring_transactions WHERE id = ?",
                    (str(recurring_id),),
                ).fetchone()
                if row is None:
                    raise RecurringTransactionNotFoundError(recurring_id)
                if row["status"] == RecurrenceStatus.COMPLETED.value:
                    raise RecurringTransactionConflictError(
                        recurring_id, RecurrenceStatus.CANCELLED.value, row["status"]
                    )

    def _row_to_recurring(self, row: sqlite3.Row) -> RecurringTransaction:
        return RecurringTransaction(
            user_id=UUID(row["user_id"]),
            account_id=UUID(row["account_id"]),
            name=row["name"],
            type=LedgerType(row["type"]),
            amount=Decimal(row["amount"]),
            start_date=_from_db_time(row["start_date"]),
            recur_type=parse_recurrence_type(row["recur_type"]),
            next_due=_from_db_time(row["next_due"]),
            id=UUID(row["id"]),
            note=row["note"],
            end_date=_from_db_time(row["end_date"]),
            frequency=row["frequency"],
            day_of_week=row["day_of_week"],
            day_of_month=row["day_of_month"],
            month_of_year=row["month_of_year"],
            status=RecurrenceStatus(row["status"]),
            last_executed=_from_db_time(row["last_executed"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
            deleted_at=_from_db_time(row["deleted_at"]),
        )


class SQLiteReminderRepository(ReminderRepository):
    """SQLite implementation of ReminderRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def create(self, recurring_transaction_id: UUID, reminder_date: datetime) -> Reminder:
        reminder = Reminder(
            recurring_transaction_id=recurring_transaction_id,
            reminder_date=reminder_date,
        )
        with self._db.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM recurring_transactions WHERE id = ?",
                (str(recurring_transaction_id),),
            ).fetchone()
            if exists is None:
                raise RecurringTransactionNotFoundError(recurring_transaction_id)
            conn.execute(
                """
                INSERT INTO reminders (id, recurring_transaction_id, reminder_date,
                                       is_read, read_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(reminder.id),
                    str(reminder.recurring_transaction_id),
                    _to_db_time(reminder.reminder_date),
                    0,
                    None,
                    _to_db_time(reminder.created_at),
                    _to_db_time(reminder.updated_at),
                ),
            )
        return reminder

    def get(self, reminder_id: UUID) -> Reminder | None:
        row = self._db.fetchone(
            "SELECT * FROM reminders WHERE id = ?", (str(reminder_id),)
        )
        if row is None:
            return None
        return self._row_to_reminder(row)

    def list_by_recurring_transaction(
        self, recurring_transaction_id: UUID
    ) -> Iterable[Reminder]:
        rows = self._db.fetchall(
            """
            SELECT * FROM reminders
            WHERE recurring_transaction_id = ?
            ORDER BY reminder_date
            """,
            (str(recurring_transaction_id),),
        )
        return [self._row_to_reminder(row) for row in rows]

    def list_active_for_user(self, user_id: UUID, before: datetime) -> Iterable[Reminder]:
        rows = self._db.fetchall(
            """
            SELECT r.* FROM reminders r
            JOIN recurring_transactions rt ON rt.id = r.recurring_transaction_id
            WHERE rt.user_id = ? AND rt.deleted_at IS NULL
              AND r.is_read = 0 AND r.reminder_date <= ?
            ORDER BY r.reminder_date
            """,
            (str(user_id), _to_db_time(before)),
        )
        return [self._row_to_reminder(row) for row in rows]

    def list_upcoming_for_user(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> Iterable[Reminder]:
        rows = self._db.fetchall(
            """
            SELECT r.* FROM reminders r
            JOIN recurring_transactions rt ON rt.id = r.recurring_transaction_id
            WHERE rt.user_id = ? AND rt.deleted_at IS NULL
              AND r.is_read = 0 AND r.reminder_date BETWEEN ? AND ?
            ORDER BY r.reminder_date
            """,
            (str(user_id), _to_db_time(start), _to_db_time(end)),
        )
        return [self._row_to_reminder(row) for row in rows]

    def mark_read(self, reminder_id: UUID, read_at: datetime) -> Reminder:
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM reminders WHERE id = ?", (str(reminder_id),)
            ).fetchone()
            if row is None:
                raise ReminderNotFoundError(reminder_id)
            reminder = self._row_to_reminder(row)
            if reminder.is_read:
                return reminder
            reminder.mark_read(read_at)
            conn.execute(
                "UPDATE reminders SET is_read = 1, read_at = ?, updated_at = ? WHERE id = ?",
                (
                    _to_db_time(reminder.read_at),
                    _to_db_time(reminder.updated_at),
                    str(reminder_id),
                ),
            )
        return reminder

    def _row_to_reminder(self, row: sqlite3.Row) -> Reminder:
        return Reminder(
            recurring_transaction_id=UUID(row["recurring_transaction_id"]),
            reminder_date=_from_db_time(row["reminder_date"]),
            id=UUID(row["id"]),
            is_read=bool(row["is_read"]),
            read_at=_from_db_time(row["read_at"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
        )
