"""PostgreSQL implementations of repository interfaces."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

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


class PostgresDatabase:
    """PostgreSQL connection pool manager.

    Each unit of work borrows a pooled connection through ``transaction`` and
    either commits or rolls back before returning it.
    """

    def __init__(self, connection_string: str, pool_size: int = 5) -> None:
        self._connection_string = connection_string
        self._pool_size = pool_size
        self._pool: psycopg2.pool.ThreadedConnectionPool | None = None

    def get_pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        """Get or create the connection pool."""
        if self._pool is None or self._pool.closed:
            try:
                self._pool = psycopg2.pool.ThreadedConnectionPool(
                    1,
                    self._pool_size,
                    self._connection_string,
                    cursor_factory=psycopg2.extras.RealDictCursor,
                )
            except psycopg2.Error as exc:
                raise PersistenceError(f"Could not connect to database: {exc}") from exc
        return self._pool

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Yield a cursor inside a transaction on a pooled connection."""
        pool = self.get_pool()
        conn = pool.getconn()
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except PersonalLedgerError:
            conn.rollback()
            raise
        except psycopg2.Error as exc:
            conn.rollback()
            raise PersistenceError(f"Transaction failed: {exc}") from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def initialize(self) -> None:
        """Create all database tables."""
        with self.transaction() as cur:
            cur.execute(
                """
                -- Accounts table
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    currency TEXT NOT NULL DEFAULT 'USD',
                    status TEXT NOT NULL DEFAULT 'active',
                    balance NUMERIC NOT NULL DEFAULT 0,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
                );

                -- Ledger entries table
                CREATE TABLE IF NOT EXISTS ledger_entries (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL REFERENCES accounts(id),
                    date TIMESTAMPTZ NOT NULL,
                    type TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    amount NUMERIC NOT NULL,
                    note TEXT NOT NULL DEFAULT '',
                    is_adjustment BOOLEAN NOT NULL DEFAULT FALSE,
                    adjusted_from TEXT REFERENCES ledger_entries(id),
                    is_voided BOOLEAN NOT NULL DEFAULT FALSE,
                    voided_at TIMESTAMPTZ,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1,
                    recurring_transaction_id TEXT,
                    occurrence_due TIMESTAMPTZ
                );

                -- Recurring transactions table
                CREATE TABLE IF NOT EXISTS recurring_transactions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    account_id TEXT NOT NULL REFERENCES accounts(id),
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    amount NUMERIC NOT NULL,
                    note TEXT NOT NULL DEFAULT '',
                    start_date TIMESTAMPTZ NOT NULL,
                    end_date TIMESTAMPTZ,
                    recur_type TEXT NOT NULL,
                    frequency INTEGER NOT NULL DEFAULT 1,
                    day_of_week INTEGER,
                    day_of_month INTEGER,
                    month_of_year INTEGER,
                    status TEXT NOT NULL DEFAULT 'active',
                    last_executed TIMESTAMPTZ,
                    next_due TIMESTAMPTZ NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL,
                    deleted_at TIMESTAMPTZ
                );

                -- Reminders table
                CREATE TABLE IF NOT EXISTS reminders (
                    id TEXT PRIMARY KEY,
                    recurring_transaction_id TEXT NOT NULL
                        REFERENCES recurring_transactions(id),
                    reminder_date TIMESTAMPTZ NOT NULL,
                    is_read BOOLEAN NOT NULL DEFAULT FALSE,
                    read_at TIMESTAMPTZ,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
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
        """Close every pooled connection."""
        if self._pool is not None and not self._pool.closed:
            self._pool.closeall()
        self._pool = None


class PostgresAccountRepository(AccountRepository):
    """PostgreSQL implementation of AccountRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, account: Account) -> None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO accounts (id, user_id, name, currency, status, balance,
                                      created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    str(account.id),
                    str(account.user_id),
                    account.name,
                    account.currency,
                    account.status.value,
                    account.balance,
                    account.created_at,
                    account.updated_at,
                ),
            )

    def get(self, account_id: UUID) -> Account | None:
        with self._db.transaction() as cur:
            cur.execute("SELECT * FROM accounts WHERE id = %s", (str(account_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_account(row)

    def list_by_user(self, user_id: UUID) -> Iterable[Account]:
        with self._db.transaction() as cur:
            cur.execute(
                "SELECT * FROM accounts WHERE user_id = %s ORDER BY created_at",
                (str(user_id),),
            )
            rows = cur.fetchall()
        return [self._row_to_account(row) for row in rows]

    def update(self, account: Account) -> None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                UPDATE accounts SET
                    name = %s,
                    currency = %s,
                    status = %s,
                    updated_at = %s
                WHERE id = %s
                """,
                (
                    account.name,
                    account.currency,
                    account.status.value,
                    account.updated_at,
                    str(account.id),
                ),
            )
            if cur.rowcount == 0:
                raise AccountNotFoundError(account.id)

    def _row_to_account(self, row: Any) -> Account:
        return Account(
            user_id=UUID(row["user_id"]),
            name=row["name"],
            id=UUID(row["id"]),
            currency=row["currency"],
            status=AccountStatus(row["status"]),
            balance=Decimal(row["balance"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class PostgresLedgerRepository(LedgerRepository):
    """PostgreSQL implementation of LedgerRepository.

    ``apply_ledger_delta`` locks the account row with SELECT ... FOR UPDATE so
    writes to one account serialize while other accounts proceed.
    """

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def get(self, entry_id: UUID) -> LedgerEntry | None:
        with self._db.transaction() as cur:
            cur.execute("SELECT * FROM ledger_entries WHERE id = %s", (str(entry_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def list_by_account(
        self, account_id: UUID, include_voided: bool = True
    ) -> Iterable[LedgerEntry]:
        query = "SELECT * FROM ledger_entries WHERE account_id = %s"
        if not include_voided:
            query += " AND is_voided = FALSE"
        query += " ORDER BY date, created_at"
        with self._db.transaction() as cur:
            cur.execute(query, (str(account_id),))
            rows = cur.fetchall()
        return [self._row_to_entry(row) for row in rows]

    def find_by_occurrence(
        self, recurring_transaction_id: UUID, occurrence_due: datetime
    ) -> LedgerEntry | None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                SELECT * FROM ledger_entries
                WHERE recurring_transaction_id = %s AND occurrence_due = %s
                """,
                (str(recurring_transaction_id), occurrence_due),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def apply_ledger_delta(
        self, account_id: UUID, write: LedgerWrite, balance_delta: Decimal
    ) -> None:
        entry = write.entry
        with self._db.transaction() as cur:
            cur.execute(
                "SELECT balance FROM accounts WHERE id = %s FOR UPDATE",
                (str(account_id),),
            )
            if cur.fetchone() is None:
                raise AccountNotFoundError(account_id)

            if write.is_insert:
                self._insert_entry(cur, entry)
            else:
                cur.execute(
                    "SELECT version FROM ledger_entries WHERE id = %s FOR UPDATE",
                    (str(entry.id),),
                )
                version_row = cur.fetchone()
                if version_row is None:
                    raise LedgerEntryNotFoundError(entry.id)
                if version_row["version"] != write.expected_version:
                    raise ConcurrentModificationError(
                        entry.id, write.expected_version, version_row["version"]
                    )
                self._update_entry(cur, entry)

            cur.execute(
                "UPDATE accounts SET balance = balance + %s, updated_at = %s WHERE id = %s",
                (balance_delta, datetime.now(UTC), str(account_id)),
            )

    def _insert_entry(self, cur: Any, entry: LedgerEntry) -> None:
        cur.execute(
            """
            INSERT INTO ledger_entries (id, account_id, date, type, currency, amount, note,
                                        is_adjustment, adjusted_from, is_voided, voided_at,
                                        created_at, updated_at, version,
                                        recurring_transaction_id, occurrence_due)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                str(entry.id),
                str(entry.account_id),
                entry.date,
                entry.type.value,
                entry.currency,
                entry.amount,
                entry.note,
                entry.is_adjustment,
                str(entry.adjusted_from) if entry.adjusted_from else None,
                entry.is_voided,
                entry.voided_at,
                entry.created_at,
                entry.updated_at,
                entry.version,
                str(entry.recurring_transaction_id)
                if entry.recurring_transaction_id
                else None,
                entry.occurrence_due,
            ),
        )

    def _update_entry(self, cur: Any, entry: LedgerEntry) -> None:
        cur.execute(
            """
            UPDATE ledger_entries SET
                date = %s,
                type = %s,
                amount = %s,
                note = %s,
                is_voided = %s,
                voided_at = %s,
                updated_at = %s,
                version = %s
            WHERE id = %s
            """,
            (
                entry.date,
                entry.type.value,
                entry.amount,
                entry.note,
                entry.is_voided,
                entry.voided_at,
                entry.updated_at,
                entry.version,
                str(entry.id),
            ),
        )

    def _row_to_entry(self, row: Any) -> LedgerEntry:
        return LedgerEntry(
            account_id=UUID(row["account_id"]),
            date=row["date"],
            type=LedgerType(row["type"]),
            amount=Decimal(row["amount"]),
            id=UUID(row["id"]),
            currency=row["currency"],
            note=row["note"],
            is_adjustment=row["is_adjustment"],
            adjusted_from=UUID(row["adjusted_from"]) if row["adjusted_from"] else None,
            is_voided=row["is_voided"],
            voided_at=row["voided_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            version=row["version"],
            recurring_transaction_id=UUID(row["recurring_transaction_id"])
            if row["recurring_transaction_id"]
            else None,
            occurrence_due=row["occurrence_due"],
        )


class PostgresRecurringTransactionRepository(RecurringTransactionRepository):
    """PostgreSQL implementation of RecurringTransactionRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, recurring: RecurringTransaction) -> None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO recurring_transactions (
                    id, user_id, account_id, name, type, amount, note, start_date,
                    end_date, recur_type, frequency, day_of_week, day_of_month,
                    month_of_year, status, last_executed, next_due, created_at,
                    updated_at, deleted_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    str(recurring.id),
                    str(recurring.user_id),
                    str(recurring.account_id),
                    recurring.name,
                    recurring.type.value,
                    recurring.amount,
                    recurring.note,
                    recurring.start_date,
                    recurring.end_date,
                    recurrence_type_value(recurring.recur_type),
                    recurring.frequency,
                    recurring.day_of_week,
                    recurring.day_of_month,
                    recurring.month_of_year,
                    recurring.status.value,
                    recurring.last_executed,
                    recurring.next_due,
                    recurring.created_at,
                    recurring.updated_at,
                    recurring.deleted_at,
                ),
            )

    def get(self, recurring_id: UUID) -> RecurringTransaction | None:
        with self._db.transaction() as cur:
            cur.execute(
                "SELECT * FROM recurring_transactions WHERE id = %s",
                (str(recurring_id),),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_recurring(row)

    def list_by_user(self, user_id: UUID) -> Iterable[RecurringTransaction]:
        with self._db.transaction() as cur:
            cur.execute(
                """
                SELECT * FROM recurring_transactions
                WHERE user_id = %s AND deleted_at IS NULL
                ORDER BY next_due
                """,
                (str(user_id),),
            )
            rows = cur.fetchall()
        return [self._row_to_recurring(row) for row in rows]

    def list_active_due(self, before: datetime) -> Iterable[RecurringTransaction]:
        with self._db.transaction() as cur:
            cur.execute(
                """
                SELECT * FROM recurring_transactions
                WHERE status = %s AND deleted_at IS NULL AND next_due <= %s
                ORDER BY next_due
                """,
                (RecurrenceStatus.ACTIVE.value, before),
            )
            rows = cur.fetchall()
        return [self._row_to_recurring(row) for row in rows]

    def update(
        self, recurring: RecurringTransaction, expected_status: RecurrenceStatus
    ) -> None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                UPDATE recurring_transactions SET
                    name = %s,
                    type = %s,
                    amount = %s,
                    note = %s,
                    end_date = %s,
                    recur_type = %s,
                    frequency = %s,
                    day_of_week = %s,
                    day_of_month = %s,
                    month_of_year = %s,
                    status = %s,
                    updated_at = %s,
                    deleted_at = %s
                WHERE id = %s AND status = %s
                """,
                (
                    recurring.name,
                    recurring.type.value,
                    recurring.amount,
                    recurring.note,
                    recurring.end_date,
                    recurrence_type_value(recurring.recur_type),
                    recurring.frequency,
                    recurring.day_of_week,
                    recurring.day_of_month,
                    recurring.month_of_year,
                    recurring.status.value,
                    recurring.updated_at,
                    recurring.deleted_at,
                    str(recurring.id),
                    expected_status.value,
                ),
            )
            if cur.rowcount == 0:
                cur.execute(
                    "SELECT status FROM recurring_transactions WHERE id = %s",
                    (str(recurring.id),),
                )
                row = cur.fetchone()
                if row is None:
                    raise RecurringTransactionNotFoundError(recurring.id)
                raise RecurringTransactionConflictError(
                    recurring.id, expected_status.value, row["status"]
                )

    def complete(
        self, recurring_id: UUID, last_executed: datetime
    ) -> RecurringTransaction | None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                UPDATE recurring_transactions SET
                    status = %s,
                    last_executed = %s,
                    updated_at = %s
                WHERE id = %s AND status = %s
                RETURNING *
                """,
                (
                    RecurrenceStatus.COMPLETED.value,
                    last_executed,
                    datetime.now(UTC),
                    str(recurring_id),
                    RecurrenceStatus.ACTIVE.value,
                ),
            )
            row = cur.fetchone()
            if row is None:
                cur.execute(
                    "SELECT 1 FROM recurring_transactions WHERE id = %s",
                    (str(recurring_id),),
                )
                if cur.fetchone() is None:
                    raise RecurringTransactionNotFoundError(recurring_id)
                return None
        return self._row_to_recurring(row)

    def update_execution(
        self, recurring_id: UUID, last_executed: datetime, next_due: datetime
    ) -> RecurringTransaction:
        with self._db.transaction() as cur:
            cur.execute(
                """
                UPDATE recurring_transactions SET
                    last_executed = %s,
                    next_due = %s,
                    updated_at = %s
                WHERE id = %s
                RETURNING *
                """,
                (last_executed, next_due, datetime.now(UTC), str(recurring_id)),
            )
            row = cur.fetchone()
        if row is None:
            raise RecurringTransactionNotFoundError(recurring_id)
        return self._row_to_recurring(row)

    def delete(self, recurring_id: UUID, deleted_at: datetime) -> None:
        with self._db.transaction() as cur:
            cur.execute(
                """
                UPDATE recurring_transactions SET
                    status = %s,
                    deleted_at = %s,
                    updated_at = %s
                WHERE id = %s AND status IN (%s, %s)
                """,
                (
                    RecurrenceStatus.CANCELLED.value,
                    deleted_at,
                    deleted_at,
                    str(recurring_id),
                    RecurrenceStatus.ACTIVE.value,
                    RecurrenceStatus.PAUSED.value,
                ),
            )
            if cur.rowcount == 0:
                cur.execute(
                    "SELECT status FROM recurring_transactions WHERE id = %s",
                    (str(recurring_id),),
                )
                row = cur.fetchone()
                if row is None:
                    raise RecurringTransactionNotFoundError(recurring_id)
                if row["status"] == RecurrenceStatus.COMPLETED.value:
                    raise RecurringTransactionConflictError(
                        recurring_id, RecurrenceStatus.CANCELLED.value, row["status"]
                    )

    def _row_to_recurring(self, row: Any) -> RecurringTransaction:
        return RecurringTransaction(
            user_id=UUID(row["user_id"]),
            account_id=UUID(row["account_id"]),
            name=row["name"],
            type=LedgerType(row["type"]),
            amount=Decimal(row["amount"]),
            start_date=row["start_date"],
            recur_type=parse_recurrence_type(row["recur_type"]),
            next_due=row["next_due"],
            id=UUID(row["id"]),
            note=row["note"],
            end_date=row["end_date"],
            frequency=row["frequency"],
            day_of_week=row["day_of_week"],
            day_of_month=row["day_of_month"],
            month_of_year=row["month_of_year"],
            status=RecurrenceStatus(row["status"]),
            last_executed=row["last_executed"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )


class PostgresReminderRepository(ReminderRepository):
    """PostgreSQL implementation of ReminderRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def create(self, recurring_transaction_id: UUID, reminder_date: datetime) -> Reminder:
        reminder = Reminder(
            recurring_transaction_id=recurring_transaction_id,
            reminder_date=reminder_date,
        )
        with self._db.transaction() as cur:
            cur.execute(
                "SELECT 1 FROM recurring_transactions WHERE id = %s",
                (str(recurring_transaction_id),),
            )
            if cur.fetchone() is None:
                raise RecurringTransactionNotFoundError(recurring_transaction_id)
            cur.execute(
                """
                INSERT INTO reminders (id, recurring_transaction_id, reminder_date,
                                       is_read, read_at, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    str(reminder.id),
                    str(reminder.recurring_transaction_id),
                    reminder.reminder_date,
                    False,
                    None,
                    reminder.created_at,
                    reminder.updated_at,
                ),
            )
        return reminder

    def get(self, reminder_id: UUID) -> Reminder | None:
        with self._db.transaction() as cur:
            cur.execute("SELECT * FROM reminders WHERE id = %s", (str(reminder_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_reminder(row)

    def list_by_recurring_transaction(
        self, recurring_transaction_id: UUID
    ) -> Iterable[Reminder]:
        with self._db.transaction() as cur:
            cur.execute(
                """
                SELECT * FROM reminders
                WHERE recurring_transaction_id = %s
                ORDER BY reminder_date
                """,
                (str(recurring_transaction_id),),
            )
            rows = cur.fetchall()
        return [self._row_to_reminder(row) for row in rows]

    def list_active_for_user(self, user_id: UUID, before: datetime) -> Iterable[Reminder]:
        with self._db.transaction() as cur:
            cur.execute(
                """
                SELECT r.* FROM reminders r
                JOIN recurring_transactions rt ON rt.id = r.recurring_transaction_id
                WHERE rt.user_id = %s AND rt.deleted_at IS NULL
                  AND r.is_read = FALSE AND r.reminder_date <= %s
                ORDER BY r.reminder_date
                """,
                (str(user_id), before),
            )
            rows = cur.fetchall()
        return [self._row_to_reminder(row) for row in rows]

    def list_upcoming_for_user(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> Iterable[Reminder]:
        with self._db.transaction() as cur:
            cur.execute(
                """
                SELECT r.* FROM reminders r
                JOIN recurring_transactions rt ON rt.id = r.recurring_transaction_id
                WHERE rt.user_id = %s AND rt.deleted_at IS NULL
                  AND r.is_read = FALSE AND r.reminder_date BETWEEN %s AND %s
                ORDER BY r.reminder_date
                """,
                (str(user_id), start, end),
            )
            rows = cur.fetchall()
        return [self._row_to_reminder(row) for row in rows]

    def mark_read(self, reminder_id: UUID, read_at: datetime) -> Reminder:
        with self._db.transaction() as cur:
            cur.execute(
                "SELECT * FROM reminders WHERE id = %s FOR UPDATE", (str(reminder_id),)
            )
            row = cur.fetchone()
            if row is None:
                raise ReminderNotFoundError(reminder_id)
            reminder = self._row_to_reminder(row)
            if reminder.is_read:
                return reminder
            reminder.mark_read(read_at)
            cur.execute(
                "UPDATE reminders SET is_read = TRUE, read_at = %s, updated_at = %s WHERE id = %s",
                (reminder.read_at, reminder.updated_at, str(reminder_id)),
            )
        return reminder

    def _row_to_reminder(self, row: Any) -> Reminder:
        return Reminder(
            recurring_transaction_id=UUID(row["recurring_transaction_id"]),
            reminder_date=row["reminder_date"],
            id=UUID(row["id"]),
            is_read=row["is_read"],
            read_at=row["read_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
