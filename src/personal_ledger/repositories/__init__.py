from personal_ledger.repositories.interfaces import (
    AccountRepository,
    LedgerRepository,
    RecurringTransactionRepository,
    ReminderRepository,
)
from personal_ledger.repositories.memory import (
    InMemoryAccountRepository,
    InMemoryDatabase,
    InMemoryLedgerRepository,
    InMemoryRecurringTransactionRepository,
    InMemoryReminderRepository,
)
from personal_ledger.repositories.sqlite import (
    SQLiteAccountRepository,
    SQLiteDatabase,
    SQLiteLedgerRepository,
    SQLiteRecurringTransactionRepository,
    SQLiteReminderRepository,
)

__all__ = [
    "AccountRepository",
    "LedgerRepository",
    "RecurringTransactionRepository",
    "ReminderRepository",
    "InMemoryAccountRepository",
    "InMemoryDatabase",
    "InMemoryLedgerRepository",
    "InMemoryRecurringTransactionRepository",
    "InMemoryReminderRepository",
    "SQLiteAccountRepository",
    "SQLiteDatabase",
    "SQLiteLedgerRepository",
    "SQLiteRecurringTransactionRepository",
    "SQLiteReminderRepository",
]

# PostgreSQL support is optional - only available if psycopg2 is installed
try:
    from personal_ledger.repositories.postgres import (
        PostgresAccountRepository,
        PostgresDatabase,
        PostgresLedgerRepository,
        PostgresRecurringTransactionRepository,
        PostgresReminderRepository,
    )

    __all__ += [
        "PostgresAccountRepository",
        "PostgresDatabase",
        "PostgresLedgerRepository",
        "PostgresRecurringTransactionRepository",
        "PostgresReminderRepository",
    ]
except ImportError:
    # psycopg2 not installed, PostgreSQL repositories not available
    pass
