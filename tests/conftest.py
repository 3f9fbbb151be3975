from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest

from personal_ledger.domain.accounts import Account
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
from personal_ledger.services.ledger import LedgerServiceImpl
from personal_ledger.services.processor import RecurrenceProcessor
from personal_ledger.services.recurring import RecurringTransactionServiceImpl


class FakeClock:
    """Settable clock injected into services for time-dependent rules."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@dataclass
class Store:
    database: Any
    accounts: AccountRepository
    ledger: LedgerRepository
    recurring: RecurringTransactionRepository
    reminders: ReminderRepository

    def live_sum(self, account_id: UUID) -> Decimal:
        """Sum of non-voided entry amounts, straight from the repository."""
        return sum(
            (e.amount for e in self.ledger.list_by_account(account_id) if not e.is_voided),
            Decimal("0"),
        )


def make_memory_store() -> Store:
    database = InMemoryDatabase()
    database.initialize()
    return Store(
        database=database,
        accounts=InMemoryAccountRepository(database),
        ledger=InMemoryLedgerRepository(database),
        recurring=InMemoryRecurringTransactionRepository(database),
        reminders=InMemoryReminderRepository(database),
    )


def make_sqlite_store() -> Store:
    database = SQLiteDatabase(":memory:")
    database.initialize()
    return Store(
        database=database,
        accounts=SQLiteAccountRepository(database),
        ledger=SQLiteLedgerRepository(database),
        recurring=SQLiteRecurringTransactionRepository(database),
        reminders=SQLiteReminderRepository(database),
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest) -> Iterator[Store]:
    """Every repository, backed by each engine in turn."""
    if request.param == "memory":
        result = make_memory_store()
    else:
        result = make_sqlite_store()
    yield result
    result.database.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def account(store: Store, user_id: UUID) -> Account:
    """Create and persist an empty checking account."""
    acct = Account(user_id=user_id, name="Checking", currency="USD")
    store.accounts.add(acct)
    return acct


@pytest.fixture
def savings_account(store: Store, user_id: UUID) -> Account:
    acct = Account(user_id=user_id, name="Savings", currency="USD")
    store.accounts.add(acct)
    return acct


@pytest.fixture
def ledger_service(store: Store, clock: FakeClock) -> LedgerServiceImpl:
    return LedgerServiceImpl(store.ledger, store.accounts, clock=clock)


@pytest.fixture
def recurring_service(store: Store, clock: FakeClock) -> RecurringTransactionServiceImpl:
    return RecurringTransactionServiceImpl(
        store.recurring, store.reminders, store.accounts, clock=clock
    )


@pytest.fixture
def processor(
    store: Store, ledger_service: LedgerServiceImpl, clock: FakeClock
) -> RecurrenceProcessor:
    return RecurrenceProcessor(
        store.recurring, store.reminders, store.ledger, ledger_service, clock=clock
    )
