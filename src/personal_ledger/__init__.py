from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import LedgerEntry, UpdateLedgerEntryRequest
from personal_ledger.domain.recurring import (
    CreateRecurringTransactionRequest,
    RecurringTransaction,
    Reminder,
    UpdateRecurringTransactionRequest,
)
from personal_ledger.domain.value_objects import (
    AccountStatus,
    LedgerType,
    RecurrenceStatus,
    RecurrenceType,
)

__all__ = [
    "Account",
    "AccountStatus",
    "CreateRecurringTransactionRequest",
    "LedgerEntry",
    "LedgerType",
    "RecurrenceStatus",
    "RecurrenceType",
    "RecurringTransaction",
    "Reminder",
    "UpdateLedgerEntryRequest",
    "UpdateRecurringTransactionRequest",
]

__version__ = "0.1.0"
