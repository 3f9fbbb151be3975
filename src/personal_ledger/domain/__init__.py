from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import (
    DEFAULT_EDITABLE_WINDOW,
    LedgerEntry,
    LedgerWrite,
    UpdateLedgerEntryRequest,
)
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
    "DEFAULT_EDITABLE_WINDOW",
    "Account",
    "AccountStatus",
    "CreateRecurringTransactionRequest",
    "LedgerEntry",
    "LedgerType",
    "LedgerWrite",
    "RecurrenceStatus",
    "RecurrenceType",
    "RecurringTransaction",
    "Reminder",
    "UpdateLedgerEntryRequest",
    "UpdateRecurringTransactionRequest",
]
