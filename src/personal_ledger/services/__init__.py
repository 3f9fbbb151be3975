from personal_ledger.services.interfaces import (
    LedgerService,
    ProcessingReport,
    RecurringTransactionService,
)
from personal_ledger.services.ledger import LedgerServiceImpl
from personal_ledger.services.processor import RecurrenceProcessor
from personal_ledger.services.recurrence import (
    calculate_next_due,
    calculate_reminder_date,
    validate_recurrence,
)
from personal_ledger.services.recurring import RecurringTransactionServiceImpl
from personal_ledger.services.scheduler import RecurrenceScheduler

__all__ = [
    "LedgerService",
    "LedgerServiceImpl",
    "ProcessingReport",
    "RecurrenceProcessor",
    "RecurrenceScheduler",
    "RecurringTransactionService",
    "RecurringTransactionServiceImpl",
    "calculate_next_due",
    "calculate_reminder_date",
    "validate_recurrence",
]
