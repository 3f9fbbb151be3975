from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


class LedgerType(str, Enum):
    BALANCE = "balance"
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class RecurrenceStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RecurrenceStatus.COMPLETED, RecurrenceStatus.CANCELLED)


def parse_recurrence_type(value: str) -> RecurrenceType | str:
    """Map a stored tag onto RecurrenceType, keeping unknown tags as plain strings."""
    try:
        return RecurrenceType(value)
    except ValueError:
        return value


def recurrence_type_value(value: RecurrenceType | str) -> str:
    return value.value if isinstance(value, RecurrenceType) else str(value)


__all__ = [
    "AccountStatus",
    "LedgerType",
    "RecurrenceType",
    "RecurrenceStatus",
    "parse_recurrence_type",
    "recurrence_type_value",
]
