"""Domain exception hierarchy for Personal Ledger.

All domain-specific exceptions inherit from PersonalLedgerError.
This allows catching all application errors with a single base class
while preserving specificity for individual error types.
"""

from typing import Any
from uuid import UUID


class PersonalLedgerError(Exception):
    """Base exception for all Personal Ledger errors.

    Includes optional error_code for API responses and extra context.
    """

    error_code: str = "PL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(PersonalLedgerError):
    """Base exception for references to records that do not exist."""

    error_code = "NOT_FOUND"
    status_code = 404


class AccountNotFoundError(NotFoundError):
    """Raised when an account cannot be found."""

    error_code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: UUID | str) -> None:
        super().__init__(
            f"Account not found: {account_id}",
            context={"account_id": str(account_id)},
        )


class LedgerEntryNotFoundError(NotFoundError):
    """Raised when a ledger entry cannot be found."""

    error_code = "LEDGER_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: UUID | str) -> None:
        super().__init__(
            f"Ledger entry not found: {entry_id}",
            context={"entry_id": str(entry_id)},
        )


class RecurringTransactionNotFoundError(NotFoundError):
    """Raised when a recurring transaction cannot be found."""

    error_code = "RECURRING_TRANSACTION_NOT_FOUND"

    def __init__(self, recurring_id: UUID | str) -> None:
        super().__init__(
            f"Recurring transaction not found: {recurring_id}",
            context={"recurring_transaction_id": str(recurring_id)},
        )


class ReminderNotFoundError(NotFoundError):
    """Raised when a reminder cannot be found."""

    error_code = "REMINDER_NOT_FOUND"

    def __init__(self, reminder_id: UUID | str) -> None:
        super().__init__(
            f"Reminder not found: {reminder_id}",
            context={"reminder_id": str(reminder_id)},
        )


# =============================================================================
# Ledger Entry Errors
# =============================================================================


class LedgerEntryError(PersonalLedgerError):
    """Base exception for rejected ledger entry mutations."""

    error_code = "LEDGER_ENTRY_ERROR"
    status_code = 409


class LedgerEntryNotEditableError(LedgerEntryError):
    """Raised when an entry is updated after its editable window closed."""

    error_code = "LEDGER_ENTRY_NOT_EDITABLE"

    def __init__(self, entry_id: UUID | str, age_seconds: float) -> None:
        super().__init__(
            f"Ledger entry is no longer editable: {entry_id}",
            context={"entry_id": str(entry_id), "age_seconds": age_seconds},
        )


class LedgerEntryAlreadyVoidedError(LedgerEntryError):
    """Raised when voiding or editing an entry that is already voided."""

    error_code = "LEDGER_ENTRY_ALREADY_VOIDED"

    def __init__(self, entry_id: UUID | str) -> None:
        super().__init__(
            f"Ledger entry is already voided: {entry_id}",
            context={"entry_id": str(entry_id)},
        )


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceError(PersonalLedgerError):
    """Raised when an atomic entry and balance write could not commit.

    Nothing from the failed write is visible after this is raised.
    """

    error_code = "PERSISTENCE_ERROR"
    status_code = 500


class ConcurrentModificationError(PersistenceError):
    """Raised when a write was based on a stale read of a ledger entry."""

    error_code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(
        self, entry_id: UUID | str, expected_version: int, actual_version: int
    ) -> None:
        super().__init__(
            f"Ledger entry {entry_id} was modified concurrently",
            context={
                "entry_id": str(entry_id),
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class RecurringTransactionConflictError(ConcurrentModificationError):
    """Raised when a schedule's status changed between its read and its write."""

    def __init__(
        self, recurring_id: UUID | str, expected_status: str, actual_status: str
    ) -> None:
        PersistenceError.__init__(
            self,
            f"Recurring transaction {recurring_id} was modified concurrently",
            context={
                "recurring_transaction_id": str(recurring_id),
                "expected_status": expected_status,
                "actual_status": actual_status,
            },
        )


# =============================================================================
# Scheduling Errors
# =============================================================================


class SchedulingError(PersonalLedgerError):
    """Raised inside the processor when one due transaction cannot be handled.

    Never escapes a tick; it exists so the failure is logged with its context.
    """

    error_code = "SCHEDULING_ERROR"
    status_code = 500

    def __init__(self, recurring_id: UUID | str, step: str, reason: str) -> None:
        super().__init__(
            f"Recurring transaction {recurring_id} failed at {step}: {reason}",
            context={
                "recurring_transaction_id": str(recurring_id),
                "step": step,
                "reason": reason,
            },
        )


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(PersonalLedgerError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidRecurrenceError(ValidationError):
    """Raised when a recurrence schedule is malformed."""

    error_code = "INVALID_RECURRENCE"

    def __init__(self, field_name: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid recurrence {field_name}={value!r}: {reason}",
            context={"field": field_name, "value": str(value), "reason": reason},
        )


class InvalidStatusTransitionError(ValidationError):
    """Raised when a recurring transaction status change is not allowed."""

    error_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, recurring_id: UUID | str, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move recurring transaction {recurring_id} "
            f"from {current} to {requested}",
            context={
                "recurring_transaction_id": str(recurring_id),
                "current": current,
                "requested": requested,
            },
        )
