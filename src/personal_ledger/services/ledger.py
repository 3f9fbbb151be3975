"""LedgerService implementation for single-account ledger mutations."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import (
    DEFAULT_EDITABLE_WINDOW,
    LedgerEntry,
    LedgerWrite,
    UpdateLedgerEntryRequest,
)
from personal_ledger.domain.value_objects import LedgerType
from personal_ledger.exceptions import (
    AccountNotFoundError,
    LedgerEntryAlreadyVoidedError,
    LedgerEntryNotEditableError,
    LedgerEntryNotFoundError,
)
from personal_ledger.logging_config import get_logger
from personal_ledger.repositories.interfaces import AccountRepository, LedgerRepository
from personal_ledger.services.interfaces import LedgerService

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class LedgerServiceImpl(LedgerService):
    """Keeps each account's cached balance equal to the sum of its live entries.

    Every mutation is reduced to a single ``apply_ledger_delta`` call, so the
    entry write and the balance change commit or fail together.
    """

    def __init__(
        self,
        ledger_repo: LedgerRepository,
        account_repo: AccountRepository,
        editable_window: timedelta = DEFAULT_EDITABLE_WINDOW,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._ledger_repo = ledger_repo
        self._account_repo = account_repo
        self._editable_window = editable_window
        self._clock = clock

    def create_entry(
        self,
        account_id: UUID,
        date: datetime,
        type: LedgerType,
        amount: Decimal,
        note: str = "",
        *,
        recurring_transaction_id: UUID | None = None,
        occurrence_due: datetime | None = None,
    ) -> UUID:
        """Post a new entry and add its amount to the account balance.

        Args:
            account_id: Account the entry belongs to
            date: Business date of the entry
            type: Ledger type tag
            amount: Signed delta applied to the balance
            note: Free-form note
            recurring_transaction_id: Schedule that produced the entry, if any
            occurrence_due: The schedule's due instant this entry materializes

        Returns:
            The new entry's id

        Raises:
            AccountNotFoundError: If the account doesn't exist
            PersistenceError: If the atomic write could not commit
        """
        account = self._require_account(account_id)
        now = self._clock()
        entry = LedgerEntry(
            account_id=account_id,
            date=date,
            type=type,
            amount=amount,
            currency=account.currency,
            note=note,
            created_at=now,
            updated_at=now,
            recurring_transaction_id=recurring_transaction_id,
            occurrence_due=occurrence_due,
        )
        self._ledger_repo.apply_ledger_delta(
            account_id, LedgerWrite(entry), entry.amount
        )
        logger.info(
            "ledger_entry_created",
            entry_id=str(entry.id),
            account_id=str(account_id),
            type=type.value,
            amount=str(entry.amount),
        )
        return entry.id

    def update_entry(self, entry_id: UUID, request: UpdateLedgerEntryRequest) -> None:
        """Change the provided fields of an entry that is still editable.

        An amount change moves the balance by ``new - old`` in the same write.

        Raises:
            LedgerEntryNotFoundError: If the entry doesn't exist
            LedgerEntryAlreadyVoidedError: If the entry was voided
            LedgerEntryNotEditableError: If the editable window has passed
            ConcurrentModificationError: If the entry changed since it was read
        """
        entry = self.get_entry(entry_id)
        if entry.is_voided:
            raise LedgerEntryAlreadyVoidedError(entry_id)

        now = self._clock()
        if not entry.is_editable(now, self._editable_window):
            logger.warning(
                "ledger_entry_update_rejected",
                entry_id=str(entry_id),
                age_seconds=entry.age(now).total_seconds(),
            )
            raise LedgerEntryNotEditableError(entry_id, entry.age(now).total_seconds())

        if not request.has_changes:
            return

        expected_version = entry.version
        delta = entry.apply_update(request, now)
        entry.version += 1
        self._ledger_repo.apply_ledger_delta(
            entry.account_id, LedgerWrite(entry, expected_version), delta
        )
        logger.info(
            "ledger_entry_updated",
            entry_id=str(entry_id),
            account_id=str(entry.account_id),
            balance_delta=str(delta),
        )

    def void_entry(self, entry_id: UUID) -> None:
        """Void an entry and reverse its effect on the balance.

        Raises:
            LedgerEntryNotFoundError: If the entry doesn't exist
            LedgerEntryAlreadyVoidedError: If the entry was already voided
            ConcurrentModificationError: If the entry changed since it was read
        """
        entry = self.get_entry(entry_id)
        expected_version = entry.version
        delta = entry.void(self._clock())
        entry.version += 1
        self._ledger_repo.apply_ledger_delta(
            entry.account_id, LedgerWrite(entry, expected_version), delta
        )
        logger.info(
            "ledger_entry_voided",
            entry_id=str(entry_id),
            account_id=str(entry.account_id),
            balance_delta=str(delta),
        )

    def adjust_entry(
        self,
        original_id: UUID,
        account_id: UUID,
        date: datetime,
        type: LedgerType,
        amount: Decimal,
        note: str = "",
    ) -> UUID:
        """Layer a correcting entry on top of ``original_id`` without touching it.

        Raises:
            LedgerEntryNotFoundError: If the original entry doesn't exist
            AccountNotFoundError: If the target account doesn't exist
        """
        original = self.get_entry(original_id)
        account = self._require_account(account_id)
        now = self._clock()
        adjustment = LedgerEntry(
            account_id=account_id,
            date=date,
            type=type,
            amount=amount,
            currency=account.currency,
            note=note,
            is_adjustment=True,
            adjusted_from=original.id,
            created_at=now,
            updated_at=now,
        )
        self._ledger_repo.apply_ledger_delta(
            account_id, LedgerWrite(adjustment), adjustment.amount
        )
        logger.info(
            "ledger_entry_adjusted",
            entry_id=str(adjustment.id),
            adjusted_from=str(original.id),
            account_id=str(account_id),
            amount=str(adjustment.amount),
        )
        return adjustment.id

    def get_entry(self, entry_id: UUID) -> LedgerEntry:
        entry = self._ledger_repo.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(entry_id)
        return entry

    def list_entries(
        self, account_id: UUID, include_voided: bool = True
    ) -> list[LedgerEntry]:
        self._require_account(account_id)
        return list(self._ledger_repo.list_by_account(account_id, include_voided))

    def get_account_balance(self, account_id: UUID) -> Decimal:
        return self._require_account(account_id).balance

    def recompute_account_balance(self, account_id: UUID) -> Decimal:
        """Sum the live entries of an account, ignoring the cached balance."""
        entries = self.list_entries(account_id, include_voided=False)
        return sum((entry.amount for entry in entries), Decimal("0"))

    def _require_account(self, account_id: UUID) -> Account:
        account = self._account_repo.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account
