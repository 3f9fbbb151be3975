"""Tests for LedgerService implementation."""

import threading
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from structlog.testing import capture_logs

from personal_ledger.domain.accounts import Account
from personal_ledger.domain.ledger import UpdateLedgerEntryRequest
from personal_ledger.domain.value_objects import LedgerType
from personal_ledger.exceptions import (
    AccountNotFoundError,
    ConcurrentModificationError,
    LedgerEntryAlreadyVoidedError,
    LedgerEntryNotEditableError,
    LedgerEntryNotFoundError,
    PersistenceError,
)
from personal_ledger.services.ledger import LedgerServiceImpl


def assert_balance_invariant(ledger_service, store, account_id):
    cached = ledger_service.get_account_balance(account_id)
    assert cached == ledger_service.recompute_account_balance(account_id)
    assert cached == store.live_sum(account_id)


# ===== create_entry Tests =====


class TestCreateEntry:
    def test_scenario_create_create_void(self, ledger_service, account, clock):
        """Balance 0 -> +100 income -> -30 expense -> void the income."""
        assert ledger_service.get_account_balance(account.id) == Decimal("0")

        first = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("100"), "Salary"
        )
        assert ledger_service.get_account_balance(account.id) == Decimal("100")

        ledger_service.create_entry(
            account.id, clock(), LedgerType.EXPENSE, Decimal("-30"), "Dinner"
        )
        assert ledger_service.get_account_balance(account.id) == Decimal("70")

        ledger_service.void_entry(first)
        assert ledger_service.get_account_balance(account.id) == Decimal("-30")

    def test_entry_is_persisted_with_account_currency(self, store, user_id, clock):
        eur = Account(user_id=user_id, name="Euro", currency="EUR")
        store.accounts.add(eur)
        service = LedgerServiceImpl(store.ledger, store.accounts, clock=clock)

        entry_id = service.create_entry(
            eur.id, clock(), LedgerType.INCOME, Decimal("12.34"), "Refund"
        )

        entry = service.get_entry(entry_id)
        assert entry.currency == "EUR"
        assert entry.amount == Decimal("12.34")
        assert entry.note == "Refund"
        assert entry.created_at == clock()
        assert not entry.is_voided
        assert not entry.is_adjustment
        assert entry.adjusted_from is None

    def test_zero_amount_is_accepted(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.BALANCE, Decimal("0")
        )

        assert ledger_service.get_entry(entry_id).amount == Decimal("0")
        assert ledger_service.get_account_balance(account.id) == Decimal("0")

    def test_missing_account_raises_not_found(self, ledger_service, store, clock):
        missing = uuid4()

        with pytest.raises(AccountNotFoundError):
            ledger_service.create_entry(
                missing, clock(), LedgerType.INCOME, Decimal("5")
            )

        assert list(store.ledger.list_by_account(missing)) == []

    def test_logs_creation(self, ledger_service, account, clock):
        with capture_logs() as logs:
            ledger_service.create_entry(
                account.id, clock(), LedgerType.INCOME, Decimal("1")
            )

        assert any(log["event"] == "ledger_entry_created" for log in logs)


# ===== update_entry Tests =====


class TestUpdateEntry:
    def test_amount_change_applies_difference(self, ledger_service, store, account, clock):
        ledger_service.create_entry(account.id, clock(), LedgerType.INCOME, Decimal("40"))
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.EXPENSE, Decimal("-10")
        )

        ledger_service.update_entry(
            entry_id, UpdateLedgerEntryRequest(amount=Decimal("-25"))
        )

        assert ledger_service.get_entry(entry_id).amount == Decimal("-25")
        assert ledger_service.get_account_balance(account.id) == Decimal("15")
        assert_balance_invariant(ledger_service, store, account.id)

    def test_non_amount_fields_leave_balance_alone(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.EXPENSE, Decimal("-10"), "old"
        )
        new_date = clock() - timedelta(days=2)

        ledger_service.update_entry(
            entry_id,
            UpdateLedgerEntryRequest(date=new_date, type=LedgerType.TRANSFER, note="new"),
        )

        entry = ledger_service.get_entry(entry_id)
        assert entry.date == new_date
        assert entry.type == LedgerType.TRANSFER
        assert entry.note == "new"
        assert entry.amount == Decimal("-10")
        assert ledger_service.get_account_balance(account.id) == Decimal("-10")

    def test_update_bumps_version(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("1")
        )

        ledger_service.update_entry(entry_id, UpdateLedgerEntryRequest(note="x"))

        assert ledger_service.get_entry(entry_id).version == 2

    def test_empty_update_writes_nothing(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("1")
        )

        ledger_service.update_entry(entry_id, UpdateLedgerEntryRequest())

        assert ledger_service.get_entry(entry_id).version == 1

    def test_succeeds_one_second_before_window_closes(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("10")
        )
        clock.advance(minutes=15, seconds=-1)

        ledger_service.update_entry(entry_id, UpdateLedgerEntryRequest(amount=Decimal("11")))

        assert ledger_service.get_account_balance(account.id) == Decimal("11")

    def test_fails_one_second_after_window_closes(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("10")
        )
        clock.advance(minutes=15, seconds=1)

        with pytest.raises(LedgerEntryNotEditableError) as exc_info:
            ledger_service.update_entry(
                entry_id, UpdateLedgerEntryRequest(amount=Decimal("11"))
            )

        assert exc_info.value.context["age_seconds"] == 901.0
        assert ledger_service.get_entry(entry_id).amount == Decimal("10")
        assert ledger_service.get_account_balance(account.id) == Decimal("10")

    def test_configurable_window(self, store, account, clock):
        service = LedgerServiceImpl(
            store.ledger, store.accounts, editable_window=timedelta(hours=1), clock=clock
        )
        entry_id = service.create_entry(account.id, clock(), LedgerType.INCOME, Decimal("1"))
        clock.advance(minutes=45)

        service.update_entry(entry_id, UpdateLedgerEntryRequest(note="late edit"))

        assert service.get_entry(entry_id).note == "late edit"

    def test_voided_entry_cannot_be_updated(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("10")
        )
        ledger_service.void_entry(entry_id)

        with pytest.raises(LedgerEntryAlreadyVoidedError):
            ledger_service.update_entry(
                entry_id, UpdateLedgerEntryRequest(amount=Decimal("99"))
            )

        assert ledger_service.get_account_balance(account.id) == Decimal("0")

    def test_missing_entry_raises_not_found(self, ledger_service):
        with pytest.raises(LedgerEntryNotFoundError):
            ledger_service.update_entry(uuid4(), UpdateLedgerEntryRequest(note="x"))


# ===== void_entry Tests =====


class TestVoidEntry:
    def test_void_subtracts_amount(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.EXPENSE, Decimal("-20")
        )
        clock.advance(hours=2)

        ledger_service.void_entry(entry_id)

        entry = ledger_service.get_entry(entry_id)
        assert entry.is_voided
        assert entry.voided_at == clock()
        assert ledger_service.get_account_balance(account.id) == Decimal("0")

    def test_void_twice_fails_without_double_subtract(
        self, ledger_service, store, account, clock
    ):
        ledger_service.create_entry(account.id, clock(), LedgerType.INCOME, Decimal("50"))
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("30")
        )
        ledger_service.void_entry(entry_id)
        first_voided_at = ledger_service.get_entry(entry_id).voided_at
        clock.advance(minutes=1)

        with pytest.raises(LedgerEntryAlreadyVoidedError):
            ledger_service.void_entry(entry_id)

        assert ledger_service.get_account_balance(account.id) == Decimal("50")
        assert ledger_service.get_entry(entry_id).voided_at == first_voided_at
        assert_balance_invariant(ledger_service, store, account.id)

    def test_void_is_not_limited_by_editable_window(self, ledger_service, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("5")
        )
        clock.advance(days=30)

        ledger_service.void_entry(entry_id)

        assert ledger_service.get_account_balance(account.id) == Decimal("0")

    def test_missing_entry_raises_not_found(self, ledger_service):
        with pytest.raises(LedgerEntryNotFoundError):
            ledger_service.void_entry(uuid4())


# ===== adjust_entry Tests =====


class TestAdjustEntry:
    def test_original_is_untouched(self, ledger_service, account, clock):
        original_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.EXPENSE, Decimal("-100"), "Phone bill"
        )
        before = ledger_service.get_entry(original_id)
        clock.advance(days=3)

        adjustment_id = ledger_service.adjust_entry(
            original_id, account.id, clock(), LedgerType.EXPENSE, Decimal("-5"), "Late fee"
        )

        after = ledger_service.get_entry(original_id)
        assert after == before
        adjustment = ledger_service.get_entry(adjustment_id)
        assert adjustment.is_adjustment
        assert adjustment.adjusted_from == original_id
        assert adjustment.note == "Late fee"
        assert ledger_service.get_account_balance(account.id) == Decimal("-105")

    def test_adjustment_can_target_another_account(
        self, ledger_service, account, savings_account, clock
    ):
        original_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.TRANSFER, Decimal("-200")
        )

        ledger_service.adjust_entry(
            original_id, savings_account.id, clock(), LedgerType.TRANSFER, Decimal("200")
        )

        assert ledger_service.get_account_balance(account.id) == Decimal("-200")
        assert ledger_service.get_account_balance(savings_account.id) == Decimal("200")

    def test_adjusting_a_voided_original_is_allowed(self, ledger_service, account, clock):
        original_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("10")
        )
        ledger_service.void_entry(original_id)

        ledger_service.adjust_entry(
            original_id, account.id, clock(), LedgerType.INCOME, Decimal("12")
        )

        assert ledger_service.get_entry(original_id).is_voided
        assert ledger_service.get_account_balance(account.id) == Decimal("12")

    def test_missing_original_raises_not_found(self, ledger_service, account, clock):
        with pytest.raises(LedgerEntryNotFoundError):
            ledger_service.adjust_entry(
                uuid4(), account.id, clock(), LedgerType.INCOME, Decimal("1")
            )

    def test_missing_target_account_raises_not_found(self, ledger_service, account, clock):
        original_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("1")
        )

        with pytest.raises(AccountNotFoundError):
            ledger_service.adjust_entry(
                original_id, uuid4(), clock(), LedgerType.INCOME, Decimal("1")
            )


# ===== Reads and invariant =====


class TestBalanceInvariant:
    def test_holds_after_every_operation(self, ledger_service, store, account, clock):
        ids = []
        for amount in ("100", "-30", "12.75", "-0.01", "0"):
            ids.append(
                ledger_service.create_entry(
                    account.id, clock(), LedgerType.BALANCE, Decimal(amount)
                )
            )
            assert_balance_invariant(ledger_service, store, account.id)

        ledger_service.update_entry(ids[1], UpdateLedgerEntryRequest(amount=Decimal("-45")))
        assert_balance_invariant(ledger_service, store, account.id)

        ledger_service.void_entry(ids[2])
        assert_balance_invariant(ledger_service, store, account.id)

        ledger_service.adjust_entry(
            ids[0], account.id, clock(), LedgerType.INCOME, Decimal("7.25")
        )
        assert_balance_invariant(ledger_service, store, account.id)

        ledger_service.void_entry(ids[0])
        assert_balance_invariant(ledger_service, store, account.id)

        assert ledger_service.get_account_balance(account.id) == Decimal("-37.76")

    def test_list_entries_filters_voided(self, ledger_service, account, clock):
        kept = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("1")
        )
        voided = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("2")
        )
        ledger_service.void_entry(voided)

        all_ids = {e.id for e in ledger_service.list_entries(account.id)}
        live_ids = {e.id for e in ledger_service.list_entries(account.id, include_voided=False)}

        assert all_ids == {kept, voided}
        assert live_ids == {kept}

    def test_balance_of_missing_account_raises(self, ledger_service):
        with pytest.raises(AccountNotFoundError):
            ledger_service.get_account_balance(uuid4())


class TestPersistenceFailures:
    def test_store_failure_is_surfaced_without_retry(self, store, account, clock):
        ledger_repo = MagicMock()
        ledger_repo.apply_ledger_delta.side_effect = PersistenceError("disk full")
        service = LedgerServiceImpl(ledger_repo, store.accounts, clock=clock)

        with pytest.raises(PersistenceError):
            service.create_entry(account.id, clock(), LedgerType.INCOME, Decimal("1"))

        assert ledger_repo.apply_ledger_delta.call_count == 1

    def test_stale_write_is_rejected(self, ledger_service, store, account, clock):
        entry_id = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("10")
        )
        stale = store.ledger.get(entry_id)
        ledger_service.update_entry(entry_id, UpdateLedgerEntryRequest(amount=Decimal("20")))

        with patch.object(ledger_service, "get_entry", return_value=stale):
            with pytest.raises(ConcurrentModificationError):
                ledger_service.void_entry(entry_id)

        assert ledger_service.get_account_balance(account.id) == Decimal("20")
        assert not ledger_service.get_entry(entry_id).is_voided


# ===== Concurrency =====


class TestConcurrency:
    def test_parallel_creates_on_one_account_never_lose_a_delta(
        self, ledger_service, store, account, clock
    ):
        threads_count, per_thread = 8, 25
        errors: list[Exception] = []

        def worker() -> None:
            try:
                for _ in range(per_thread):
                    ledger_service.create_entry(
                        account.id, clock(), LedgerType.INCOME, Decimal("1.01")
                    )
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        expected = Decimal("1.01") * threads_count * per_thread
        assert ledger_service.get_account_balance(account.id) == expected
        assert_balance_invariant(ledger_service, store, account.id)

    def test_parallel_voids_of_one_entry_apply_once(
        self, ledger_service, store, account, clock
    ):
        ledger_service.create_entry(account.id, clock(), LedgerType.INCOME, Decimal("100"))
        target = ledger_service.create_entry(
            account.id, clock(), LedgerType.INCOME, Decimal("40")
        )
        barrier = threading.Barrier(6)
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            try:
                ledger_service.void_entry(target)
                result = "ok"
            except (LedgerEntryAlreadyVoidedError, ConcurrentModificationError):
                result = "rejected"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("rejected") == 5
        assert ledger_service.get_account_balance(account.id) == Decimal("100")
        assert_balance_invariant(ledger_service, store, account.id)
