"""Tests for next-due-date calculation."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from personal_ledger.domain.value_objects import RecurrenceType
from personal_ledger.exceptions import InvalidRecurrenceError
from personal_ledger.services.recurrence import (
    calculate_next_due,
    calculate_reminder_date,
    validate_recurrence,
)

EPOCH = datetime(2020, 1, 1, tzinfo=UTC)


def at(year: int, month: int, day: int, hour: int = 9) -> datetime:
    return datetime(year, month, day, hour, 0, tzinfo=UTC)


class TestStartDate:
    def test_future_start_date_is_returned_as_is(self):
        reference = at(2024, 1, 15)
        start = at(2024, 3, 1)

        for recur_type in RecurrenceType:
            assert calculate_next_due(reference, start, recur_type) == start

    def test_start_date_equal_to_reference_advances(self):
        reference = at(2024, 1, 15)

        result = calculate_next_due(reference, reference, RecurrenceType.DAILY)

        assert result == at(2024, 1, 16)

    def test_same_inputs_give_same_result(self):
        args = (at(2024, 1, 17), EPOCH, RecurrenceType.WEEKLY, 1, 3, None, None)

        assert calculate_next_due(*args) == calculate_next_due(*args)


class TestDaily:
    def test_adds_frequency_days(self):
        result = calculate_next_due(at(2024, 1, 15), EPOCH, RecurrenceType.DAILY, 3)

        assert result == at(2024, 1, 18)

    def test_crosses_month_and_leap_day(self):
        result = calculate_next_due(at(2024, 2, 28), EPOCH, RecurrenceType.DAILY, 2)

        assert result == at(2024, 3, 1)

    def test_custom_behaves_like_daily(self):
        reference = at(2024, 1, 15)

        custom = calculate_next_due(reference, EPOCH, RecurrenceType.CUSTOM, 5)
        daily = calculate_next_due(reference, EPOCH, RecurrenceType.DAILY, 5)

        assert custom == daily == at(2024, 1, 20)


class TestWeekly:
    def test_same_weekday_advances_a_full_week(self):
        # 2024-01-17 is a Wednesday; day_of_week 3 is Wednesday
        wednesday = at(2024, 1, 17)

        result = calculate_next_due(wednesday, EPOCH, RecurrenceType.WEEKLY, 1, day_of_week=3)

        assert result == wednesday + timedelta(days=7)
        assert result.weekday() == 2

    def test_advances_to_later_weekday_in_same_week(self):
        result = calculate_next_due(
            at(2024, 1, 17), EPOCH, RecurrenceType.WEEKLY, 1, day_of_week=5
        )

        assert result == at(2024, 1, 19)

    def test_wraps_to_next_week_for_earlier_weekday(self):
        result = calculate_next_due(
            at(2024, 1, 17), EPOCH, RecurrenceType.WEEKLY, 1, day_of_week=1
        )

        assert result == at(2024, 1, 22)

    def test_sunday_is_zero(self):
        # 2024-01-20 is a Saturday
        result = calculate_next_due(
            at(2024, 1, 20), EPOCH, RecurrenceType.WEEKLY, 1, day_of_week=0
        )

        assert result == at(2024, 1, 21)
        assert result.weekday() == 6

    def test_without_day_of_week_adds_frequency_weeks(self):
        result = calculate_next_due(at(2024, 1, 17), EPOCH, RecurrenceType.WEEKLY, 2)

        assert result == at(2024, 1, 31)

    def test_same_weekday_with_frequency_jumps_whole_interval(self):
        result = calculate_next_due(
            at(2024, 1, 17), EPOCH, RecurrenceType.WEEKLY, 3, day_of_week=3
        )

        assert result == at(2024, 2, 7)


class TestBiweekly:
    def test_without_day_of_week_adds_two_weeks(self):
        result = calculate_next_due(at(2024, 1, 17), EPOCH, RecurrenceType.BIWEEKLY)

        assert result == at(2024, 1, 31)

    def test_frequency_multiplies_the_fortnight(self):
        result = calculate_next_due(at(2024, 1, 17), EPOCH, RecurrenceType.BIWEEKLY, 2)

        assert result == at(2024, 2, 14)

    def test_same_weekday_advances_two_weeks(self):
        result = calculate_next_due(
            at(2024, 1, 17), EPOCH, RecurrenceType.BIWEEKLY, 1, day_of_week=3
        )

        assert result == at(2024, 1, 31)


class TestMonthly:
    def test_adds_months(self):
        result = calculate_next_due(at(2024, 1, 15), EPOCH, RecurrenceType.MONTHLY, 2)

        assert result == at(2024, 3, 15)

    def test_end_of_month_clamps_instead_of_overflowing(self):
        result = calculate_next_due(at(2024, 1, 31), EPOCH, RecurrenceType.MONTHLY)

        assert result == at(2024, 2, 29)

    @pytest.mark.parametrize(
        ("year", "expected_day"),
        [(2023, 28), (2024, 29), (2100, 28), (2000, 29)],
    )
    def test_day_of_month_31_clamps_to_end_of_february(self, year, expected_day):
        result = calculate_next_due(
            at(year, 1, 15), EPOCH, RecurrenceType.MONTHLY, 1, day_of_month=31
        )

        assert (result.year, result.month, result.day) == (year, 2, expected_day)

    def test_day_of_month_is_pinned(self):
        result = calculate_next_due(
            at(2024, 1, 31), EPOCH, RecurrenceType.MONTHLY, 1, day_of_month=15
        )

        assert result == at(2024, 2, 15)

    def test_day_of_month_30_in_april(self):
        result = calculate_next_due(
            at(2024, 3, 31), EPOCH, RecurrenceType.MONTHLY, 1, day_of_month=31
        )

        assert result == at(2024, 4, 30)


class TestQuarterly:
    def test_adds_three_months(self):
        result = calculate_next_due(at(2024, 1, 15), EPOCH, RecurrenceType.QUARTERLY)

        assert result == at(2024, 4, 15)

    def test_frequency_counts_quarters(self):
        result = calculate_next_due(at(2024, 1, 15), EPOCH, RecurrenceType.QUARTERLY, 2)

        assert result == at(2024, 7, 15)

    def test_clamps_into_february(self):
        result = calculate_next_due(at(2023, 11, 30), EPOCH, RecurrenceType.QUARTERLY)

        assert result == at(2024, 2, 29)


class TestYearly:
    def test_adds_years(self):
        result = calculate_next_due(at(2024, 6, 1), EPOCH, RecurrenceType.YEARLY, 2)

        assert result == at(2026, 6, 1)

    def test_leap_day_clamps_in_common_year(self):
        result = calculate_next_due(at(2024, 2, 29), EPOCH, RecurrenceType.YEARLY)

        assert result == at(2025, 2, 28)

    def test_anchor_feb_29_clamps_in_non_leap_target_year(self):
        result = calculate_next_due(
            at(2024, 3, 1),
            EPOCH,
            RecurrenceType.YEARLY,
            1,
            day_of_month=29,
            month_of_year=2,
        )

        assert result == at(2025, 2, 28)

    def test_anchor_feb_29_kept_in_leap_target_year(self):
        result = calculate_next_due(
            at(2023, 3, 1),
            EPOCH,
            RecurrenceType.YEARLY,
            1,
            day_of_month=29,
            month_of_year=2,
        )

        assert result == at(2024, 2, 29)

    def test_month_and_day_anchor(self):
        result = calculate_next_due(
            at(2024, 1, 15),
            EPOCH,
            RecurrenceType.YEARLY,
            1,
            day_of_month=25,
            month_of_year=12,
        )

        assert result == at(2025, 12, 25)

    def test_month_anchor_alone_is_ignored(self):
        result = calculate_next_due(
            at(2024, 1, 15), EPOCH, RecurrenceType.YEARLY, 1, month_of_year=12
        )

        assert result == at(2025, 1, 15)


class TestEdgeCases:
    def test_unknown_tag_advances_one_month(self):
        result = calculate_next_due(at(2024, 1, 31), EPOCH, "semimonthly")

        assert result == at(2024, 2, 29)

    def test_accepts_plain_string_tags(self):
        result = calculate_next_due(at(2024, 1, 15), EPOCH, "weekly")

        assert result == at(2024, 1, 22)

    def test_preserves_time_of_day_and_tzinfo(self):
        eastern = timezone(timedelta(hours=-5))
        reference = datetime(2024, 1, 31, 17, 45, 30, tzinfo=eastern)

        result = calculate_next_due(reference, EPOCH, RecurrenceType.MONTHLY)

        assert result == datetime(2024, 2, 29, 17, 45, 30, tzinfo=eastern)
        assert result.tzinfo is eastern

    @pytest.mark.parametrize("frequency", [0, -1])
    def test_frequency_below_one_is_rejected(self, frequency):
        with pytest.raises(InvalidRecurrenceError):
            calculate_next_due(at(2024, 1, 15), EPOCH, RecurrenceType.DAILY, frequency)

    def test_does_not_mutate_inputs(self):
        reference = at(2024, 1, 15)
        start = at(2023, 1, 1)

        calculate_next_due(reference, start, RecurrenceType.MONTHLY, 1, day_of_month=31)

        assert reference == at(2024, 1, 15)
        assert start == at(2023, 1, 1)


class TestValidateRecurrence:
    def test_accepts_valid_anchors(self):
        validate_recurrence(1, day_of_week=0, day_of_month=31, month_of_year=12)

    @pytest.mark.parametrize(
        ("kwargs", "field"),
        [
            ({"frequency": 0}, "frequency"),
            ({"frequency": 1, "day_of_week": 7}, "day_of_week"),
            ({"frequency": 1, "day_of_month": 0}, "day_of_month"),
            ({"frequency": 1, "day_of_month": 32}, "day_of_month"),
            ({"frequency": 1, "month_of_year": 13}, "month_of_year"),
        ],
    )
    def test_rejects_out_of_range_fields(self, kwargs, field):
        with pytest.raises(InvalidRecurrenceError) as exc_info:
            validate_recurrence(**kwargs)

        assert exc_info.value.context["field"] == field


class TestReminderDate:
    def test_defaults_to_three_days_before(self):
        assert calculate_reminder_date(at(2024, 3, 1)) == at(2024, 2, 27)

    def test_custom_lead_time(self):
        result = calculate_reminder_date(at(2024, 3, 1), timedelta(days=1))

        assert result == at(2024, 2, 29)
