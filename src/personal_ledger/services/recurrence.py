"""Next-due-date arithmetic for recurring transactions.

Pure functions: no clock, no I/O. The same function is used when a schedule is
created and when the processor advances it, so the two can never disagree.
"""

import calendar
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from personal_ledger.domain.value_objects import RecurrenceType
from personal_ledger.exceptions import InvalidRecurrenceError

DEFAULT_REMINDER_LEAD_TIME = timedelta(days=3)

_WEEK_UNITS = {
    RecurrenceType.WEEKLY: 7,
    RecurrenceType.BIWEEKLY: 14,
}


def _sunday_based_weekday(value: datetime) -> int:
    """Weekday with Sunday as 0, matching ``day_of_week`` on schedules."""
    return (value.weekday() + 1) % 7


def _with_clamped_day(value: datetime, day: int) -> datetime:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=min(day, last_day))


def validate_recurrence(
    frequency: int,
    day_of_week: int | None = None,
    day_of_month: int | None = None,
    month_of_year: int | None = None,
) -> None:
    """Raise InvalidRecurrenceError for out-of-range schedule fields."""
    if frequency < 1:
        raise InvalidRecurrenceError("frequency", frequency, "must be at least 1")
    if day_of_week is not None and not 0 <= day_of_week <= 6:
        raise InvalidRecurrenceError("day_of_week", day_of_week, "must be 0-6")
    if day_of_month is not None and not 1 <= day_of_month <= 31:
        raise InvalidRecurrenceError("day_of_month", day_of_month, "must be 1-31")
    if month_of_year is not None and not 1 <= month_of_year <= 12:
        raise InvalidRecurrenceError("month_of_year", month_of_year, "must be 1-12")


def calculate_next_due(
    reference: datetime,
    start_date: datetime,
    recur_type: RecurrenceType | str,
    frequency: int = 1,
    day_of_week: int | None = None,
    day_of_month: int | None = None,
    month_of_year: int | None = None,
) -> datetime:
    """Return the next occurrence after ``reference``.

    A schedule whose ``start_date`` is still in the future first fires on
    ``start_date``. Otherwise the interval is added to ``reference``:

    * daily and custom: ``frequency`` days
    * weekly and biweekly: the next matching ``day_of_week`` if one is set,
      a whole interval when ``reference`` already falls on it, otherwise
      ``frequency`` weeks (or fortnights)
    * monthly and quarterly: ``frequency`` months (or quarters), pinned to
      ``day_of_month`` when set; days past the month end clamp to its last day
    * yearly: ``frequency`` years, pinned to ``month_of_year``/``day_of_month``
      when both are set, with the same clamping

    Unknown recurrence tags advance one month. Time of day and tzinfo of
    ``reference`` are preserved.

    Raises:
        InvalidRecurrenceError: If ``frequency`` is below 1.
    """
    if frequency < 1:
        raise InvalidRecurrenceError("frequency", frequency, "must be at least 1")

    if start_date > reference:
        return start_date

    try:
        kind = RecurrenceType(recur_type)
    except ValueError:
        return reference + relativedelta(months=1)

    if kind in (RecurrenceType.DAILY, RecurrenceType.CUSTOM):
        return reference + timedelta(days=frequency)

    if kind in _WEEK_UNITS:
        interval = _WEEK_UNITS[kind] * frequency
        if day_of_week is None:
            return reference + timedelta(days=interval)
        offset = (day_of_week - _sunday_based_weekday(reference) + 7) % 7
        if offset == 0:
            offset = interval
        return reference + timedelta(days=offset)

    if kind in (RecurrenceType.MONTHLY, RecurrenceType.QUARTERLY):
        months = frequency * (3 if kind == RecurrenceType.QUARTERLY else 1)
        next_due = reference + relativedelta(months=months)
        if day_of_month is not None:
            next_due = _with_clamped_day(next_due, day_of_month)
        return next_due

    next_due = reference + relativedelta(years=frequency)
    if month_of_year is not None and day_of_month is not None:
        next_due = _with_clamped_day(next_due.replace(day=1, month=month_of_year), day_of_month)
    return next_due


def calculate_reminder_date(
    next_due: datetime, lead_time: timedelta = DEFAULT_REMINDER_LEAD_TIME
) -> datetime:
    return next_due - lead_time
