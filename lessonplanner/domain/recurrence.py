"""
Recurring lesson date generation.

Pure functions that expand a recurrence rule over a date range into the
concrete calendar dates a lesson takes place on. Weekdays use the
1=Monday ... 7=Sunday convention of ``Weekday``.
"""

from typing import Iterable, List, Set

import pendulum
from pendulum import Date

from .models import Biweekly, DateRange, Monthly, RecurrenceRule, Weekday, Weekly, WeeklyMultiple


def generate_weekly(date_range: DateRange, weekday: int) -> List[Date]:
    """
    Every ``weekday`` in the range, 7 days apart.

    A weekday outside 1..7 raises ``ValueError`` instead of yielding no
    dates, as do the other generators for an unknown weekday or day.
    """
    return _step_from_first_match(date_range, Weekday(weekday), step_days=7)


def generate_weekly_multiple(date_range: DateRange, weekdays: Iterable[int]) -> List[Date]:
    """
    Every day in the range falling on one of ``weekdays``.

    The weekday set may be given in any order; the dates come out ascending.
    """
    targets = {Weekday(day) for day in weekdays}
    dates = [day for day in date_range.days() if Weekday.of(day) in targets]
    return sorted(dates)


def generate_biweekly(date_range: DateRange, weekday: int) -> List[Date]:
    """Every other ``weekday`` in the range, starting with the first match."""
    return _step_from_first_match(date_range, Weekday(weekday), step_days=14)


def generate_monthly(date_range: DateRange, day_of_month: int) -> List[Date]:
    """
    The ``day_of_month`` of every month in the range.

    The anchor is placed in the start month and moved one month on if it
    falls before the range start. A day the month does not have rolls over
    into the next month (31 April is 1 May), and later steps keep the rolled
    day number: starting on 31 January, 2024 yields 31 Jan, 2 Mar, 2 Apr.
    """
    if not 1 <= day_of_month <= 31:
        raise ValueError(f"Day of month must be between 1 and 31, got {day_of_month}")

    dates: List[Date] = []
    current = _with_day(date_range.start, day_of_month)
    if current < date_range.start:
        current = _add_month(current)

    while current <= date_range.end:
        dates.append(current)
        current = _add_month(current)

    return dates


def expand(date_range: DateRange, rule: RecurrenceRule) -> List[Date]:
    """Expand any recurrence rule over a date range."""
    if isinstance(rule, Weekly):
        return generate_weekly(date_range, rule.weekday)
    if isinstance(rule, WeeklyMultiple):
        return generate_weekly_multiple(date_range, rule.weekdays)
    if isinstance(rule, Biweekly):
        return generate_biweekly(date_range, rule.weekday)
    if isinstance(rule, Monthly):
        return generate_monthly(date_range, rule.day_of_month)
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")


def count_weekday_occurrences_in_month(year: int, month: int, weekday: int) -> int:
    """
    Count how often ``weekday`` occurs in a month.

    ``month`` is 0-based (0=January), matching the calendar views, so
    ``(2024, 1, MONDAY)`` counts the Mondays of February 2024.
    """
    if month not in range(12):
        raise ValueError(f"Month must be between 0 and 11, got {month}")

    target = Weekday(weekday)
    first = pendulum.date(year, month + 1, 1)
    return sum(
        1 for offset in range(first.days_in_month)
        if Weekday.of(first.add(days=offset)) == target
    )


def list_national_holidays(year: int) -> Set[Date]:
    """
    Fixed-date national holidays of a year.

    Ramadan and Sacrifice feasts follow the lunar calendar and are not
    included; add them per year through the schedule configuration.
    """
    return {
        pendulum.date(year, 1, 1),    # New Year's Day
        pendulum.date(year, 4, 23),   # National Sovereignty and Children's Day
        pendulum.date(year, 5, 1),    # Labour Day
        pendulum.date(year, 5, 19),   # Youth and Sports Day
        pendulum.date(year, 7, 15),   # Democracy and National Unity Day
        pendulum.date(year, 8, 30),   # Victory Day
        pendulum.date(year, 10, 29),  # Republic Day
    }


def _step_from_first_match(date_range: DateRange, weekday: Weekday, step_days: int) -> List[Date]:
    dates: List[Date] = []
    current = date_range.start

    while Weekday.of(current) != weekday and current <= date_range.end:
        current = current.add(days=1)

    while current <= date_range.end:
        dates.append(current)
        current = current.add(days=step_days)

    return dates


def _with_day(anchor: Date, day: int) -> Date:
    """Set the day of month, rolling overflowing days into the next month."""
    return pendulum.date(anchor.year, anchor.month, 1).add(days=day - 1)


def _add_month(current: Date) -> Date:
    """Same day number one month later, rolling over like ``_with_day``."""
    next_month = pendulum.date(current.year, current.month, 1).add(months=1)
    return _with_day(next_month, current.day)
