"""
Tests for recurring lesson date generation.
"""

import pendulum
import pytest

from lessonplanner.domain.models import Biweekly, DateRange, Monthly, Weekday, Weekly, WeeklyMultiple
from lessonplanner.domain.recurrence import (
    count_weekday_occurrences_in_month,
    expand,
    generate_biweekly,
    generate_monthly,
    generate_weekly,
    generate_weekly_multiple,
    list_national_holidays,
)


def _range(start: str, end: str) -> DateRange:
    return DateRange(start=pendulum.parse(start).date(), end=pendulum.parse(end).date())


def _assert_steps(dates, days):
    for previous, current in zip(dates, dates[1:]):
        assert previous.add(days=days) == current


class TestGenerateWeekly:
    """Tests for weekly recurrence."""

    def test_every_wednesday_of_january(self):
        """End date is included when it falls on the weekday."""
        date_range = _range("2024-01-01", "2024-01-31")

        dates = generate_weekly(date_range, Weekday.WEDNESDAY)

        assert [d.day for d in dates] == [3, 10, 17, 24, 31]
        assert all(Weekday.of(d) == Weekday.WEDNESDAY for d in dates)
        assert all(d in date_range for d in dates)
        _assert_steps(dates, 7)

    def test_sunday_is_seven(self):
        dates = generate_weekly(_range("2024-01-01", "2024-01-31"), 7)

        assert dates[0] == pendulum.date(2024, 1, 7)

    def test_single_day_range(self):
        """A one-day range yields that day only if it matches."""
        date_range = _range("2024-01-03", "2024-01-03")

        assert generate_weekly(date_range, Weekday.WEDNESDAY) == [pendulum.date(2024, 1, 3)]
        assert generate_weekly(date_range, Weekday.THURSDAY) == []

    def test_start_after_end_yields_nothing(self):
        assert generate_weekly(_range("2024-02-01", "2024-01-01"), Weekday.MONDAY) == []

    def test_unknown_weekday(self):
        with pytest.raises(ValueError):
            generate_weekly(_range("2024-01-01", "2024-01-31"), 0)

    def test_same_input_same_output(self):
        date_range = _range("2024-09-02", "2024-12-27")

        assert generate_weekly(date_range, 2) == generate_weekly(date_range, 2)


class TestGenerateWeeklyMultiple:
    """Tests for recurrence on several weekdays."""

    def test_two_weeks_of_monday_wednesday_friday(self):
        dates = generate_weekly_multiple(_range("2024-01-01", "2024-01-14"), {1, 3, 5})

        assert len(dates) == 6
        assert [d.day for d in dates] == [1, 3, 5, 8, 10, 12]
        assert all(earlier < later for earlier, later in zip(dates, dates[1:]))

    def test_input_order_does_not_matter(self):
        date_range = _range("2024-01-01", "2024-01-31")

        assert generate_weekly_multiple(date_range, [5, 1]) == generate_weekly_multiple(date_range, [1, 5])

    def test_all_weekdays(self):
        dates = generate_weekly_multiple(_range("2024-01-01", "2024-01-14"), range(1, 8))

        assert len(dates) == 14

    def test_start_after_end_yields_nothing(self):
        assert generate_weekly_multiple(_range("2024-01-14", "2024-01-01"), [1, 3]) == []

    def test_same_input_same_output(self):
        date_range = _range("2024-09-02", "2024-12-27")

        assert generate_weekly_multiple(date_range, {1, 4}) == generate_weekly_multiple(date_range, {1, 4})


class TestGenerateBiweekly:
    """Tests for every-other-week recurrence."""

    def test_every_other_tuesday(self):
        dates = generate_biweekly(_range("2024-01-01", "2024-02-29"), Weekday.TUESDAY)

        assert dates == [
            pendulum.date(2024, 1, 2),
            pendulum.date(2024, 1, 16),
            pendulum.date(2024, 1, 30),
            pendulum.date(2024, 2, 13),
            pendulum.date(2024, 2, 27),
        ]
        assert all(Weekday.of(d) == Weekday.TUESDAY for d in dates)
        _assert_steps(dates, 14)

    def test_no_match_in_range(self):
        assert generate_biweekly(_range("2024-01-01", "2024-01-05"), Weekday.SATURDAY) == []

    def test_same_input_same_output(self):
        date_range = _range("2024-09-02", "2024-12-27")

        assert generate_biweekly(date_range, 4) == generate_biweekly(date_range, 4)


class TestGenerateMonthly:
    """Tests for monthly recurrence."""

    def test_fifteenth_over_three_months(self):
        dates = generate_monthly(_range("2024-01-01", "2024-03-31"), 15)

        assert dates == [
            pendulum.date(2024, 1, 15),
            pendulum.date(2024, 2, 15),
            pendulum.date(2024, 3, 15),
        ]

    def test_anchor_before_start_moves_to_next_month(self):
        dates = generate_monthly(_range("2024-01-20", "2024-04-30"), 15)

        assert dates[0] == pendulum.date(2024, 2, 15)
        assert len(dates) == 3

    def test_missing_day_rolls_over_and_drifts(self):
        """
        Day 31 in February rolls into March, and later months keep the
        rolled day number instead of going back to the 31st.
        """
        dates = generate_monthly(_range("2024-01-31", "2024-05-31"), 31)

        assert dates == [
            pendulum.date(2024, 1, 31),
            pendulum.date(2024, 3, 2),
            pendulum.date(2024, 4, 2),
            pendulum.date(2024, 5, 2),
        ]

    def test_missing_day_in_start_month(self):
        """31 April becomes 1 May."""
        dates = generate_monthly(_range("2024-04-10", "2024-06-30"), 31)

        assert dates == [pendulum.date(2024, 5, 1), pendulum.date(2024, 6, 1)]

    def test_invalid_day(self):
        with pytest.raises(ValueError):
            generate_monthly(_range("2024-01-01", "2024-03-31"), 0)

    def test_start_after_end_yields_nothing(self):
        assert generate_monthly(_range("2024-03-10", "2024-03-05"), 1) == []

    def test_same_input_same_output(self):
        date_range = _range("2024-01-31", "2024-12-31")

        assert generate_monthly(date_range, 31) == generate_monthly(date_range, 31)


class TestExpand:
    """Tests for rule dispatch."""

    def test_dispatches_each_rule(self):
        date_range = _range("2024-01-01", "2024-03-31")

        assert expand(date_range, Weekly(3)) == generate_weekly(date_range, 3)
        assert expand(date_range, WeeklyMultiple({1, 5})) == generate_weekly_multiple(date_range, {1, 5})
        assert expand(date_range, Biweekly(2)) == generate_biweekly(date_range, 2)
        assert expand(date_range, Monthly(15)) == generate_monthly(date_range, 15)

    def test_unknown_rule(self):
        with pytest.raises(TypeError):
            expand(_range("2024-01-01", "2024-03-31"), "weekly")


class TestCountWeekdayOccurrences:
    """Tests for counting weekdays in a month (month is 0-based)."""

    def test_mondays_in_february_2024(self):
        assert count_weekday_occurrences_in_month(2024, 1, 1) == 4

    def test_thursdays_in_leap_february(self):
        """1 and 29 February 2024 are both Thursdays."""
        assert count_weekday_occurrences_in_month(2024, 1, Weekday.THURSDAY) == 5

    def test_sundays_in_january(self):
        assert count_weekday_occurrences_in_month(2024, 0, 7) == 4

    def test_invalid_month(self):
        with pytest.raises(ValueError):
            count_weekday_occurrences_in_month(2024, 12, 1)


class TestNationalHolidays:
    """Tests for the fixed-date holiday list."""

    def test_fixed_dates(self):
        holidays = list_national_holidays(2025)

        assert len(holidays) == 7
        assert pendulum.date(2025, 1, 1) in holidays
        assert pendulum.date(2025, 10, 29) in holidays

    def test_lunar_feasts_are_not_included(self):
        """Ramadan Feast 2025 moves with the lunar calendar."""
        assert pendulum.date(2025, 3, 31) not in list_national_holidays(2025)
