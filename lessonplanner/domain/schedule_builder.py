"""
Core logic for laying out a course timetable over a season.

Pure domain logic: no API calls, no persistence. The scheduler service
turns the dates produced here into stored lessons.
"""

from datetime import date
from typing import Iterable, List, Sequence

import pendulum
from pendulum import Date

from .models import DateRange, Frequency, Weekday, as_date, time_to_minutes

# Turkish public holidays for 2024-2025, lunar feasts included
DEFAULT_PUBLIC_HOLIDAYS = tuple(
    pendulum.parse(day).date()
    for day in (
        "2024-01-01",  # New Year
        "2024-04-23",  # National Sovereignty Day
        "2024-05-01",  # Labour Day
        "2024-05-19",  # Youth and Sports Day
        "2024-06-15", "2024-06-16", "2024-06-17", "2024-06-18",  # Ramadan Feast
        "2024-08-22", "2024-08-23", "2024-08-24", "2024-08-25", "2024-08-26",  # Sacrifice Feast
        "2024-08-30",  # Victory Day
        "2024-10-29",  # Republic Day
        "2025-01-01",  # New Year
        "2025-03-31", "2025-04-01", "2025-04-02", "2025-04-03",  # Ramadan Feast
        "2025-04-23",  # National Sovereignty Day
        "2025-05-01",  # Labour Day
        "2025-05-19",  # Youth and Sports Day
        "2025-06-06", "2025-06-07", "2025-06-08", "2025-06-09", "2025-06-10",  # Sacrifice Feast
        "2025-08-30",  # Victory Day
        "2025-10-29",  # Republic Day
    )
)


def has_time_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Check if two ``HH:mm`` intervals overlap. Touching intervals do not."""
    return (
        time_to_minutes(start1) < time_to_minutes(end2)
        and time_to_minutes(end1) > time_to_minutes(start2)
    )


def count_possible_days(date_range: DateRange, weekdays: Iterable[int]) -> int:
    """Days in the range on the selected weekdays, ignoring frequency and holidays."""
    selected = {Weekday(day) for day in weekdays}
    return sum(1 for day in date_range.days() if Weekday.of(day) in selected)


class ScheduleBuilder:
    """
    Lays out lesson dates for a course from weekdays and a frequency.

    Algorithm:
    1. Walk every day of the range, start and end included
    2. Keep days on a selected weekday
    3. Apply the frequency filter:
       - weekly: every match
       - biweekly: matches in even weeks; the week counter starts at 0
         and moves on each time the walk reaches a Sunday
       - monthly: only the first kept match of each weekday per month
    4. Optionally drop public holidays
    """

    def __init__(self, holidays: Iterable[date] = DEFAULT_PUBLIC_HOLIDAYS):
        self.holidays = frozenset(as_date(day) for day in holidays)

    def is_holiday(self, day: date) -> bool:
        return as_date(day) in self.holidays

    def build_dates(
        self,
        date_range: DateRange,
        weekdays: Sequence[int],
        frequency: Frequency = Frequency.WEEKLY,
        skip_holidays: bool = True,
    ) -> List[Date]:
        """
        Generate the lesson dates for a timetable.

        Args:
            date_range: Season window to fill
            weekdays: Weekdays the course meets on (1=Monday ... 7=Sunday)
            frequency: Weekly, biweekly or monthly repetition
            skip_holidays: Leave out days listed as public holidays

        Returns:
            Ascending list of lesson dates
        """
        selected = {Weekday(day) for day in weekdays}
        frequency = Frequency(frequency)

        dates: List[Date] = []
        week_counter = 0
        current = date_range.start

        while current <= date_range.end:
            weekday = Weekday.of(current)

            if weekday in selected and self._matches_frequency(
                current, weekday, frequency, week_counter, dates
            ):
                if not (skip_holidays and self.is_holiday(current)):
                    dates.append(current)

            current = current.add(days=1)

            if Weekday.of(current) == Weekday.SUNDAY:
                week_counter += 1

        return dates

    @staticmethod
    def _matches_frequency(
        day: Date,
        weekday: Weekday,
        frequency: Frequency,
        week_counter: int,
        kept: List[Date],
    ) -> bool:
        if frequency is Frequency.BIWEEKLY:
            return week_counter % 2 == 0

        if frequency is Frequency.MONTHLY:
            return not any(
                other.year == day.year
                and other.month == day.month
                and Weekday.of(other) == weekday
                for other in kept
            )

        return True
