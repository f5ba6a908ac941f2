"""
Domain models for recurring lessons, schedule requests and money breakdowns.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Union

import pendulum
from pendulum import Date

from .exceptions import ScheduleValidationError


class Weekday(IntEnum):
    """
    Weekday index used throughout the institution's data: 1=Monday ... 7=Sunday.

    The REST API and most calendar widgets count from 0=Sunday instead,
    so conversions in both directions live here.
    """
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def of(cls, day: date) -> "Weekday":
        """Weekday of a calendar date."""
        return cls(day.isoweekday())

    @classmethod
    def from_sunday_based(cls, value: int) -> "Weekday":
        """Translate a 0=Sunday .. 6=Saturday index."""
        if value not in range(7):
            raise ValueError(f"Sunday-based weekday must be between 0 and 6, got {value}")
        return cls.SUNDAY if value == 0 else cls(value)

    def to_sunday_based(self) -> int:
        """Translate to a 0=Sunday .. 6=Saturday index."""
        return 0 if self is Weekday.SUNDAY else int(self)


DAY_NAMES_TR = {
    Weekday.MONDAY: "Pazartesi",
    Weekday.TUESDAY: "Salı",
    Weekday.WEDNESDAY: "Çarşamba",
    Weekday.THURSDAY: "Perşembe",
    Weekday.FRIDAY: "Cuma",
    Weekday.SATURDAY: "Cumartesi",
    Weekday.SUNDAY: "Pazar",
}

# Indexed by 0-based month, as the calendar views send it
MONTH_NAMES_TR = [
    "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
]


def day_name(weekday: int) -> str:
    """Turkish name of a weekday (1=Monday ... 7=Sunday)."""
    return DAY_NAMES_TR[Weekday(weekday)]


def month_name(month: int) -> str:
    """Turkish name of a 0-based month (0=January)."""
    if month not in range(12):
        raise ValueError(f"Month must be between 0 and 11, got {month}")
    return MONTH_NAMES_TR[month]


def as_date(value: date) -> Date:
    """
    Normalize a date or datetime to a pendulum calendar date.

    Datetimes keep the calendar day of their own timezone; the time of day
    is dropped.
    """
    return pendulum.date(value.year, value.month, value.day)


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of calendar dates.

    A range whose start lies after its end is valid and simply contains no days.
    """
    start: Date
    end: Date

    def __post_init__(self):
        object.__setattr__(self, "start", as_date(self.start))
        object.__setattr__(self, "end", as_date(self.end))

    def is_empty(self) -> bool:
        return self.start > self.end

    def days(self) -> Iterator[Date]:
        """Iterate every day from start to end, both included."""
        current = self.start
        while current <= self.end:
            yield current
            current = current.add(days=1)

    def __contains__(self, day: date) -> bool:
        return self.start <= as_date(day) <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY')} - {self.end.format('DD.MM.YYYY')}"


@dataclass(frozen=True)
class Weekly:
    """Every week on one weekday."""
    weekday: Weekday

    def __post_init__(self):
        object.__setattr__(self, "weekday", Weekday(self.weekday))


@dataclass(frozen=True)
class WeeklyMultiple:
    """Every week on each of several weekdays."""
    weekdays: FrozenSet[Weekday]

    def __post_init__(self):
        weekdays = frozenset(Weekday(day) for day in self.weekdays)
        if not weekdays:
            raise ValueError("At least one weekday is required")
        object.__setattr__(self, "weekdays", weekdays)


@dataclass(frozen=True)
class Biweekly:
    """Every other week on one weekday."""
    weekday: Weekday

    def __post_init__(self):
        object.__setattr__(self, "weekday", Weekday(self.weekday))


@dataclass(frozen=True)
class Monthly:
    """Once a month on a fixed day of the month."""
    day_of_month: int

    def __post_init__(self):
        if not 1 <= self.day_of_month <= 31:
            raise ValueError(f"Day of month must be between 1 and 31, got {self.day_of_month}")


RecurrenceRule = Union[Weekly, WeeklyMultiple, Biweekly, Monthly]


class Frequency(str, Enum):
    """How often a generated course schedule repeats its weekdays."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:mm`` string to minutes since midnight."""
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Time must be in HH:mm format, got '{value}'")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time out of range: '{value}'")
    return hours * 60 + minutes


@dataclass(frozen=True)
class LessonTime:
    """
    Start and end of a lesson within a day, as ``HH:mm`` strings.

    Invariant: start must be before end.
    """
    start_time: str
    end_time: str

    def __post_init__(self):
        if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
            raise ValueError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )

    def duration_minutes(self) -> int:
        return time_to_minutes(self.end_time) - time_to_minutes(self.start_time)

    def overlaps(self, other: "LessonTime") -> bool:
        """Check if this lesson time overlaps with another one on the same day."""
        return (
            time_to_minutes(self.start_time) < time_to_minutes(other.end_time)
            and time_to_minutes(self.end_time) > time_to_minutes(other.start_time)
        )

    def __str__(self) -> str:
        return f"{self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class VatBreakdown:
    amount: Decimal
    vat: Decimal
    total: Decimal


@dataclass(frozen=True)
class CommissionBreakdown:
    amount: Decimal
    commission: Decimal
    total: Decimal


@dataclass(frozen=True)
class NetAmountBreakdown:
    """Settlement of a payment after card commission and (if invoiced) VAT."""
    gross_amount: Decimal
    commission: Decimal
    vat: Decimal
    net_amount: Decimal

    def to_payload(self) -> Dict[str, float]:
        """Monetary fields as stored on a payment record."""
        return {
            "grossAmount": float(self.gross_amount),
            "commission": float(self.commission),
            "vat": float(self.vat),
            "netAmount": float(self.net_amount),
        }


@dataclass
class ScheduleRequest:
    """
    Parameters for generating a course timetable.

    Fields may be missing here; the scheduler service decides whether the
    request is complete.
    """
    course_id: Optional[str]
    date_range: DateRange
    days_of_week: List[Weekday]
    lesson_time: Optional[LessonTime]
    season_id: Optional[str]
    institution_id: Optional[str]
    instructor_id: Optional[str] = None
    student_id: Optional[str] = None  # Set for one-on-one lessons only
    frequency: Frequency = Frequency.WEEKLY
    skip_holidays: bool = True
    notes: str = ""
    created_by: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], timezone: str = "Europe/Istanbul") -> "ScheduleRequest":
        """
        Build a request from a generate-schedule API payload.

        The payload uses camelCase keys and 0=Sunday weekday numbers. Date
        strings are read in ``timezone`` so a midnight picked in the browser
        stays on the same calendar day.
        """
        start_date = payload.get("startDate")
        end_date = payload.get("endDate")
        if not start_date or not end_date:
            raise ScheduleValidationError("Missing required parameters")

        start_time = payload.get("startTime")
        end_time = payload.get("endTime")
        lesson_time = LessonTime(start_time, end_time) if start_time and end_time else None

        return cls(
            course_id=payload.get("courseId"),
            date_range=DateRange(
                start=_parse_local_date(start_date, timezone),
                end=_parse_local_date(end_date, timezone),
            ),
            days_of_week=[Weekday.from_sunday_based(int(day)) for day in payload.get("daysOfWeek") or []],
            lesson_time=lesson_time,
            season_id=payload.get("seasonId"),
            institution_id=payload.get("institutionId"),
            instructor_id=payload.get("instructorId"),
            student_id=payload.get("studentId"),
            frequency=Frequency(payload.get("frequency") or Frequency.WEEKLY.value),
            skip_holidays=bool(payload.get("skipHolidays", True)),
            notes=payload.get("notes") or "",
            created_by=payload.get("createdBy"),
        )


def _parse_local_date(value: Union[str, date], timezone: str) -> Date:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return as_date(pendulum.instance(value).in_timezone(timezone))
    if isinstance(value, date):
        return as_date(value)
    parsed = pendulum.parse(value, tz=timezone)
    if isinstance(parsed, pendulum.DateTime):
        return as_date(parsed.in_timezone(timezone))
    if isinstance(parsed, Date):
        return as_date(parsed)
    raise ValueError(f"Could not parse date: {value}")


@dataclass
class ScheduleResult:
    """Outcome of a generated timetable."""
    count: int
    lessons: List[Dict[str, Any]] = field(default_factory=list)
    enrollment_created: bool = False
    skipped_days: bool = False

    @property
    def lesson_dates(self) -> List[str]:
        return [lesson.get("date", "") for lesson in self.lessons]
