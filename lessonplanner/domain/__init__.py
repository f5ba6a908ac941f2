"""
Domain layer - Pure business logic without external dependencies.
"""

from .finance import calculate_commission, calculate_net_amount, calculate_vat, per_lesson_fee
from .models import (
    Biweekly,
    DateRange,
    Frequency,
    LessonTime,
    Monthly,
    ScheduleRequest,
    ScheduleResult,
    Weekday,
    Weekly,
    WeeklyMultiple,
)
from .recurrence import (
    count_weekday_occurrences_in_month,
    expand,
    generate_biweekly,
    generate_monthly,
    generate_weekly,
    generate_weekly_multiple,
    list_national_holidays,
)
from .schedule_builder import ScheduleBuilder

__all__ = [
    "Biweekly",
    "DateRange",
    "Frequency",
    "LessonTime",
    "Monthly",
    "ScheduleBuilder",
    "ScheduleRequest",
    "ScheduleResult",
    "Weekday",
    "Weekly",
    "WeeklyMultiple",
    "calculate_commission",
    "calculate_net_amount",
    "calculate_vat",
    "count_weekday_occurrences_in_month",
    "expand",
    "generate_biweekly",
    "generate_monthly",
    "generate_weekly",
    "generate_weekly_multiple",
    "list_national_holidays",
    "per_lesson_fee",
]
