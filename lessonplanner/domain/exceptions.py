"""
Domain-specific exception hierarchy for the lesson planner application.
"""


class LessonPlannerError(Exception):
    """Base class for all application-level errors."""


class ScheduleValidationError(LessonPlannerError):
    """Raised when a schedule request is missing required information."""


class LessonAPIError(LessonPlannerError):
    """Raised when the institution API cannot store or return lesson data."""
