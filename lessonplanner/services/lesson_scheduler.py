"""
Application services for turning timetables into stored lessons.

The service validates schedule requests, asks the domain-level
``ScheduleBuilder`` or the recurrence generator for lesson dates and writes
one lesson per date through a lesson store adapter. The store is a simple
protocol so the REST client and the in-memory store are interchangeable.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..domain.exceptions import ScheduleValidationError
from ..domain.models import DateRange, LessonTime, RecurrenceRule, ScheduleRequest, ScheduleResult, as_date
from ..domain.recurrence import expand
from ..domain.schedule_builder import ScheduleBuilder, count_possible_days, has_time_overlap

logger = logging.getLogger(__name__)

AUTO_ENROLLMENT_NOTE = "Birebir ders programı ile otomatik oluşturuldu"


class LessonStoreProtocol(Protocol):
    """Protocol describing the persistence operations the scheduler needs."""

    def create_lesson(self, lesson: Mapping[str, Any]) -> Dict[str, Any]:
        """Store one lesson and return the stored record."""

    def find_enrollment(
        self,
        *,
        student_id: str,
        course_id: str,
        season_id: str,
    ) -> Optional[Dict[str, Any]]:
        """Return the student's enrollment in a course and season, if any."""

    def create_enrollment(self, enrollment: Mapping[str, Any]) -> Dict[str, Any]:
        """Store an enrollment and return the stored record."""

    def list_lessons(
        self,
        *,
        date_range: DateRange,
        instructor_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return lessons within a date range, optionally filtered."""

    def delete_lesson(self, lesson_id: str) -> None:
        """Delete one lesson."""


class LessonSchedulerService:
    """
    Orchestrates lesson date generation and lesson persistence.

    Store failures propagate to the caller unchanged; nothing is retried
    and lessons stored before a failure are kept.
    """

    def __init__(
        self,
        store: LessonStoreProtocol,
        builder: ScheduleBuilder,
    ) -> None:
        self._store = store
        self._builder = builder

    def generate_schedule(self, request: ScheduleRequest) -> ScheduleResult:
        """
        Generate and store the timetable described by ``request``.

        For one-on-one lessons the student is enrolled in the course,
        dated on the first lesson, unless an enrollment already exists.

        Raises:
            ScheduleValidationError: If required request fields are missing
        """
        self._validate(request)

        lesson_dates = self._builder.build_dates(
            date_range=request.date_range,
            weekdays=request.days_of_week,
            frequency=request.frequency,
            skip_holidays=request.skip_holidays,
        )

        created_lessons: List[Dict[str, Any]] = []
        for lesson_date in lesson_dates:
            lesson = self._lesson_payload(request, lesson_date)
            created_lessons.append(self._store.create_lesson(lesson))

        enrollment_created = False
        if request.student_id and created_lessons:
            enrollment_created = self._ensure_enrollment(request, lesson_dates[0])

        possible_days = count_possible_days(request.date_range, request.days_of_week)

        logger.info(
            "Generated %d lessons for course %s (%s, %s)",
            len(created_lessons),
            request.course_id,
            request.frequency.value,
            request.date_range,
        )

        return ScheduleResult(
            count=len(created_lessons),
            lessons=created_lessons,
            enrollment_created=enrollment_created,
            skipped_days=len(lesson_dates) < possible_days,
        )

    def create_recurring_lessons(
        self,
        rule: RecurrenceRule,
        date_range: DateRange,
        lesson: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        """
        Store one copy of ``lesson`` for every date the rule produces.

        ``lesson`` holds the fields shared by all occurrences; its date is
        replaced per occurrence.
        """
        created: List[Dict[str, Any]] = []
        for occurrence in expand(date_range, rule):
            created.append(
                self._store.create_lesson({**lesson, "date": occurrence.to_date_string()})
            )

        logger.info("Created %d recurring lessons for %s", len(created), date_range)
        return created

    def check_instructor_conflict(
        self,
        instructor_id: Optional[str],
        day: date,
        lesson_time: LessonTime,
    ) -> bool:
        """Check if the instructor already teaches a non-cancelled lesson overlapping ``lesson_time``."""
        if not instructor_id:
            return False

        day = as_date(day)
        existing_lessons = self._store.list_lessons(
            date_range=DateRange(start=day, end=day),
            instructor_id=instructor_id,
        )

        for lesson in existing_lessons:
            if lesson.get("status") == "cancelled":
                continue
            if has_time_overlap(
                lesson_time.start_time,
                lesson_time.end_time,
                lesson["startTime"],
                lesson["endTime"],
            ):
                return True

        return False

    def delete_lessons_in_range(self, course_id: str, date_range: DateRange) -> int:
        """Delete all lessons of a course within a date range and return how many were removed."""
        lessons = self._store.list_lessons(date_range=date_range, course_id=course_id)

        for lesson in lessons:
            self._store.delete_lesson(lesson["_id"])

        logger.info("Deleted %d lessons of course %s in %s", len(lessons), course_id, date_range)
        return len(lessons)

    @staticmethod
    def _validate(request: ScheduleRequest) -> None:
        if not request.course_id or not request.days_of_week:
            raise ScheduleValidationError("Missing required parameters")

        if request.lesson_time is None:
            raise ScheduleValidationError("Start time and end time are required")

        if not request.season_id or not request.institution_id:
            raise ScheduleValidationError("Season and institution are required")

        if request.date_range.start >= request.date_range.end:
            raise ScheduleValidationError("Start date must be before end date")

    @staticmethod
    def _lesson_payload(request: ScheduleRequest, lesson_date: date) -> Dict[str, Any]:
        lesson: Dict[str, Any] = {
            "course": request.course_id,
            "instructor": request.instructor_id,
            "date": lesson_date.isoformat(),
            "startTime": request.lesson_time.start_time,
            "endTime": request.lesson_time.end_time,
            "status": "scheduled",
            "season": request.season_id,
            "institution": request.institution_id,
            "createdBy": request.created_by,
            "notes": request.notes or "",
        }

        if request.student_id:
            lesson["student"] = request.student_id

        return lesson

    def _ensure_enrollment(self, request: ScheduleRequest, first_lesson_date: date) -> bool:
        existing = self._store.find_enrollment(
            student_id=request.student_id,
            course_id=request.course_id,
            season_id=request.season_id,
        )
        if existing:
            return False

        self._store.create_enrollment({
            "student": request.student_id,
            "course": request.course_id,
            "enrollmentDate": first_lesson_date.isoformat(),
            "season": request.season_id,
            "institution": request.institution_id,
            "isActive": True,
            "notes": AUTO_ENROLLMENT_NOTE,
            "createdBy": request.created_by,
        })
        logger.info("Enrolled student %s in course %s", request.student_id, request.course_id)
        return True
