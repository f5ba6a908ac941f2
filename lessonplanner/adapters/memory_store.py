"""
In-memory lesson store for dry runs and tests.
"""

from itertools import count
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pendulum

from ..domain.models import DateRange


class InMemoryLessonStore:
    """
    Store that keeps lessons and enrollments in plain lists.

    It mirrors the REST client's interface so the scheduler can preview a
    timetable without touching the institution API. Lesson dates are kept
    as ``YYYY-MM-DD`` strings, the same way the scheduler sends them.
    """

    def __init__(
        self,
        lessons: Iterable[Mapping[str, Any]] = (),
        enrollments: Iterable[Mapping[str, Any]] = (),
    ):
        self._ids = count(1)
        self.lessons: List[Dict[str, Any]] = [self._with_id(lesson, "lesson") for lesson in lessons]
        self.enrollments: List[Dict[str, Any]] = [
            self._with_id(enrollment, "enrollment") for enrollment in enrollments
        ]

    def create_lesson(self, lesson: Mapping[str, Any]) -> Dict[str, Any]:
        stored = self._with_id(lesson, "lesson")
        self.lessons.append(stored)
        return stored

    def find_enrollment(
        self,
        *,
        student_id: str,
        course_id: str,
        season_id: str,
    ) -> Optional[Dict[str, Any]]:
        for enrollment in self.enrollments:
            if (
                enrollment.get("student") == student_id
                and enrollment.get("course") == course_id
                and enrollment.get("season") == season_id
            ):
                return enrollment
        return None

    def create_enrollment(self, enrollment: Mapping[str, Any]) -> Dict[str, Any]:
        stored = self._with_id(enrollment, "enrollment")
        self.enrollments.append(stored)
        return stored

    def list_lessons(
        self,
        *,
        date_range: DateRange,
        instructor_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        matches = []
        for lesson in self.lessons:
            if instructor_id and lesson.get("instructor") != instructor_id:
                continue
            if course_id and lesson.get("course") != course_id:
                continue
            if pendulum.parse(lesson["date"]).date() in date_range:
                matches.append(lesson)
        return sorted(matches, key=lambda lesson: (lesson["date"], lesson.get("startTime", "")))

    def delete_lesson(self, lesson_id: str) -> None:
        self.lessons = [lesson for lesson in self.lessons if lesson["_id"] != lesson_id]

    def _with_id(self, record: Mapping[str, Any], prefix: str) -> Dict[str, Any]:
        stored = dict(record)
        stored.setdefault("_id", f"{prefix}-{next(self._ids)}")
        return stored
