"""
Tests for the LessonSchedulerService orchestration layer.
"""

from dataclasses import replace
from typing import Iterable, Optional

import pendulum
import pytest

from lessonplanner.adapters.memory_store import InMemoryLessonStore
from lessonplanner.domain.exceptions import LessonAPIError, ScheduleValidationError
from lessonplanner.domain.models import (
    DateRange,
    Frequency,
    LessonTime,
    ScheduleRequest,
    Weekday,
    Weekly,
)
from lessonplanner.domain.schedule_builder import ScheduleBuilder
from lessonplanner.services.lesson_scheduler import LessonSchedulerService

SEPTEMBER_2024 = DateRange(start=pendulum.date(2024, 9, 1), end=pendulum.date(2024, 9, 30))


class FailingStore(InMemoryLessonStore):
    """Store whose API rejects every new lesson."""

    def create_lesson(self, lesson):
        raise LessonAPIError("POST /api/scheduled-lessons failed: 500 Server Error")


def _build_service(
    store: Optional[InMemoryLessonStore] = None,
    holidays: Iterable = (),
) -> LessonSchedulerService:
    return LessonSchedulerService(
        store=store if store is not None else InMemoryLessonStore(),
        builder=ScheduleBuilder(holidays=holidays),
    )


def _request(**overrides) -> ScheduleRequest:
    request = ScheduleRequest(
        course_id="c1",
        date_range=DateRange(start=pendulum.date(2024, 9, 2), end=pendulum.date(2024, 9, 30)),
        days_of_week=[Weekday.MONDAY, Weekday.WEDNESDAY],
        lesson_time=LessonTime("10:00", "11:00"),
        season_id="s1",
        institution_id="i1",
        instructor_id="t1",
        created_by="admin",
    )
    return replace(request, **overrides)


def test_generate_schedule_stores_one_lesson_per_date():
    """Mondays and Wednesdays of September 2024 give nine lessons."""
    store = InMemoryLessonStore()
    service = _build_service(store)

    result = service.generate_schedule(_request())

    assert result.count == 9
    assert len(store.lessons) == 9
    assert result.lesson_dates[:3] == ["2024-09-02", "2024-09-04", "2024-09-09"]
    assert result.skipped_days is False
    assert result.enrollment_created is False

    first = store.lessons[0]
    assert first["course"] == "c1"
    assert first["instructor"] == "t1"
    assert first["startTime"] == "10:00"
    assert first["endTime"] == "11:00"
    assert first["status"] == "scheduled"
    assert first["season"] == "s1"
    assert first["institution"] == "i1"
    assert first["notes"] == ""
    assert "student" not in first


def test_generate_schedule_reports_skipped_days():
    """Biweekly schedules leave matching days out."""
    service = _build_service()

    result = service.generate_schedule(_request(frequency=Frequency.BIWEEKLY))

    assert result.count < 9
    assert result.skipped_days is True


def test_generate_schedule_skips_holidays():
    """Holidays are left out and reported as skipped days."""
    service = _build_service(holidays=[pendulum.date(2024, 9, 4)])

    result = service.generate_schedule(_request())

    assert result.count == 8
    assert "2024-09-04" not in result.lesson_dates
    assert result.skipped_days is True


def test_one_on_one_schedule_enrolls_student():
    """The enrollment is dated on the first lesson."""
    store = InMemoryLessonStore()
    service = _build_service(store)

    result = service.generate_schedule(_request(student_id="st1"))

    assert result.enrollment_created is True
    assert all(lesson["student"] == "st1" for lesson in store.lessons)
    assert len(store.enrollments) == 1
    enrollment = store.enrollments[0]
    assert enrollment["student"] == "st1"
    assert enrollment["course"] == "c1"
    assert enrollment["season"] == "s1"
    assert enrollment["enrollmentDate"] == "2024-09-02"
    assert enrollment["isActive"] is True


def test_existing_enrollment_is_not_duplicated():
    store = InMemoryLessonStore(enrollments=[{"student": "st1", "course": "c1", "season": "s1"}])
    service = _build_service(store)

    result = service.generate_schedule(_request(student_id="st1"))

    assert result.enrollment_created is False
    assert len(store.enrollments) == 1


def test_no_enrollment_without_lessons():
    """A range without any matching weekday creates neither lessons nor enrollment."""
    store = InMemoryLessonStore()
    service = _build_service(store)
    request = _request(
        student_id="st1",
        days_of_week=[Weekday.MONDAY],
        date_range=DateRange(start=pendulum.date(2024, 9, 3), end=pendulum.date(2024, 9, 5)),
    )

    result = service.generate_schedule(request)

    assert result.count == 0
    assert result.enrollment_created is False
    assert store.enrollments == []


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"course_id": None}, "Missing required parameters"),
        ({"days_of_week": []}, "Missing required parameters"),
        ({"lesson_time": None}, "Start time and end time are required"),
        ({"season_id": ""}, "Season and institution are required"),
        ({"institution_id": None}, "Season and institution are required"),
        (
            {"date_range": DateRange(start=pendulum.date(2024, 9, 2), end=pendulum.date(2024, 9, 2))},
            "Start date must be before end date",
        ),
    ],
)
def test_generate_schedule_validation(overrides, message):
    store = InMemoryLessonStore()
    service = _build_service(store)

    with pytest.raises(ScheduleValidationError, match=message):
        service.generate_schedule(_request(**overrides))

    assert store.lessons == []


def test_store_errors_propagate():
    service = _build_service(FailingStore())

    with pytest.raises(LessonAPIError):
        service.generate_schedule(_request())


def test_create_recurring_lessons():
    """One lesson per Tuesday of September, sharing the template fields."""
    store = InMemoryLessonStore()
    service = _build_service(store)

    created = service.create_recurring_lessons(
        Weekly(Weekday.TUESDAY),
        SEPTEMBER_2024,
        {"course": "c1", "startTime": "14:00", "endTime": "15:00", "status": "scheduled"},
    )

    assert [lesson["date"] for lesson in created] == [
        "2024-09-03",
        "2024-09-10",
        "2024-09-17",
        "2024-09-24",
    ]
    assert all(lesson["course"] == "c1" for lesson in created)
    assert len(store.lessons) == 4


class TestInstructorConflict:
    """Tests for instructor double-booking checks."""

    @staticmethod
    def _service(status: str = "scheduled") -> LessonSchedulerService:
        store = InMemoryLessonStore(lessons=[{
            "course": "c1",
            "instructor": "t1",
            "date": "2024-09-02",
            "startTime": "10:00",
            "endTime": "11:00",
            "status": status,
        }])
        return _build_service(store)

    def test_overlapping_lesson_conflicts(self):
        service = self._service()

        assert service.check_instructor_conflict("t1", pendulum.date(2024, 9, 2), LessonTime("10:30", "11:30"))

    def test_adjacent_lesson_does_not_conflict(self):
        service = self._service()

        assert not service.check_instructor_conflict("t1", pendulum.date(2024, 9, 2), LessonTime("11:00", "12:00"))

    def test_other_day_or_instructor_does_not_conflict(self):
        service = self._service()

        assert not service.check_instructor_conflict("t1", pendulum.date(2024, 9, 3), LessonTime("10:00", "11:00"))
        assert not service.check_instructor_conflict("t2", pendulum.date(2024, 9, 2), LessonTime("10:00", "11:00"))

    def test_cancelled_lessons_are_ignored(self):
        service = self._service(status="cancelled")

        assert not service.check_instructor_conflict("t1", pendulum.date(2024, 9, 2), LessonTime("10:00", "11:00"))

    def test_no_instructor_never_conflicts(self):
        service = self._service()

        assert not service.check_instructor_conflict(None, pendulum.date(2024, 9, 2), LessonTime("10:00", "11:00"))


def test_delete_lessons_in_range():
    """Only lessons of the course inside the range are removed."""
    store = InMemoryLessonStore(lessons=[
        {"course": "c1", "date": "2024-09-02", "startTime": "10:00", "endTime": "11:00"},
        {"course": "c1", "date": "2024-09-09", "startTime": "10:00", "endTime": "11:00"},
        {"course": "c1", "date": "2024-10-07", "startTime": "10:00", "endTime": "11:00"},
        {"course": "c2", "date": "2024-09-02", "startTime": "12:00", "endTime": "13:00"},
    ])
    service = _build_service(store)

    deleted = service.delete_lessons_in_range("c1", SEPTEMBER_2024)

    assert deleted == 2
    assert sorted((lesson["course"], lesson["date"]) for lesson in store.lessons) == [
        ("c1", "2024-10-07"),
        ("c2", "2024-09-02"),
    ]
