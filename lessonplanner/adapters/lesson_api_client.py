"""
REST client for the institution API's lesson and enrollment endpoints.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from ..domain.exceptions import LessonAPIError
from ..domain.models import DateRange

logger = logging.getLogger(__name__)


class LessonAPIClient:
    """
    Client for the scheduled-lesson and enrollment resources.

    Every call is a single HTTP request; failures surface as
    ``LessonAPIError`` and are never retried here.
    """

    LESSONS_PATH = "/api/scheduled-lessons"
    ENROLLMENTS_PATH = "/api/enrollments"

    REQUIRED_LESSON_FIELDS = ("_id", "startTime", "endTime")

    def __init__(self, base_url: str, token: str = "", timeout: int = 30):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the institution API, e.g. http://localhost:5000
            token: Optional bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def create_lesson(self, lesson: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self.LESSONS_PATH, json=dict(lesson))

    def find_enrollment(
        self,
        *,
        student_id: str,
        course_id: str,
        season_id: str,
    ) -> Optional[Dict[str, Any]]:
        enrollments = self._request(
            "GET",
            self.ENROLLMENTS_PATH,
            params={"studentId": student_id, "courseId": course_id, "seasonId": season_id},
        )
        return enrollments[0] if enrollments else None

    def create_enrollment(self, enrollment: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self.ENROLLMENTS_PATH, json=dict(enrollment))

    def list_lessons(
        self,
        *,
        date_range: DateRange,
        instructor_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch lessons within a date range.

        Records without an id or lesson times are logged and skipped.
        """
        params = {
            "startDate": date_range.start.to_date_string(),
            "endDate": f"{date_range.end.to_date_string()}T23:59:59.999",
        }
        if instructor_id:
            params["instructorId"] = instructor_id
        if course_id:
            params["courseId"] = course_id

        records = self._request("GET", self.LESSONS_PATH, params=params)
        return self._valid_lessons(records)

    def delete_lesson(self, lesson_id: str) -> None:
        self._request("DELETE", f"{self.LESSONS_PATH}/{lesson_id}")

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise LessonAPIError(f"{method} {url} failed: {e}") from e

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise LessonAPIError(f"{method} {url} returned invalid JSON: {e}") from e

    def _valid_lessons(self, records: Any) -> List[Dict[str, Any]]:
        if not isinstance(records, list):
            raise LessonAPIError(f"Expected a list of lessons, got {type(records).__name__}")

        lessons: List[Dict[str, Any]] = []
        for record in records:
            missing = [key for key in self.REQUIRED_LESSON_FIELDS if not record.get(key)]
            if missing:
                logger.warning("Skipping lesson record without %s: %r", ", ".join(missing), record)
                continue
            lessons.append(record)

        return lessons
