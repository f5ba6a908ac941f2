"""
Adapters layer - External integrations (institution REST API).
"""

from .lesson_api_client import LessonAPIClient
from .memory_store import InMemoryLessonStore

__all__ = ["LessonAPIClient", "InMemoryLessonStore"]
