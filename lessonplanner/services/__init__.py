"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .lesson_scheduler import LessonSchedulerService, LessonStoreProtocol

__all__ = ["LessonSchedulerService", "LessonStoreProtocol"]
