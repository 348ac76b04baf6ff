"""Lessons Service models package."""

from services.lessons_service.models.core import Lesson, LessonCoach
from services.lessons_service.models.enums import Difficulty

__all__ = [
    "Difficulty",
    "Lesson",
    "LessonCoach",
]
