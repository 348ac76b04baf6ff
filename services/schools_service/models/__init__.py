"""Schools Service models package."""

from services.schools_service.models.core import Coach, School

__all__ = [
    "Coach",
    "School",
]
