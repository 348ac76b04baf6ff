from services.schools_service.schemas.main import (
    CoachCreate,
    CoachResponse,
    CoachUpdate,
    SchoolCreate,
    SchoolDeleted,
    SchoolResponse,
    SchoolUpdate,
)

__all__ = [
    "CoachCreate",
    "CoachResponse",
    "CoachUpdate",
    "SchoolCreate",
    "SchoolDeleted",
    "SchoolResponse",
    "SchoolUpdate",
]
