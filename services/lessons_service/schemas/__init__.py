from services.lessons_service.schemas.main import (
    CoachAssignment,
    CoachAssignmentResponse,
    CoachRef,
    ConflictCheckRequest,
    ConflictInfo,
    LessonCreate,
    LessonDeleted,
    LessonListItem,
    LessonResponse,
    LessonUpdate,
    LessonWriteResponse,
)

__all__ = [
    "CoachAssignment",
    "CoachAssignmentResponse",
    "CoachRef",
    "ConflictCheckRequest",
    "ConflictInfo",
    "LessonCreate",
    "LessonDeleted",
    "LessonListItem",
    "LessonResponse",
    "LessonUpdate",
    "LessonWriteResponse",
]
