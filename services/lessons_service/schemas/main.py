import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from services.lessons_service.models import Difficulty
from services.lessons_service.models.core import MAX_DURATION_MIN


def _split_ids(value: Any) -> Any:
    # Accept "id1,id2" as well as a JSON list
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class LessonCreate(BaseModel):
    school: str = Field(..., min_length=1, description="School slug or id")
    start_at: datetime
    duration_min: Optional[int] = Field(default=None, ge=1, le=MAX_DURATION_MIN)
    difficulty: Difficulty
    place: str = Field(..., min_length=1)
    capacity: Optional[int] = Field(default=None, ge=0)
    coach_ids: List[uuid.UUID] = Field(default_factory=list)

    @field_validator("coach_ids", mode="before")
    @classmethod
    def _coerce_coach_ids(cls, v):
        return _split_ids(v) or []


class LessonUpdate(BaseModel):
    start_at: Optional[datetime] = None
    duration_min: Optional[int] = Field(default=None, ge=1, le=MAX_DURATION_MIN)
    difficulty: Optional[Difficulty] = None
    place: Optional[str] = Field(default=None, min_length=1)
    capacity: Optional[int] = Field(default=None, ge=0)


class CoachRef(BaseModel):
    id: uuid.UUID
    name: str


class LessonResponse(BaseModel):
    id: uuid.UUID
    school_id: uuid.UUID
    start_at: datetime
    duration_min: int
    difficulty: Difficulty
    place: str
    capacity: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LessonListItem(LessonResponse):
    """A lesson as shown in listings: coaches and live booking numbers included."""

    coaches: List[CoachRef] = Field(default_factory=list)
    coach_names: List[str] = Field(default_factory=list)
    booked_count: int = 0
    spots_left: Optional[int] = None

    @classmethod
    def from_view(cls, view) -> "LessonListItem":
        base = LessonResponse.model_validate(view.lesson).model_dump()
        return cls(
            **base,
            coaches=view.coaches,
            coach_names=view.coach_names,
            booked_count=view.booked_count,
            spots_left=view.spots_left,
        )


class ConflictInfo(BaseModel):
    start_at: datetime
    end_at: datetime
    has_conflict: bool
    conflicting_lesson_ids: List[uuid.UUID] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report) -> "ConflictInfo":
        return cls(
            start_at=report.start_at,
            end_at=report.end_at,
            has_conflict=report.has_conflict,
            conflicting_lesson_ids=report.conflicting_lesson_ids,
        )


class LessonWriteResponse(BaseModel):
    lesson: LessonListItem
    conflicts: ConflictInfo


class ConflictCheckRequest(BaseModel):
    school: str = Field(..., min_length=1, description="School slug or id")
    start_at: datetime
    duration_min: Optional[int] = Field(default=None, ge=1, le=MAX_DURATION_MIN)
    exclude_lesson_id: Optional[uuid.UUID] = None


class CoachAssignment(BaseModel):
    coach_ids: List[uuid.UUID] = Field(default_factory=list)

    @field_validator("coach_ids", mode="before")
    @classmethod
    def _coerce_coach_ids(cls, v):
        return _split_ids(v) or []


class CoachAssignmentResponse(BaseModel):
    lesson_id: uuid.UUID
    coach_ids: List[uuid.UUID]


class LessonDeleted(BaseModel):
    id: uuid.UUID
    deleted: bool = True
