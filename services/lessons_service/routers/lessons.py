import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.common.config import get_settings
from libs.common.errors import ValidationError
from libs.common.responses import Envelope, ok
from libs.db.session import get_async_db
from services.lessons_service.models import Difficulty
from services.lessons_service.schemas import (
    CoachAssignment,
    CoachAssignmentResponse,
    ConflictCheckRequest,
    ConflictInfo,
    LessonCreate,
    LessonDeleted,
    LessonListItem,
    LessonUpdate,
    LessonWriteResponse,
)
from services.lessons_service.services import lesson_ops
from services.lessons_service.services.lesson_query import LessonFilter, list_lessons
from services.schools_service.services.school_ops import resolve_school
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("", response_model=Envelope[List[LessonListItem]])
async def list_school_lessons(
    school: Optional[str] = Query(default=None, description="School slug or id"),
    difficulty: Optional[Difficulty] = None,
    date_from: Optional[date] = Query(default=None, alias="from"),
    date_to: Optional[date] = Query(default=None, alias="to"),
    db: AsyncSession = Depends(get_async_db),
):
    """
    List a school's lessons in start order, with coaches and booking counts.
    """
    if not school or not school.strip():
        raise ValidationError("Missing ?school=<slug>", details={"field": "school"})
    found = await resolve_school(db, school)
    views = await list_lessons(
        db,
        LessonFilter(
            school_id=found.id,
            date_from=date_from,
            date_to=date_to,
            difficulty=difficulty,
            limit=get_settings().LESSON_LIST_LIMIT,
        ),
    )
    return ok([LessonListItem.from_view(v) for v in views])


@router.post(
    "", response_model=Envelope[LessonWriteResponse], status_code=status.HTTP_201_CREATED
)
async def create_lesson(lesson_in: LessonCreate, db: AsyncSession = Depends(get_async_db)):
    """
    Create a lesson and assign coaches. Overlapping lessons in the same school
    are reported in ``conflicts``.
    """
    result = await lesson_ops.create_lesson(
        db,
        school_ref=lesson_in.school,
        start_at=lesson_in.start_at,
        duration_min=lesson_in.duration_min,
        difficulty=lesson_in.difficulty,
        place=lesson_in.place,
        capacity=lesson_in.capacity,
        coach_ids=lesson_in.coach_ids,
    )
    return ok(
        LessonWriteResponse(
            lesson=LessonListItem.from_view(result.view),
            conflicts=ConflictInfo.from_report(result.conflicts),
        )
    )


@router.post("/conflicts", response_model=Envelope[ConflictInfo])
async def check_lesson_conflicts(
    check_in: ConflictCheckRequest, db: AsyncSession = Depends(get_async_db)
):
    """
    Advisory overlap check for a candidate lesson. Nothing is written.
    """
    report = await lesson_ops.check_conflicts_for_school(
        db,
        school_ref=check_in.school,
        start_at=check_in.start_at,
        duration_min=check_in.duration_min,
        exclude_lesson_id=check_in.exclude_lesson_id,
    )
    return ok(ConflictInfo.from_report(report))


@router.get("/{lesson_id}", response_model=Envelope[LessonListItem])
async def get_lesson(lesson_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    view = await lesson_ops.get_lesson_detail(db, lesson_id)
    return ok(LessonListItem.from_view(view))


@router.patch("/{lesson_id}", response_model=Envelope[LessonWriteResponse])
async def update_lesson(
    lesson_id: uuid.UUID,
    lesson_in: LessonUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    result = await lesson_ops.update_lesson(
        db, lesson_id, lesson_in.model_dump(exclude_unset=True)
    )
    return ok(
        LessonWriteResponse(
            lesson=LessonListItem.from_view(result.view),
            conflicts=ConflictInfo.from_report(result.conflicts),
        )
    )


@router.delete("/{lesson_id}", response_model=Envelope[LessonDeleted])
async def delete_lesson(lesson_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    """
    Soft-delete a lesson. It disappears from listings; bookings are kept.
    """
    lesson = await lesson_ops.soft_delete_lesson(db, lesson_id)
    return ok(LessonDeleted(id=lesson.id))


@router.put("/{lesson_id}/coaches", response_model=Envelope[CoachAssignmentResponse])
async def replace_lesson_coaches(
    lesson_id: uuid.UUID,
    assignment: CoachAssignment,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Replace the lesson's coaches. Every coach must belong to the lesson's school.
    """
    coach_ids = await lesson_ops.replace_lesson_coaches(
        db, lesson_id, assignment.coach_ids
    )
    return ok(CoachAssignmentResponse(lesson_id=lesson_id, coach_ids=coach_ids))
