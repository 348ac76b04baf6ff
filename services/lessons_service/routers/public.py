from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from libs.common.config import get_settings
from libs.common.responses import Envelope, ok
from libs.db.session import get_async_db
from services.lessons_service.models import Difficulty
from services.lessons_service.schemas import LessonListItem
from services.lessons_service.services.lesson_query import LessonFilter, list_lessons
from services.schools_service.services.school_ops import find_school
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/lessons", response_model=Envelope[List[LessonListItem]])
async def list_public_lessons(
    school: Optional[str] = Query(default=None, description="School slug or id"),
    difficulty: Optional[Difficulty] = None,
    date_from: Optional[date] = Query(default=None, alias="from"),
    date_to: Optional[date] = Query(default=None, alias="to"),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Public schedule of a school.

    A missing or unknown school gives an empty list rather than an error.
    Dates are whole UTC days; ``to`` is inclusive.
    """
    found = await find_school(db, school)
    views = await list_lessons(
        db,
        LessonFilter(
            school_id=found.id if found else None,
            date_from=date_from,
            date_to=date_to,
            difficulty=difficulty,
            limit=get_settings().LESSON_LIST_LIMIT,
        ),
    )
    return ok([LessonListItem.from_view(v) for v in views])
