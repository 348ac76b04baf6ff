"""Filtered, school-scoped lesson listings.

A ``LessonFilter`` is turned into one parameterised SELECT by
``build_lesson_query``. Each row carries the lesson plus, from correlated
subqueries in the same statement, its visible coaches and its active booking
count, so a listing is a single consistent read.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from libs.common.datetime_utils import start_of_day_utc, start_of_next_day_utc
from libs.common.errors import ValidationError
from services.bookings_service.models import Booking, BookingStatus
from services.bookings_service.services.capacity import spots_left
from services.lessons_service.models import Difficulty, Lesson, LessonCoach
from services.schools_service.models import Coach, School
from sqlalchemy import Select, func, select
from sqlalchemy.dialects.postgresql import JSON, aggregate_order_by
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_LIMIT = 500


@dataclass(frozen=True)
class LessonFilter:
    school_id: Optional[uuid.UUID]
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    difficulty: Optional[Difficulty] = None
    limit: int = DEFAULT_LIMIT


@dataclass
class LessonView:
    """A lesson enriched with its coaches and live booking numbers."""

    lesson: Lesson
    coaches: list[dict[str, Any]] = field(default_factory=list)
    booked_count: int = 0

    @property
    def coach_names(self) -> list[str]:
        return [c["name"] for c in self.coaches]

    @property
    def spots_left(self) -> Optional[int]:
        return spots_left(self.lesson.capacity, self.booked_count)


def coaches_subquery():
    """JSON array of ``{id, name}`` for the visible coaches of the outer lesson, by name."""
    coach_json = func.json_build_object("id", Coach.id, "name", Coach.name)
    return (
        select(func.json_agg(aggregate_order_by(coach_json, Coach.name), type_=JSON))
        .select_from(LessonCoach)
        .join(Coach, Coach.id == LessonCoach.coach_id)
        .where(LessonCoach.lesson_id == Lesson.id, Coach.deleted_at.is_(None))
        .correlate(Lesson)
        .scalar_subquery()
    )


def booked_count_subquery():
    return (
        select(func.count(Booking.id))
        .where(Booking.lesson_id == Lesson.id, Booking.status == BookingStatus.BOOKED)
        .correlate(Lesson)
        .scalar_subquery()
    )


def enriched_lessons_select() -> Select:
    """Visible lessons (lesson and school not deleted) with coaches and booked_count."""
    return (
        select(
            Lesson,
            coaches_subquery().label("coaches"),
            booked_count_subquery().label("booked_count"),
        )
        .join(School, School.id == Lesson.school_id)
        .where(Lesson.deleted_at.is_(None), School.deleted_at.is_(None))
    )


def build_lesson_query(filters: LessonFilter) -> Select:
    """Translate ``filters`` into a single statement. All filters are ANDed."""
    if filters.school_id is None:
        raise ValidationError("Missing school", details={"field": "school"})
    if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
        raise ValidationError(
            "'from' must not be after 'to'",
            details={"from": filters.date_from.isoformat(), "to": filters.date_to.isoformat()},
        )
    if filters.limit <= 0:
        raise ValidationError("limit must be positive", details={"field": "limit"})

    stmt = enriched_lessons_select().where(Lesson.school_id == filters.school_id)
    if filters.difficulty is not None:
        stmt = stmt.where(Lesson.difficulty == filters.difficulty)
    if filters.date_from is not None:
        stmt = stmt.where(Lesson.start_at >= start_of_day_utc(filters.date_from))
    if filters.date_to is not None:
        # inclusive end date: everything before the next midnight
        upper = start_of_next_day_utc(filters.date_to)
        if upper is not None:
            stmt = stmt.where(Lesson.start_at < upper)

    return stmt.order_by(
        Lesson.start_at.asc(), Lesson.created_at.asc(), Lesson.id.asc()
    ).limit(filters.limit)


def _to_view(row) -> LessonView:
    return LessonView(
        lesson=row[0],
        coaches=list(row.coaches or []),
        booked_count=int(row.booked_count or 0),
    )


async def list_lessons(db: AsyncSession, filters: LessonFilter) -> list[LessonView]:
    """Run the listing. A filter without a school yields no lessons."""
    if filters.school_id is None:
        return []
    result = await db.execute(build_lesson_query(filters))
    return [_to_view(row) for row in result.all()]


async def get_lesson_view(db: AsyncSession, lesson_id: uuid.UUID) -> Optional[LessonView]:
    result = await db.execute(enriched_lessons_select().where(Lesson.id == lesson_id))
    row = result.first()
    return _to_view(row) if row else None
