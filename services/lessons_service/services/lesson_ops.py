"""Lesson operations: create/update/soft-delete, coach assignment and conflict checks."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional, Union

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import ConflictError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.db.transaction import atomic
from services.lessons_service.models import Difficulty, Lesson, LessonCoach
from services.lessons_service.models.core import MAX_DURATION_MIN
from services.lessons_service.scheduling import (
    ConflictReport,
    find_conflicts,
    lesson_window,
    validate_duration,
)
from services.lessons_service.services.lesson_query import LessonView, get_lesson_view
from services.schools_service.models import Coach, School
from services.schools_service.services.school_ops import parse_uuid, resolve_school
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

LESSON_FIELDS = ("start_at", "duration_min", "difficulty", "place", "capacity")
_EARLIEST_INSTANT = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class LessonResult:
    """A written lesson plus the overlap report computed for it."""

    view: LessonView
    conflicts: ConflictReport


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def parse_difficulty(value: Union[Difficulty, str, None]) -> Difficulty:
    if isinstance(value, Difficulty):
        return value
    if isinstance(value, str):
        for member in Difficulty:
            if member.value.lower() == value.strip().lower():
                return member
    raise ValidationError(
        "Invalid difficulty (Beginner, Intermediate or Advanced)",
        details={"field": "difficulty", "value": value},
    )


def _clean_place(place: Optional[str]) -> str:
    place = (place or "").strip()
    if not place:
        raise ValidationError("Missing place", details={"field": "place"})
    return place


def _clean_capacity(capacity: Optional[int]) -> Optional[int]:
    if capacity is None:
        return None
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 0:
        raise ValidationError(
            "capacity must be a non-negative integer", details={"field": "capacity"}
        )
    return capacity


def _dedupe_coach_ids(coach_ids: Optional[Iterable[Any]]) -> list[uuid.UUID]:
    unique: list[uuid.UUID] = []
    for raw in coach_ids or []:
        if raw in (None, ""):
            continue
        coach_id = parse_uuid(raw)
        if coach_id is None:
            raise ValidationError("Invalid coach id", details={"coach_id": str(raw)})
        if coach_id not in unique:
            unique.append(coach_id)
    return unique


async def _validate_coaches(
    db: AsyncSession, school_id: uuid.UUID, coach_ids: Optional[Iterable[Any]]
) -> list[uuid.UUID]:
    """De-duplicate ``coach_ids`` and require each to be a visible coach of the school."""
    unique = _dedupe_coach_ids(coach_ids)
    if not unique:
        return []
    result = await db.execute(
        select(Coach.id).where(
            Coach.school_id == school_id,
            Coach.id.in_(unique),
            Coach.deleted_at.is_(None),
        )
    )
    found = set(result.scalars().all())
    missing = [str(c) for c in unique if c not in found]
    if missing:
        raise ValidationError(
            "Invalid coach for this school", details={"coach_ids": missing}
        )
    return unique


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


async def check_conflicts(
    db: AsyncSession,
    *,
    school_id: uuid.UUID,
    start_at: Union[datetime, str, None],
    duration_min: Optional[int] = None,
    exclude_lesson_id: Optional[uuid.UUID] = None,
) -> ConflictReport:
    """Overlap check against the school's visible lessons."""
    window = lesson_window(start_at, duration_min)
    stmt = select(Lesson).where(
        Lesson.school_id == school_id,
        Lesson.deleted_at.is_(None),
        Lesson.start_at < window.end,
    )
    # No lesson lasts longer than MAX_DURATION_MIN, so nothing starting
    # earlier than this can still be running at window.start.
    lookback = timedelta(minutes=MAX_DURATION_MIN)
    if window.start - _EARLIEST_INSTANT > lookback:
        stmt = stmt.where(Lesson.start_at > window.start - lookback)
    result = await db.execute(
        stmt.order_by(Lesson.start_at.asc(), Lesson.created_at.asc())
    )
    report = find_conflicts(
        window.start,
        duration_min,
        result.scalars().all(),
        exclude_lesson_id=exclude_lesson_id,
    )
    if report.has_conflict:
        logger.info(
            "Lesson window %s-%s overlaps %d lesson(s) in school %s",
            report.start_at.isoformat(),
            report.end_at.isoformat(),
            len(report.conflicting_lesson_ids),
            school_id,
        )
    return report


async def check_conflicts_for_school(
    db: AsyncSession,
    *,
    school_ref: str,
    start_at: Union[datetime, str, None],
    duration_min: Optional[int] = None,
    exclude_lesson_id: Optional[uuid.UUID] = None,
) -> ConflictReport:
    school = await resolve_school(db, school_ref)
    return await check_conflicts(
        db,
        school_id=school.id,
        start_at=start_at,
        duration_min=duration_min,
        exclude_lesson_id=exclude_lesson_id,
    )


def _rejects_overlaps() -> bool:
    return get_settings().LESSON_OVERLAP_POLICY == "reject"


async def _lock_school_schedule(db: AsyncSession, school_id: uuid.UUID) -> None:
    """Row-lock the school until commit so overlap-checked writes in it run one at a time."""
    await db.execute(select(School.id).where(School.id == school_id).with_for_update())


def _enforce_overlap_policy(report: ConflictReport) -> None:
    if report.has_conflict and _rejects_overlaps():
        raise ConflictError(
            "Lesson overlaps an existing lesson",
            code="LESSON_OVERLAP",
            details={"conflicting_lesson_ids": [str(i) for i in report.conflicting_lesson_ids]},
        )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_lesson(db: AsyncSession, lesson_id: uuid.UUID) -> Lesson:
    """Fetch a visible lesson (lesson and its school not deleted)."""
    result = await db.execute(
        select(Lesson)
        .join(School, School.id == Lesson.school_id)
        .where(
            Lesson.id == lesson_id,
            Lesson.deleted_at.is_(None),
            School.deleted_at.is_(None),
        )
    )
    lesson = result.scalar_one_or_none()
    if not lesson:
        raise NotFoundError("Lesson not found")
    return lesson


async def get_lesson_detail(db: AsyncSession, lesson_id: uuid.UUID) -> LessonView:
    view = await get_lesson_view(db, lesson_id)
    if view is None:
        raise NotFoundError("Lesson not found")
    return view


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_lesson(
    db: AsyncSession,
    *,
    school_ref: str,
    start_at: Union[datetime, str, None],
    difficulty: Union[Difficulty, str, None],
    place: Optional[str],
    duration_min: Optional[int] = None,
    capacity: Optional[int] = None,
    coach_ids: Optional[Iterable[Any]] = None,
) -> LessonResult:
    """Create a lesson and link its coaches in one transaction.

    Overlaps within the school are reported; they only block creation when
    LESSON_OVERLAP_POLICY is "reject", in which case the school row is locked
    so concurrent creates cannot both pass the check.
    """
    duration_min = validate_duration(duration_min)
    window = lesson_window(start_at, duration_min)
    difficulty = parse_difficulty(difficulty)
    place = _clean_place(place)
    capacity = _clean_capacity(capacity)

    school = await resolve_school(db, school_ref)
    school_id, school_slug = school.id, school.slug
    coach_ids = await _validate_coaches(db, school_id, coach_ids)

    lesson = Lesson(
        school_id=school_id,
        start_at=window.start,
        duration_min=duration_min,
        difficulty=difficulty,
        place=place,
        capacity=capacity,
    )
    async with atomic(db):
        if _rejects_overlaps():
            await _lock_school_schedule(db, school_id)
        report = await check_conflicts(
            db, school_id=school_id, start_at=window.start, duration_min=duration_min
        )
        _enforce_overlap_policy(report)

        db.add(lesson)
        await db.flush()
        if coach_ids:
            await db.execute(
                insert(LessonCoach)
                .values([{"lesson_id": lesson.id, "coach_id": c} for c in coach_ids])
                .on_conflict_do_nothing()
            )

    logger.info(
        "Created lesson %s for school %s at %s (%d coaches)",
        lesson.id,
        school_slug,
        window.start.isoformat(),
        len(coach_ids),
    )
    return LessonResult(view=await get_lesson_detail(db, lesson.id), conflicts=report)


async def update_lesson(
    db: AsyncSession, lesson_id: uuid.UUID, changes: dict[str, Any]
) -> LessonResult:
    changes = {k: v for k, v in changes.items() if k in LESSON_FIELDS}
    if not changes:
        raise ValidationError("No updates provided.")

    lesson = await get_lesson(db, lesson_id)

    if "start_at" in changes:
        changes["start_at"] = lesson_window(changes["start_at"], lesson.duration_min).start
    if "duration_min" in changes:
        # null would otherwise fall back to the default duration
        if changes["duration_min"] is None:
            raise ValidationError("duration_min cannot be null", details={"field": "duration_min"})
        changes["duration_min"] = validate_duration(changes["duration_min"])
    if "difficulty" in changes:
        changes["difficulty"] = parse_difficulty(changes["difficulty"])
    if "place" in changes:
        changes["place"] = _clean_place(changes["place"])
    if "capacity" in changes:
        changes["capacity"] = _clean_capacity(changes["capacity"])

    retimed = "start_at" in changes or "duration_min" in changes
    async with atomic(db):
        if retimed and _rejects_overlaps():
            await _lock_school_schedule(db, lesson.school_id)
        report = await check_conflicts(
            db,
            school_id=lesson.school_id,
            start_at=changes.get("start_at", lesson.start_at),
            duration_min=changes.get("duration_min", lesson.duration_min),
            exclude_lesson_id=lesson.id,
        )
        if retimed:
            _enforce_overlap_policy(report)

        for field_name, value in changes.items():
            setattr(lesson, field_name, value)
        lesson.updated_at = utc_now()

    logger.info("Updated lesson %s (%s)", lesson.id, ", ".join(sorted(changes)))
    return LessonResult(view=await get_lesson_detail(db, lesson.id), conflicts=report)


async def soft_delete_lesson(db: AsyncSession, lesson_id: uuid.UUID) -> Lesson:
    """Mark a lesson deleted. Bookings and coach links are kept for history."""
    lesson = await get_lesson(db, lesson_id)
    async with atomic(db):
        lesson.deleted_at = utc_now()
    logger.info("Soft-deleted lesson %s", lesson.id)
    return lesson


async def replace_lesson_coaches(
    db: AsyncSession, lesson_id: uuid.UUID, coach_ids: Iterable[Any]
) -> list[uuid.UUID]:
    """Replace the lesson's coach assignment wholesale (delete, then re-insert)."""
    lesson = await get_lesson(db, lesson_id)
    unique = await _validate_coaches(db, lesson.school_id, coach_ids)

    async with atomic(db):
        await db.execute(delete(LessonCoach).where(LessonCoach.lesson_id == lesson.id))
        if unique:
            await db.execute(
                insert(LessonCoach)
                .values([{"lesson_id": lesson.id, "coach_id": c} for c in unique])
                .on_conflict_do_nothing()
            )

    logger.info("Lesson %s now has %d coach(es)", lesson.id, len(unique))
    return unique
