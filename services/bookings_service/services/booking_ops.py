"""Booking state machine.

    (none) --book--> BOOKED --unbook--> CANCELLED --book--> BOOKED

Every transition is a single upsert/update keyed by the (lesson_id,
student_id) unique constraint, so concurrent requests cannot create a second
active booking.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import ConflictError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.db.transaction import atomic
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from services.bookings_service.models import (
    Booking,
    BookingOutcome,
    BookingStatus,
    Student,
)
from services.bookings_service.services.capacity import is_full, spots_left
from services.lessons_service.models import Lesson
from services.lessons_service.services.lesson_ops import get_lesson
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

_email_adapter = TypeAdapter(EmailStr)


@dataclass
class BookingResult:
    lesson_id: uuid.UUID
    booking_id: uuid.UUID
    email: str
    name: Optional[str]
    status: BookingStatus
    outcome: BookingOutcome
    booked_count: int
    spots_left: Optional[int]


@dataclass
class Attendee:
    name: Optional[str]
    email: str
    booked_at: datetime


def normalize_email(value: Any) -> str:
    """Validate an email address and return it lower-cased."""
    raw = str(value).strip() if value is not None else ""
    if not raw:
        raise ValidationError("Missing email", details={"field": "email"})
    try:
        email = _email_adapter.validate_python(raw)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid email", details={"field": "email", "value": raw}
        ) from exc
    return str(email).lower()


def _clean_name(name: Optional[str]) -> Optional[str]:
    name = (name or "").strip()
    return name or None


async def booked_count(db: AsyncSession, lesson_id: uuid.UUID) -> int:
    """Number of active (BOOKED) bookings on the lesson."""
    result = await db.execute(
        select(func.count(Booking.id)).where(
            Booking.lesson_id == lesson_id, Booking.status == BookingStatus.BOOKED
        )
    )
    return int(result.scalar_one())


async def upsert_student(
    db: AsyncSession, *, school_id: uuid.UUID, email: str, name: Optional[str] = None
) -> tuple[uuid.UUID, Optional[str]]:
    """
    Find or create the student of ``school_id`` with ``email``.

    A stored name is never overwritten; a missing one is filled in. A
    soft-deleted student is revived. Runs inside the caller's transaction.
    """
    stmt = insert(Student).values(
        id=uuid.uuid4(), school_id=school_id, email=email, name=name
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Student.school_id, Student.email],
        set_={
            "name": func.coalesce(Student.name, stmt.excluded.name),
            "deleted_at": None,
            "updated_at": utc_now(),
        },
    ).returning(Student.id, Student.name)
    row = (await db.execute(stmt)).one()
    return row.id, row.name


async def _active_booking_id(
    db: AsyncSession, lesson_id: uuid.UUID, student_id: uuid.UUID
) -> Optional[uuid.UUID]:
    result = await db.execute(
        select(Booking.id).where(
            Booking.lesson_id == lesson_id,
            Booking.student_id == student_id,
            Booking.status == BookingStatus.BOOKED,
        )
    )
    return result.scalar_one_or_none()


async def _ensure_spot(db: AsyncSession, lesson: Lesson, student_id: uuid.UUID) -> None:
    # Row lock serialises concurrent bookings of the same lesson
    await db.execute(select(Lesson.id).where(Lesson.id == lesson.id).with_for_update())
    if await _active_booking_id(db, lesson.id, student_id) is not None:
        return
    if is_full(lesson.capacity, await booked_count(db, lesson.id)):
        raise ConflictError(
            "Lesson is full",
            code="LESSON_FULL",
            details={"lesson_id": str(lesson.id), "capacity": lesson.capacity},
        )


async def book_lesson(
    db: AsyncSession,
    lesson_id: uuid.UUID,
    *,
    email: Any,
    name: Optional[str] = None,
) -> BookingResult:
    """
    Book ``email`` onto the lesson.

    Booking twice is a no-op (outcome ``already_booked``); booking after a
    cancellation re-activates the same row (outcome ``rebooked``).
    """
    email = normalize_email(email)
    name = _clean_name(name)
    lesson = await get_lesson(db, lesson_id)
    enforce_capacity = (
        get_settings().ENFORCE_LESSON_CAPACITY and lesson.capacity is not None
    )

    new_id = uuid.uuid4()
    async with atomic(db, conflict_message="Already booked", conflict_code="ALREADY_BOOKED"):
        student_id, student_name = await upsert_student(
            db, school_id=lesson.school_id, email=email, name=name
        )
        if enforce_capacity:
            await _ensure_spot(db, lesson, student_id)

        stmt = (
            insert(Booking)
            .values(
                id=new_id,
                lesson_id=lesson.id,
                student_id=student_id,
                status=BookingStatus.BOOKED,
            )
            .on_conflict_do_update(
                index_elements=[Booking.lesson_id, Booking.student_id],
                set_={
                    "status": BookingStatus.BOOKED,
                    "cancelled_at": None,
                    "updated_at": utc_now(),
                },
                where=Booking.status == BookingStatus.CANCELLED,
            )
            .returning(Booking.id)
        )
        booking_id = (await db.execute(stmt)).scalar_one_or_none()

        if booking_id is None:
            # Already BOOKED: the conditional update matched nothing
            outcome = BookingOutcome.ALREADY_BOOKED
            booking_id = await _active_booking_id(db, lesson.id, student_id)
        elif booking_id == new_id:
            outcome = BookingOutcome.CREATED
        else:
            outcome = BookingOutcome.REBOOKED

    count = await booked_count(db, lesson.id)
    if outcome is BookingOutcome.ALREADY_BOOKED:
        logger.info("Booking for %s on lesson %s already active", email, lesson.id)
    else:
        logger.info(
            "Booking %s for %s on lesson %s (%s), booked_count=%d",
            booking_id,
            email,
            lesson.id,
            outcome.value,
            count,
        )
    return BookingResult(
        lesson_id=lesson.id,
        booking_id=booking_id,
        email=email,
        name=student_name,
        status=BookingStatus.BOOKED,
        outcome=outcome,
        booked_count=count,
        spots_left=spots_left(lesson.capacity, count),
    )


async def unbook_lesson(db: AsyncSession, lesson_id: uuid.UUID, *, email: Any) -> BookingResult:
    """Cancel the active booking of ``email``. Raises NotFoundError("Not booked") when there is none."""
    email = normalize_email(email)
    lesson = await get_lesson(db, lesson_id)

    student_ids = (
        select(Student.id)
        .where(Student.school_id == lesson.school_id, Student.email == email)
        .scalar_subquery()
    )
    now = utc_now()
    async with atomic(db):
        result = await db.execute(
            update(Booking)
            .where(
                Booking.lesson_id == lesson.id,
                Booking.student_id == student_ids,
                Booking.status == BookingStatus.BOOKED,
            )
            .values(status=BookingStatus.CANCELLED, cancelled_at=now, updated_at=now)
            .returning(Booking.id)
            .execution_options(synchronize_session=False)
        )
        booking_id = result.scalar_one_or_none()
        if booking_id is None:
            raise NotFoundError("Not booked", code="NOT_BOOKED")

    count = await booked_count(db, lesson.id)
    logger.info(
        "Booking %s for %s on lesson %s cancelled, booked_count=%d",
        booking_id,
        email,
        lesson.id,
        count,
    )
    return BookingResult(
        lesson_id=lesson.id,
        booking_id=booking_id,
        email=email,
        name=None,
        status=BookingStatus.CANCELLED,
        outcome=BookingOutcome.CANCELLED,
        booked_count=count,
        spots_left=spots_left(lesson.capacity, count),
    )


async def list_bookings_for_lesson(
    db: AsyncSession, lesson_id: uuid.UUID
) -> list[Attendee]:
    """Attendees with an active booking, earliest booking first."""
    lesson = await get_lesson(db, lesson_id)
    result = await db.execute(
        select(Student.name, Student.email, Booking.updated_at.label("booked_at"))
        .select_from(Booking)
        .join(Student, Student.id == Booking.student_id)
        .where(Booking.lesson_id == lesson.id, Booking.status == BookingStatus.BOOKED)
        .order_by(Booking.updated_at.asc(), Student.email.asc())
    )
    return [
        Attendee(name=row.name, email=row.email, booked_at=row.booked_at)
        for row in result.all()
    ]
