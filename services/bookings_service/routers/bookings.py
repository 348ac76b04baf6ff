import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from libs.common.rate_limit import booking_limit
from libs.common.responses import Envelope, ok
from libs.db.session import get_async_db
from services.bookings_service.schemas import (
    AttendeeResponse,
    BookingRequest,
    BookingResponse,
    UnbookRequest,
)
from services.bookings_service.services import booking_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/lessons", tags=["bookings"])


@router.post("/{lesson_id}/book", response_model=Envelope[BookingResponse])
@booking_limit
async def book_lesson(
    request: Request,
    lesson_id: uuid.UUID,
    booking_in: BookingRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Book a seat. Booking again while already booked changes nothing.
    """
    result = await booking_ops.book_lesson(
        db, lesson_id, email=booking_in.email, name=booking_in.name
    )
    return ok(BookingResponse.model_validate(result))


@router.delete("/{lesson_id}/book", response_model=Envelope[BookingResponse])
@booking_limit
async def unbook_lesson(
    request: Request,
    lesson_id: uuid.UUID,
    unbook_in: Optional[UnbookRequest] = Body(default=None),
    email: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Cancel a booking. The email comes from the body, or ``?email=`` for
    clients that cannot send a DELETE body. 404 when not booked.
    """
    if unbook_in is not None and unbook_in.email:
        email = unbook_in.email
    result = await booking_ops.unbook_lesson(db, lesson_id, email=email)
    return ok(BookingResponse.model_validate(result))


@router.get("/{lesson_id}/bookings", response_model=Envelope[List[AttendeeResponse]])
async def list_lesson_bookings(
    lesson_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)
):
    attendees = await booking_ops.list_bookings_for_lesson(db, lesson_id)
    return ok([AttendeeResponse.model_validate(a) for a in attendees])
