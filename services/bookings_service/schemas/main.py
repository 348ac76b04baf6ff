import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.bookings_service.models import BookingOutcome, BookingStatus


class BookingRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=200)


class UnbookRequest(BaseModel):
    email: Optional[str] = None


class BookingResponse(BaseModel):
    lesson_id: uuid.UUID
    booking_id: uuid.UUID
    email: str
    name: Optional[str] = None
    status: BookingStatus
    outcome: BookingOutcome
    booked_count: int
    spots_left: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class AttendeeResponse(BaseModel):
    name: Optional[str] = None
    email: str
    booked_at: datetime

    model_config = ConfigDict(from_attributes=True)
