"""Bookings Service models package."""

from services.bookings_service.models.core import Booking, Student
from services.bookings_service.models.enums import BookingOutcome, BookingStatus

__all__ = [
    "Booking",
    "BookingOutcome",
    "BookingStatus",
    "Student",
]
