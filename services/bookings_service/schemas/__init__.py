from services.bookings_service.schemas.main import (
    AttendeeResponse,
    BookingRequest,
    BookingResponse,
    UnbookRequest,
)

__all__ = [
    "AttendeeResponse",
    "BookingRequest",
    "BookingResponse",
    "UnbookRequest",
]
