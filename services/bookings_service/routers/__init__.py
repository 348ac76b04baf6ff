"""Bookings Service routers."""

from services.bookings_service.routers.bookings import router as bookings_router

__all__ = ["bookings_router"]
