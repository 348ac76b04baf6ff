"""Enum definitions for bookings service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class BookingStatus(str, enum.Enum):
    BOOKED = "booked"
    CANCELLED = "cancelled"


class BookingOutcome(str, enum.Enum):
    """What a book/unbook call did. Not persisted."""

    CREATED = "created"
    REBOOKED = "rebooked"
    ALREADY_BOOKED = "already_booked"
    CANCELLED = "cancelled"
