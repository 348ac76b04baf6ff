"""Lesson capacity arithmetic."""

from typing import Optional


def spots_left(capacity: Optional[int], booked_count: int) -> Optional[int]:
    """Seats still free, never negative. None when the lesson has no capacity set."""
    if capacity is None:
        return None
    return max(0, capacity - booked_count)


def is_full(capacity: Optional[int], booked_count: int) -> bool:
    left = spots_left(capacity, booked_count)
    return left is not None and left == 0
