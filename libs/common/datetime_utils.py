"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from libs.common.errors import ValidationError


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: Union[datetime, str, None], *, field: str = "start_at") -> datetime:
    """Coerce an ISO-8601 string or datetime into an aware UTC datetime.

    Naive values are taken to be UTC already. Anything that is not a valid
    instant raises ValidationError.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Missing {field} (ISO 8601 timestamp)", details={"field": field})

    if isinstance(value, str):
        raw = value.strip()
        # fromisoformat() only accepts a trailing "Z" from 3.11 on
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(
                f"Invalid {field} (must be an ISO 8601 timestamp)",
                details={"field": field, "value": value},
            ) from None

    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid {field}", details={"field": field})

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        raise ValidationError(
            f"{field} out of range", details={"field": field, "value": value.isoformat()}
        ) from None


def start_of_day_utc(day: date) -> datetime:
    """Midnight UTC at the start of ``day``."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def start_of_next_day_utc(day: date) -> Optional[datetime]:
    """Midnight UTC at the start of the day after ``day`` (exclusive upper bound).

    None for the last representable date: there is no later bound.
    """
    if day == date.max:
        return None
    return start_of_day_utc(day + timedelta(days=1))
