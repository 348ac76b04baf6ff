"""Lesson overlap detection.

Lessons occupy half-open windows ``[start_at, start_at + duration)``. Two
windows overlap iff each starts before the other ends, so back-to-back lessons
(one ending exactly when the next starts) never conflict.

Everything here is pure; callers load the lessons in scope (see
``services.lessons_service.services.lesson_ops.check_conflicts``).
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional, Protocol, Union

from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc
from libs.common.errors import ValidationError
from services.lessons_service.models.core import MAX_DURATION_MIN


class ScheduledLesson(Protocol):
    id: uuid.UUID
    start_at: datetime
    duration_min: int


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class ConflictReport:
    start_at: datetime
    end_at: datetime
    conflicting_lesson_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_lesson_ids)


def validate_duration(duration_min: Optional[int]) -> int:
    """Return the duration in minutes; None means DEFAULT_LESSON_DURATION_MIN."""
    if duration_min is None:
        duration_min = get_settings().DEFAULT_LESSON_DURATION_MIN
    if isinstance(duration_min, bool) or not isinstance(duration_min, int):
        raise ValidationError("duration_min must be an integer", details={"field": "duration_min"})
    if duration_min <= 0 or duration_min > MAX_DURATION_MIN:
        raise ValidationError(
            f"duration_min must be between 1 and {MAX_DURATION_MIN}",
            details={"field": "duration_min", "value": duration_min},
        )
    return duration_min


def lesson_window(
    start_at: Union[datetime, str, None], duration_min: Optional[int] = None
) -> TimeWindow:
    start = ensure_utc(start_at, field="start_at")
    minutes = validate_duration(duration_min)
    try:
        end = start + timedelta(minutes=minutes)
    except OverflowError:
        raise ValidationError(
            "start_at out of range", details={"field": "start_at", "value": start.isoformat()}
        ) from None
    return TimeWindow(start, end)


def overlaps(
    a_start: datetime, a_duration_min: int, b_start: datetime, b_duration_min: int
) -> bool:
    return lesson_window(a_start, a_duration_min).overlaps(
        lesson_window(b_start, b_duration_min)
    )


def find_conflicts(
    start_at: Union[datetime, str, None],
    duration_min: Optional[int],
    existing: Iterable[ScheduledLesson],
    *,
    exclude_lesson_id: Optional[uuid.UUID] = None,
) -> ConflictReport:
    """Check a candidate lesson against ``existing`` (already filtered to scope).

    Conflicting ids are returned in the order of ``existing``.
    """
    candidate = lesson_window(start_at, duration_min)
    report = ConflictReport(start_at=candidate.start, end_at=candidate.end)
    for lesson in existing:
        if exclude_lesson_id is not None and lesson.id == exclude_lesson_id:
            continue
        if candidate.overlaps(lesson_window(lesson.start_at, lesson.duration_min)):
            report.conflicting_lesson_ids.append(lesson.id)
    return report
