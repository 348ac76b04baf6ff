import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.lessons_service.models.enums import Difficulty, enum_values
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

DEFAULT_DURATION_MIN = 90
MAX_DURATION_MIN = 24 * 60


class Lesson(Base):
    """A scheduled surf lesson. ``start_at`` is always stored in UTC."""

    __tablename__ = "lessons"
    __table_args__ = (
        CheckConstraint(
            f"duration_min > 0 AND duration_min <= {MAX_DURATION_MIN}",
            name="duration_range",
        ),
        CheckConstraint("capacity IS NULL OR capacity >= 0", name="capacity_non_negative"),
        Index("ix_lessons_school_id_start_at", "school_id", "start_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    school_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("schools.id"), nullable=False
    )

    # === Timing ===
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_min: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_DURATION_MIN,
        server_default=str(DEFAULT_DURATION_MIN),
    )

    # === Details ===
    difficulty: Mapped[Difficulty] = mapped_column(
        SAEnum(
            Difficulty,
            name="lesson_difficulty_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    place: Mapped[str] = mapped_column(Text, nullable=False)
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # === Timestamps ===
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # === Relationships ===
    coach_links = relationship("LessonCoach", back_populates="lesson")

    def __repr__(self):
        return f"<Lesson {self.difficulty.value} at {self.start_at} ({self.duration_min}m)>"


class LessonCoach(Base):
    """Junction table: coaches assigned to a lesson. Replaced wholesale on reassignment."""

    __tablename__ = "lesson_coaches"

    lesson_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("lessons.id"), primary_key=True
    )
    coach_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("coaches.id"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    lesson = relationship("Lesson", back_populates="coach_links")

    def __repr__(self):
        return f"<LessonCoach {self.coach_id} for lesson {self.lesson_id}>"
