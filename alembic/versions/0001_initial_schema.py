"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-08-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

difficulty_enum = postgresql.ENUM(
    'Beginner', 'Intermediate', 'Advanced',
    name='lesson_difficulty_enum', create_type=False,
)
booking_status_enum = postgresql.ENUM(
    'booked', 'cancelled', name='booking_status_enum', create_type=False,
)


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema - schools, coaches, lessons, students and bookings."""
    bind = op.get_bind()
    difficulty_enum.create(bind, checkfirst=True)
    booking_status_enum.create(bind, checkfirst=True)

    op.create_table(
        'schools',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('contact_email', sa.String(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_schools'),
        sa.UniqueConstraint('slug', name='uq_schools_slug'),
    )

    op.create_table(
        'coaches',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('school_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['school_id'], ['schools.id'], name='fk_coaches_school_id_schools'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_coaches'),
    )
    op.create_index('ix_coaches_school_id', 'coaches', ['school_id'])

    op.create_table(
        'lessons',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('school_id', UUID(as_uuid=True), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_min', sa.Integer(), server_default='90', nullable=False),
        sa.Column('difficulty', difficulty_enum, nullable=False),
        sa.Column('place', sa.Text(), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'duration_min > 0 AND duration_min <= 1440',
            name='ck_lessons_duration_range',
        ),
        sa.CheckConstraint(
            'capacity IS NULL OR capacity >= 0',
            name='ck_lessons_capacity_non_negative',
        ),
        sa.ForeignKeyConstraint(
            ['school_id'], ['schools.id'], name='fk_lessons_school_id_schools'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_lessons'),
    )
    op.create_index(
        'ix_lessons_school_id_start_at', 'lessons', ['school_id', 'start_at']
    )

    op.create_table(
        'lesson_coaches',
        sa.Column('lesson_id', UUID(as_uuid=True), nullable=False),
        sa.Column('coach_id', UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['lesson_id'], ['lessons.id'], name='fk_lesson_coaches_lesson_id_lessons'
        ),
        sa.ForeignKeyConstraint(
            ['coach_id'], ['coaches.id'], name='fk_lesson_coaches_coach_id_coaches'
        ),
        sa.PrimaryKeyConstraint('lesson_id', 'coach_id', name='pk_lesson_coaches'),
    )
    op.create_index('ix_lesson_coaches_coach_id', 'lesson_coaches', ['coach_id'])

    op.create_table(
        'students',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('school_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['school_id'], ['schools.id'], name='fk_students_school_id_schools'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_students'),
        sa.UniqueConstraint('school_id', 'email', name='uq_students_school_email'),
    )
    op.create_index('ix_students_school_id', 'students', ['school_id'])

    op.create_table(
        'bookings',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('lesson_id', UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', UUID(as_uuid=True), nullable=False),
        sa.Column('status', booking_status_enum, server_default='booked', nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['lesson_id'], ['lessons.id'], name='fk_bookings_lesson_id_lessons'
        ),
        sa.ForeignKeyConstraint(
            ['student_id'], ['students.id'], name='fk_bookings_student_id_students'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_bookings'),
        sa.UniqueConstraint('lesson_id', 'student_id', name='uq_bookings_lesson_student'),
    )
    op.create_index('ix_bookings_lesson_id', 'bookings', ['lesson_id'])
    op.create_index('ix_bookings_student_id', 'bookings', ['student_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_bookings_student_id', table_name='bookings')
    op.drop_index('ix_bookings_lesson_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_students_school_id', table_name='students')
    op.drop_table('students')
    op.drop_index('ix_lesson_coaches_coach_id', table_name='lesson_coaches')
    op.drop_table('lesson_coaches')
    op.drop_index('ix_lessons_school_id_start_at', table_name='lessons')
    op.drop_table('lessons')
    op.drop_index('ix_coaches_school_id', table_name='coaches')
    op.drop_table('coaches')
    op.drop_table('schools')

    bind = op.get_bind()
    booking_status_enum.drop(bind, checkfirst=True)
    difficulty_enum.drop(bind, checkfirst=True)
