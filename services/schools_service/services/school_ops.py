"""School and coach operations: slug-scoped lookups, CRUD and soft deletes."""

import uuid
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.common.slug import is_valid_slug, slugify
from libs.db.transaction import atomic
from services.schools_service.models import Coach, School
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SCHOOL_FIELDS = ("name", "slug", "contact_email")
COACH_FIELDS = ("name", "email")


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return ``value`` as a UUID, or None when it is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# School resolution
# ---------------------------------------------------------------------------


async def find_school(db: AsyncSession, ref: Optional[str]) -> Optional[School]:
    """Find a visible school by slug, falling back to id.

    Soft-deleted schools never resolve.
    """
    ref = (str(ref) if ref is not None else "").strip()
    if not ref:
        return None

    result = await db.execute(
        select(School).where(School.slug == ref, School.deleted_at.is_(None))
    )
    school = result.scalar_one_or_none()
    if school:
        return school

    school_id = parse_uuid(ref)
    if school_id is None:
        return None
    result = await db.execute(
        select(School).where(School.id == school_id, School.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def resolve_school(db: AsyncSession, ref: Optional[str]) -> School:
    """Like find_school but raises: ValidationError when ``ref`` is blank, NotFoundError when unknown."""
    if ref is None or not str(ref).strip():
        raise ValidationError("Missing school (slug or id)", details={"field": "school"})
    school = await find_school(db, ref)
    if not school:
        raise NotFoundError("School not found")
    return school


# ---------------------------------------------------------------------------
# Schools
# ---------------------------------------------------------------------------


async def list_schools(db: AsyncSession, *, limit: int = 100) -> list[School]:
    result = await db.execute(
        select(School)
        .where(School.deleted_at.is_(None))
        .order_by(School.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_school(
    db: AsyncSession, *, name: str, contact_email: Optional[str] = None
) -> School:
    """Create a school; the slug is derived from the name.

    A slug already in use (even by a soft-deleted school) is a ConflictError.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required", details={"field": "name"})
    slug = slugify(name)
    if not slug:
        raise ValidationError(
            "Name must contain at least one letter or digit", details={"field": "name"}
        )

    school = School(name=name, slug=slug, contact_email=contact_email)
    async with atomic(db, conflict_message="Slug already exists.", conflict_code="SLUG_TAKEN"):
        db.add(school)
        await db.flush()
    await db.refresh(school)

    logger.info("Created school %s (%s)", school.slug, school.id)
    return school


async def update_school(db: AsyncSession, ref: str, changes: dict[str, Any]) -> School:
    """Apply a partial update. Renaming keeps the slug unless one is given explicitly."""
    changes = {k: v for k, v in changes.items() if k in SCHOOL_FIELDS}
    if not changes:
        raise ValidationError("No updates provided.")

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Name is required", details={"field": "name"})
        changes["name"] = name
    if "slug" in changes:
        slug = (changes["slug"] or "").strip()
        if not is_valid_slug(slug):
            raise ValidationError(
                "Invalid slug (lowercase letters, digits and single dashes)",
                details={"field": "slug", "value": changes["slug"]},
            )
        changes["slug"] = slug

    school = await resolve_school(db, ref)
    async with atomic(db, conflict_message="Slug already exists.", conflict_code="SLUG_TAKEN"):
        for field, value in changes.items():
            setattr(school, field, value)
        school.updated_at = utc_now()
        await db.flush()
    await db.refresh(school)
    return school


async def soft_delete_school(db: AsyncSession, ref: str) -> School:
    """Mark a school deleted. Its coaches and lessons become invisible with it."""
    school = await resolve_school(db, ref)
    async with atomic(db):
        school.deleted_at = utc_now()
    logger.info("Soft-deleted school %s (%s)", school.slug, school.id)
    return school


# ---------------------------------------------------------------------------
# Coaches
# ---------------------------------------------------------------------------


async def list_coaches(db: AsyncSession, school_ref: str) -> list[Coach]:
    school = await resolve_school(db, school_ref)
    result = await db.execute(
        select(Coach)
        .where(Coach.school_id == school.id, Coach.deleted_at.is_(None))
        .order_by(Coach.created_at.desc())
    )
    return list(result.scalars().all())


async def create_coach(
    db: AsyncSession, *, school_ref: str, name: str, email: Optional[str] = None
) -> Coach:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Missing name", details={"field": "name"})

    school = await resolve_school(db, school_ref)
    coach = Coach(school_id=school.id, name=name, email=email or None)
    async with atomic(db):
        db.add(coach)
        await db.flush()
    await db.refresh(coach)

    logger.info("Created coach %s for school %s", coach.id, school.slug)
    return coach


async def get_coach(db: AsyncSession, coach_id: uuid.UUID) -> Coach:
    """Fetch a visible coach (coach and school both not deleted)."""
    result = await db.execute(
        select(Coach)
        .join(School, School.id == Coach.school_id)
        .where(
            Coach.id == coach_id,
            Coach.deleted_at.is_(None),
            School.deleted_at.is_(None),
        )
    )
    coach = result.scalar_one_or_none()
    if not coach:
        raise NotFoundError("Coach not found")
    return coach


async def update_coach(db: AsyncSession, coach_id: uuid.UUID, changes: dict[str, Any]) -> Coach:
    changes = {k: v for k, v in changes.items() if k in COACH_FIELDS}
    if not changes:
        raise ValidationError("No updates provided.")
    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("Missing name", details={"field": "name"})

    coach = await get_coach(db, coach_id)
    async with atomic(db):
        for field, value in changes.items():
            setattr(coach, field, value)
        coach.updated_at = utc_now()
        await db.flush()
    await db.refresh(coach)
    return coach


async def soft_delete_coach(db: AsyncSession, coach_id: uuid.UUID) -> Coach:
    """Mark a coach deleted. Lesson coach lists stop showing them; links are kept."""
    coach = await get_coach(db, coach_id)
    async with atomic(db):
        coach.deleted_at = utc_now()
    logger.info("Soft-deleted coach %s", coach.id)
    return coach
