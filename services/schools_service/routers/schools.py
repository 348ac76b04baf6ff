from typing import List

from fastapi import APIRouter, Depends, status
from libs.common.config import get_settings
from libs.common.responses import Envelope, ok
from libs.db.session import get_async_db
from services.schools_service.schemas import (
    SchoolCreate,
    SchoolDeleted,
    SchoolResponse,
    SchoolUpdate,
)
from services.schools_service.services import school_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/schools", tags=["schools"])


@router.get("", response_model=Envelope[List[SchoolResponse]])
async def list_schools(db: AsyncSession = Depends(get_async_db)):
    """
    List schools that are not deleted, newest first.
    """
    schools = await school_ops.list_schools(db, limit=get_settings().SCHOOL_LIST_LIMIT)
    return ok([SchoolResponse.model_validate(s) for s in schools])


@router.post(
    "", response_model=Envelope[SchoolResponse], status_code=status.HTTP_201_CREATED
)
async def create_school(
    school_in: SchoolCreate,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create a school. The slug is derived from the name.
    """
    school = await school_ops.create_school(
        db, name=school_in.name, contact_email=school_in.contact_email
    )
    return ok(SchoolResponse.model_validate(school))


@router.get("/{school_ref}", response_model=Envelope[SchoolResponse])
async def get_school(school_ref: str, db: AsyncSession = Depends(get_async_db)):
    """
    Get a school by slug or id.
    """
    school = await school_ops.resolve_school(db, school_ref)
    return ok(SchoolResponse.model_validate(school))


@router.patch("/{school_ref}", response_model=Envelope[SchoolResponse])
async def update_school(
    school_ref: str,
    school_in: SchoolUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    school = await school_ops.update_school(
        db, school_ref, school_in.model_dump(exclude_unset=True)
    )
    return ok(SchoolResponse.model_validate(school))


@router.delete("/{school_ref}", response_model=Envelope[SchoolDeleted])
async def delete_school(school_ref: str, db: AsyncSession = Depends(get_async_db)):
    """
    Soft-delete a school.
    """
    school = await school_ops.soft_delete_school(db, school_ref)
    return ok(SchoolDeleted(id=school.id))
