import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.common.responses import Envelope, ok
from libs.db.session import get_async_db
from services.schools_service.schemas import CoachCreate, CoachResponse, CoachUpdate
from services.schools_service.services import school_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/coaches", tags=["coaches"])


@router.get("", response_model=Envelope[List[CoachResponse]])
async def list_coaches(
    school: Optional[str] = Query(default=None, description="School slug or id"),
    db: AsyncSession = Depends(get_async_db),
):
    """
    List a school's coaches, newest first.
    """
    coaches = await school_ops.list_coaches(db, school)
    return ok([CoachResponse.model_validate(c) for c in coaches])


@router.post(
    "", response_model=Envelope[CoachResponse], status_code=status.HTTP_201_CREATED
)
async def create_coach(coach_in: CoachCreate, db: AsyncSession = Depends(get_async_db)):
    coach = await school_ops.create_coach(
        db, school_ref=coach_in.school, name=coach_in.name, email=coach_in.email
    )
    return ok(CoachResponse.model_validate(coach))


@router.patch("/{coach_id}", response_model=Envelope[CoachResponse])
async def update_coach(
    coach_id: uuid.UUID,
    coach_in: CoachUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    coach = await school_ops.update_coach(
        db, coach_id, coach_in.model_dump(exclude_unset=True)
    )
    return ok(CoachResponse.model_validate(coach))


@router.delete("/{coach_id}", response_model=Envelope[CoachResponse])
async def delete_coach(coach_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    """
    Soft-delete a coach.
    """
    coach = await school_ops.soft_delete_coach(db, coach_id)
    return ok(CoachResponse.model_validate(coach))
