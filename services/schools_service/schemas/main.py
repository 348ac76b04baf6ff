import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SchoolCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_email: Optional[EmailStr] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class SchoolUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    contact_email: Optional[EmailStr] = None


class SchoolResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    contact_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SchoolDeleted(BaseModel):
    id: uuid.UUID
    deleted: bool = True


class CoachCreate(BaseModel):
    school: str = Field(..., min_length=1, description="School slug or id")
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None


class CoachUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None


class CoachResponse(BaseModel):
    id: uuid.UUID
    school_id: uuid.UUID
    name: str
    email: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
