"""Coach schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CoachBase(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None


class CoachCreate(CoachBase):
    # When given, a coach login account is created alongside the coach
    password: Optional[str] = Field(default=None, min_length=6)


class CoachUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class CoachRead(CoachBase):
    id: int
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
