"""Student (player) schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class StudentBase(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    branch_id: Optional[int] = None
    package_id: Optional[int] = None
    enrollment_date: Optional[date] = None
    expiration_date: Optional[date] = None
    total_training_fee: Optional[Decimal] = Field(default=None, ge=0)
    downpayment: Optional[Decimal] = Field(default=None, ge=0)


class StudentCreate(StudentBase):
    sessions: Optional[Decimal] = Field(default=None, ge=0)


class StudentUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    branch_id: Optional[int] = None
    package_id: Optional[int] = None
    enrollment_date: Optional[date] = None
    expiration_date: Optional[date] = None
    total_training_fee: Optional[Decimal] = Field(default=None, ge=0)
    downpayment: Optional[Decimal] = Field(default=None, ge=0)


class StudentRead(StudentBase):
    id: int
    package_type: Optional[str] = None
    sessions: Optional[Decimal] = None
    remaining_sessions: Decimal
    remaining_balance: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PackageRenewal(BaseModel):
    package_id: int
    sessions: Decimal = Field(gt=0)
    enrollment_date: Optional[date] = None
    expiration_date: Optional[date] = None


class PackageHistoryRead(BaseModel):
    id: int
    student_id: int
    package_type: Optional[str] = None
    sessions: Optional[Decimal] = None
    remaining_sessions: Optional[Decimal] = None
    enrollment_date: Optional[date] = None
    expiration_date: Optional[date] = None
    captured_at: datetime
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PackageUsage(BaseModel):
    student_id: int
    current_cycle: int
    total: Decimal
    used: Decimal
    remaining: Decimal
    progress_percentage: Decimal
    status: Literal["completed", "expired", "ongoing"]
