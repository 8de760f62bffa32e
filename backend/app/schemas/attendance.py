"""Attendance schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AttendanceStatus = Literal["present", "absent", "pending"]


class AttendanceRead(BaseModel):
    id: int
    session_id: int
    student_id: int
    student_name: str
    package_type: Optional[str] = None
    requires_duration_selection: bool
    status: AttendanceStatus
    marked_at: Optional[datetime] = None
    session_duration: Optional[Decimal] = None
    package_cycle: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceStatusUpdate(BaseModel):
    status: AttendanceStatus
    session_duration: Optional[Decimal] = Field(default=None, gt=0, max_digits=4, decimal_places=2)


class BulkAttendanceUpdate(BaseModel):
    status: AttendanceStatus


class DurationOption(BaseModel):
    value: Decimal
    label: str


class AttendanceSummary(BaseModel):
    present: int
    absent: int
    pending: int
