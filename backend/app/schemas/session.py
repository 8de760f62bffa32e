"""Training session schemas."""

import datetime as dt
from datetime import datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrainingSessionBase(BaseModel):
    date: dt.date
    start_time: time
    end_time: time
    branch_id: int
    package_id: Optional[int] = None
    notes: Optional[str] = None


class TrainingSessionCreate(TrainingSessionBase):
    status: Literal["scheduled", "completed", "cancelled"] = "scheduled"
    coach_ids: list[int] = Field(default_factory=list)
    student_ids: list[int] = Field(default_factory=list)


class TrainingSessionUpdate(BaseModel):
    date: Optional[dt.date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    branch_id: Optional[int] = None
    package_id: Optional[int] = None
    notes: Optional[str] = None
    status: Optional[Literal["scheduled", "completed", "cancelled"]] = None
    coach_ids: Optional[list[int]] = None
    student_ids: Optional[list[int]] = None


class TrainingSessionRead(TrainingSessionBase):
    id: int
    status: str
    package_type: Optional[str] = None
    coach_ids: list[int]
    student_ids: list[int]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConflictCheck(BaseModel):
    date: dt.date
    start_time: time
    end_time: time
    coach_ids: list[int] = Field(default_factory=list)
    student_ids: list[int] = Field(default_factory=list)
    exclude_session_id: Optional[int] = None


class SchedulingConflict(BaseModel):
    conflict_type: Literal["coach", "student"]
    conflict_details: str
