from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CoachTimeRead(BaseModel):
    id: int
    session_id: int
    coach_id: int
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CoachTimeUpdate(BaseModel):
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None


class CoachAttendanceRead(BaseModel):
    id: int
    session_id: int
    coach_id: int
    status: str
    marked_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GracePeriodResult(BaseModel):
    marked_absent_count: int
    sessions_checked: int
