"""Dashboard schemas."""

from datetime import date

from pydantic import BaseModel


class SessionStatusCounts(BaseModel):
    scheduled: int
    completed: int
    cancelled: int


class DashboardStats(BaseModel):
    as_of: date
    total_students: int
    total_coaches: int
    total_branches: int
    sessions: SessionStatusCounts
    sessions_today: int
    upcoming_sessions: int
    present_count: int
    absent_count: int
    pending_count: int
