"""Dashboard counters for admins and coaches."""

from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.models.attendance import ATTENDANCE_ABSENT, ATTENDANCE_PENDING, ATTENDANCE_PRESENT, AttendanceRecord
from backend.app.models.branch import Branch
from backend.app.models.coach import Coach
from backend.app.models.session import (
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    SESSION_SCHEDULED,
    SessionCoach,
    SessionParticipant,
    TrainingSession,
)
from backend.app.models.student import Student


def _session_query(db: Session, coach_id: int | None):
    query = db.query(TrainingSession)
    if coach_id is not None:
        query = query.filter(TrainingSession.coach_links.any(SessionCoach.coach_id == coach_id))
    return query


def get_dashboard_stats(db: Session, *, today: date, coach_id: int | None = None) -> dict:
    """
    Counts shown on the dashboard. When ``coach_id`` is given every figure is
    limited to sessions that coach is assigned to, and player counts to the
    players taking part in them.
    """
    sessions = _session_query(db, coach_id)
    session_ids = [row.id for row in sessions.with_entities(TrainingSession.id).all()]

    status_counts = dict(
        sessions.with_entities(TrainingSession.status, func.count(TrainingSession.id))
        .group_by(TrainingSession.status)
        .all()
    )

    attendance = db.query(AttendanceRecord.status, func.count(AttendanceRecord.id))
    if coach_id is not None:
        attendance = attendance.filter(AttendanceRecord.session_id.in_(session_ids))
    attendance_counts = dict(attendance.group_by(AttendanceRecord.status).all())

    if coach_id is not None:
        total_students = (
            db.query(func.count(func.distinct(SessionParticipant.student_id)))
            .filter(SessionParticipant.session_id.in_(session_ids))
            .scalar()
        )
        total_coaches = 1
        total_branches = (
            sessions.with_entities(func.count(func.distinct(TrainingSession.branch_id))).scalar()
        )
    else:
        total_students = db.query(Student).count()
        total_coaches = db.query(Coach).count()
        total_branches = db.query(Branch).count()

    return {
        "as_of": today,
        "total_students": total_students or 0,
        "total_coaches": total_coaches,
        "total_branches": total_branches or 0,
        "sessions": {
            "scheduled": status_counts.get(SESSION_SCHEDULED, 0),
            "completed": status_counts.get(SESSION_COMPLETED, 0),
            "cancelled": status_counts.get(SESSION_CANCELLED, 0),
        },
        "sessions_today": sessions.filter(TrainingSession.date == today).count(),
        "upcoming_sessions": sessions.filter(
            TrainingSession.date > today, TrainingSession.status == SESSION_SCHEDULED
        ).count(),
        "present_count": attendance_counts.get(ATTENDANCE_PRESENT, 0),
        "absent_count": attendance_counts.get(ATTENDANCE_ABSENT, 0),
        "pending_count": attendance_counts.get(ATTENDANCE_PENDING, 0),
    }
