"""Coach time-in/time-out logging and coach attendance."""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.core.time import as_naive_utc
from backend.app.models.activity_log import ActivityLog
from backend.app.models.attendance import ATTENDANCE_ABSENT, ATTENDANCE_PENDING, ATTENDANCE_PRESENT
from backend.app.models.coach_attendance import CoachAttendanceRecord, CoachSessionTime
from backend.app.models.session import SESSION_CANCELLED, SessionCoach, TrainingSession
from backend.app.services.session_credits import commit_or_raise

logger = logging.getLogger(__name__)


def _ensure_assigned(session_obj: TrainingSession, coach_id: int) -> None:
    if coach_id not in session_obj.coach_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coach is not assigned to this session")


def _get_time_entry(db: Session, session_id: int, coach_id: int) -> CoachSessionTime | None:
    return (
        db.query(CoachSessionTime)
        .filter(CoachSessionTime.session_id == session_id, CoachSessionTime.coach_id == coach_id)
        .first()
    )


def _get_attendance(db: Session, session_id: int, coach_id: int) -> CoachAttendanceRecord | None:
    return (
        db.query(CoachAttendanceRecord)
        .filter(CoachAttendanceRecord.session_id == session_id, CoachAttendanceRecord.coach_id == coach_id)
        .first()
    )


def _set_attendance(db: Session, session_id: int, coach_id: int, new_status: str, now: datetime) -> CoachAttendanceRecord:
    record = _get_attendance(db, session_id, coach_id)
    if record is None:
        record = CoachAttendanceRecord(session_id=session_id, coach_id=coach_id)
        db.add(record)
    record.status = new_status
    record.marked_at = now
    return record


def _log_activity(db: Session, *, user_id: int, user_type: str, session_id: int, activity_type: str, description: str) -> None:
    db.add(
        ActivityLog(
            user_id=user_id,
            user_type=user_type,
            session_id=session_id,
            activity_type=activity_type,
            activity_description=description,
        )
    )


def time_in(db: Session, session_obj: TrainingSession, coach_id: int, *, user_type: str, now: datetime | None = None) -> CoachSessionTime:
    _ensure_assigned(session_obj, coach_id)
    now = now or datetime.now(timezone.utc)
    entry = _get_time_entry(db, session_obj.id, coach_id)
    if entry is None:
        entry = CoachSessionTime(session_id=session_obj.id, coach_id=coach_id)
        db.add(entry)
    entry.time_in = now
    _set_attendance(db, session_obj.id, coach_id, ATTENDANCE_PRESENT, now)
    _log_activity(
        db,
        user_id=coach_id,
        user_type=user_type,
        session_id=session_obj.id,
        activity_type="time_in",
        description=f"Coach timed in at {now:%B %d, %Y %I:%M %p}",
    )
    commit_or_raise(db, "record time in")
    db.refresh(entry)
    logger.info("Coach %s timed in for session %s", coach_id, session_obj.id)
    return entry


def time_out(db: Session, session_obj: TrainingSession, coach_id: int, *, user_type: str, now: datetime | None = None) -> CoachSessionTime:
    _ensure_assigned(session_obj, coach_id)
    entry = _get_time_entry(db, session_obj.id, coach_id)
    if entry is None or entry.time_in is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coach has not timed in for this session")
    now = now or datetime.now(timezone.utc)
    entry.time_out = now
    _log_activity(
        db,
        user_id=coach_id,
        user_type=user_type,
        session_id=session_obj.id,
        activity_type="time_out",
        description=f"Coach timed out at {now:%B %d, %Y %I:%M %p}",
    )
    commit_or_raise(db, "record time out")
    db.refresh(entry)
    logger.info("Coach %s timed out for session %s", coach_id, session_obj.id)
    return entry


def update_coach_time(
    db: Session,
    session_obj: TrainingSession,
    coach_id: int,
    *,
    changes: dict,
) -> CoachSessionTime:
    _ensure_assigned(session_obj, coach_id)
    entry = _get_time_entry(db, session_obj.id, coach_id)
    if entry is None:
        entry = CoachSessionTime(session_id=session_obj.id, coach_id=coach_id)
        db.add(entry)
    if "time_in" in changes:
        entry.time_in = changes["time_in"]
    if "time_out" in changes:
        entry.time_out = changes["time_out"]
    commit_or_raise(db, "update coach time")
    db.refresh(entry)
    return entry


def mark_coach_absent(db: Session, session_obj: TrainingSession, coach_id: int, now: datetime | None = None) -> CoachAttendanceRecord:
    _ensure_assigned(session_obj, coach_id)
    record = _set_attendance(db, session_obj.id, coach_id, ATTENDANCE_ABSENT, now or datetime.now(timezone.utc))
    commit_or_raise(db, "mark coach absent")
    db.refresh(record)
    logger.info("Coach %s marked absent for session %s", coach_id, session_obj.id)
    return record


def auto_mark_absent_after_grace_period(db: Session, now: datetime | None = None) -> dict:
    """Mark assigned coaches absent once a session has run past the grace period without them."""
    now = now or datetime.now(timezone.utc)
    naive_now = as_naive_utc(now)
    grace = timedelta(minutes=get_settings().coach_grace_period_minutes)

    candidates = (
        db.query(TrainingSession, SessionCoach.coach_id)
        .join(SessionCoach, SessionCoach.session_id == TrainingSession.id)
        .filter(TrainingSession.status != SESSION_CANCELLED, TrainingSession.date <= naive_now.date())
        .all()
    )

    checked = 0
    marked = 0
    for session_obj, coach_id in candidates:
        started_at = datetime.combine(session_obj.date, session_obj.start_time)
        if started_at > naive_now:
            continue
        checked += 1
        if naive_now <= started_at + grace:
            continue
        record = _get_attendance(db, session_obj.id, coach_id)
        if record is not None and record.status != ATTENDANCE_PENDING:
            continue
        entry = _get_time_entry(db, session_obj.id, coach_id)
        if entry is not None and entry.time_in is not None:
            continue
        _set_attendance(db, session_obj.id, coach_id, ATTENDANCE_ABSENT, now)
        marked += 1

    commit_or_raise(db, "auto-mark coach attendance")
    logger.info("Grace period check: %d session/coach pairs checked, %d marked absent", checked, marked)
    return {"marked_absent_count": marked, "sessions_checked": checked}
