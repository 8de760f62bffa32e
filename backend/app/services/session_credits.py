"""Session-credit accounting for player attendance.

Marking a player present consumes credits from ``Student.remaining_sessions``;
reverting the mark gives back exactly what was taken. The balance change runs
in the same transaction as the attendance update, so a record and the balance
it caused are always committed together.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.models.attendance import ATTENDANCE_PRESENT, AttendanceRecord
from backend.app.models.package import Package
from backend.app.models.package_history import StudentPackageHistory
from backend.app.models.session import TrainingSession
from backend.app.models.student import Student

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_DURATION = Decimal("1.00")


def to_credits(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def effective_duration(value) -> Decimal:
    """Credits a stored duration stands for; missing or zero counts as one session."""
    duration = to_credits(value)
    if duration == ZERO:
        return DEFAULT_DURATION
    return duration


def requires_duration_selection(package: Package | None) -> bool:
    return package is not None and package.requires_duration_selection


def resolve_session_duration(package: Package | None, requested=None) -> Decimal:
    if requires_duration_selection(package):
        if requested is not None and to_credits(requested) > ZERO:
            return to_credits(requested)
        return DEFAULT_DURATION
    return DEFAULT_DURATION


def debit_credits(student: Student, amount: Decimal) -> Decimal:
    balance = to_credits(student.remaining_sessions) - amount
    if balance < ZERO:
        balance = ZERO
    student.remaining_sessions = balance
    return balance


def credit_credits(student: Student, amount: Decimal) -> Decimal:
    balance = to_credits(student.remaining_sessions) + amount
    student.remaining_sessions = balance
    return balance


def apply_balance_transition(
    student: Student,
    old_status: str | None,
    old_duration,
    new_status: str,
    new_duration,
) -> Decimal:
    """Adjust the player's balance for one attendance write and return the new balance.

    ``old_status`` is None when the record is being inserted.
    """
    was_present = old_status == ATTENDANCE_PRESENT
    is_present = new_status == ATTENDANCE_PRESENT

    if is_present and not was_present:
        debit_credits(student, effective_duration(new_duration))
    elif was_present and not is_present:
        credit_credits(student, effective_duration(old_duration))
    elif was_present and is_present and to_credits(old_duration) != to_credits(new_duration):
        # Two separate steps so the floor applies to the new debit only
        credit_credits(student, effective_duration(old_duration))
        debit_credits(student, effective_duration(new_duration))
    return to_credits(student.remaining_sessions)


def next_package_cycle(db: Session, student_id: int) -> int:
    history_count = db.query(StudentPackageHistory).filter(StudentPackageHistory.student_id == student_id).count()
    return history_count + 1


def _get_record(db: Session, record_id: int) -> AttendanceRecord:
    record = db.query(AttendanceRecord).filter(AttendanceRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")
    return record


def _lock_student(db: Session, student_id: int) -> Student:
    # Row lock serializes cycle assignment and balance updates per player
    student = db.query(Student).filter(Student.id == student_id).with_for_update().populate_existing().first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


def commit_or_raise(db: Session, action: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", action, exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Failed to {action}") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to %s", action)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}") from exc


def update_attendance_status(
    db: Session,
    record_id: int,
    new_status: str,
    session_duration=None,
    now: datetime | None = None,
) -> AttendanceRecord:
    record = _get_record(db, record_id)
    student = _lock_student(db, record.student_id)
    # Previous status and duration are read under the lock
    db.refresh(record, with_for_update=True)

    old_status = record.status
    old_duration = record.session_duration

    if new_status == ATTENDANCE_PRESENT:
        duration = resolve_session_duration(student.package, session_duration)
        record.session_duration = duration
        if record.package_cycle is None and record.student_id:
            record.package_cycle = next_package_cycle(db, record.student_id)
        record.marked_at = now or datetime.now(timezone.utc)
    else:
        record.marked_at = None

    record.status = new_status
    balance = apply_balance_transition(student, old_status, old_duration, new_status, record.session_duration)

    commit_or_raise(db, "update attendance")
    db.refresh(record)
    logger.info(
        "Attendance %s for student %s: %s -> %s, duration=%s cycle=%s remaining=%s",
        record.id,
        student.id,
        old_status,
        new_status,
        record.session_duration,
        record.package_cycle,
        balance,
    )
    return record


def release_attendance_credits(student: Student, record: AttendanceRecord) -> None:
    """Give back credits held by a present record that is about to be deleted."""
    if record.status == ATTENDANCE_PRESENT:
        credit_credits(student, effective_duration(record.session_duration))


def current_package_window(student: Student) -> tuple[date | None, date | None]:
    history = student.package_history
    if history:
        start = history[0].captured_at.date()
    else:
        start = student.enrollment_date
    return start, student.expiration_date


def counts_against_current_cycle(record: AttendanceRecord, current_cycle: int, window: tuple) -> bool:
    if record.package_cycle is not None:
        return record.package_cycle == current_cycle
    session_date = record.session.date if record.session is not None else None
    if session_date is None:
        return False
    start, end = window
    if start and session_date < start:
        return False
    if end and session_date > end:
        return False
    return True


def used_credits_in_current_cycle(db: Session, student: Student) -> Decimal:
    current_cycle = next_package_cycle(db, student.id)
    window = current_package_window(student)
    present_records = (
        db.query(AttendanceRecord)
        .join(TrainingSession, AttendanceRecord.session_id == TrainingSession.id)
        .filter(AttendanceRecord.student_id == student.id, AttendanceRecord.status == ATTENDANCE_PRESENT)
        .all()
    )
    used = ZERO
    for record in present_records:
        if counts_against_current_cycle(record, current_cycle, window):
            used += effective_duration(record.session_duration)
    return used


def package_status(total: Decimal, remaining: Decimal, expiration_date: date | None, today: date) -> str:
    used = total - remaining
    if remaining <= ZERO or used >= total:
        return "completed"
    if expiration_date and today > expiration_date:
        return "expired"
    return "ongoing"


def get_package_usage(db: Session, student: Student, today: date | None = None) -> dict:
    today = today or date.today()
    total = to_credits(student.sessions)
    used = used_credits_in_current_cycle(db, student)
    remaining = total - used
    if remaining < ZERO:
        remaining = ZERO
    progress = ZERO
    if total > ZERO:
        progress = (used / total * Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        "student_id": student.id,
        "current_cycle": next_package_cycle(db, student.id),
        "total": total,
        "used": used,
        "remaining": remaining,
        "progress_percentage": progress,
        "status": package_status(total, remaining, student.expiration_date, today),
    }


def recalculate_remaining_sessions(db: Session, student: Student) -> Decimal:
    """Rebuild the stored balance from the current cycle's present records."""
    used = used_credits_in_current_cycle(db, student)
    balance = to_credits(student.sessions) - used
    if balance < ZERO:
        balance = ZERO
    student.remaining_sessions = balance
    commit_or_raise(db, "recalculate remaining sessions")
    db.refresh(student)
    logger.info("Recalculated remaining sessions for student %s: %s", student.id, balance)
    return to_credits(student.remaining_sessions)


DURATION_STEP = Decimal("0.50")
MAX_SELECTABLE_DURATION = Decimal("6.00")


def format_duration(hours: Decimal) -> str:
    """Human label for a duration in hours, e.g. ``1 hr 30 mins``."""
    total_minutes = int(to_credits(hours) * 60)
    whole_hours, minutes = divmod(total_minutes, 60)
    parts = []
    if whole_hours:
        parts.append(f"{whole_hours} hr" if whole_hours == 1 else f"{whole_hours} hrs")
    if minutes:
        parts.append(f"{minutes} mins")
    return " ".join(parts) or "0 mins"


def duration_options() -> list[dict]:
    options = []
    value = DURATION_STEP
    while value <= MAX_SELECTABLE_DURATION:
        options.append({"value": value, "label": format_duration(value)})
        value += DURATION_STEP
    return options
