"""Player attendance endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import ensure_session_access, get_current_staff
from backend.app.models.attendance import ATTENDANCE_PRESENT, AttendanceRecord
from backend.app.models.session import TrainingSession
from backend.app.models.user import User
from backend.app.schemas.attendance import (
    AttendanceRead,
    AttendanceStatusUpdate,
    AttendanceSummary,
    BulkAttendanceUpdate,
    DurationOption,
)
from backend.app.services.session_credits import (
    duration_options,
    requires_duration_selection,
    update_attendance_status,
)

router = APIRouter(prefix="/attendance", tags=["attendance"])


def _serialize_record(record: AttendanceRecord) -> dict:
    student = record.student
    package = student.package if student is not None else None
    return {
        "id": record.id,
        "session_id": record.session_id,
        "student_id": record.student_id,
        "student_name": student.name if student is not None else "",
        "package_type": package.name if package is not None else None,
        "requires_duration_selection": requires_duration_selection(package),
        "status": record.status,
        "marked_at": record.marked_at,
        "session_duration": record.session_duration,
        "package_cycle": record.package_cycle,
    }


def _get_session(db: Session, session_id: int) -> TrainingSession:
    session_obj = db.query(TrainingSession).filter(TrainingSession.id == session_id).first()
    if not session_obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session_obj


@router.get("/duration-options", response_model=list[DurationOption])
async def list_duration_options(current_user: User = Depends(get_current_staff)):
    return duration_options()


@router.get("/sessions/{session_id}", response_model=list[AttendanceRead])
async def list_session_attendance(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    records = sorted(session_obj.attendance_records, key=lambda r: r.student.name if r.student else "")
    return [_serialize_record(record) for record in records]


@router.get("/sessions/{session_id}/summary", response_model=AttendanceSummary)
async def session_attendance_summary(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    summary = {"present": 0, "absent": 0, "pending": 0}
    for record in session_obj.attendance_records:
        summary[record.status] = summary.get(record.status, 0) + 1
    return summary


@router.patch("/{record_id}", response_model=AttendanceRead)
async def update_attendance(
    record_id: int,
    payload: AttendanceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    record = db.query(AttendanceRecord).filter(AttendanceRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")
    ensure_session_access(current_user, record.session)

    package = record.student.package if record.student is not None else None
    if payload.status == ATTENDANCE_PRESENT and requires_duration_selection(package) and payload.session_duration is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session duration is required for personal training",
        )

    record = update_attendance_status(db, record_id, payload.status, session_duration=payload.session_duration)
    return _serialize_record(record)


@router.post("/sessions/{session_id}/mark-all", response_model=list[AttendanceRead])
async def mark_all_attendance(
    session_id: int,
    payload: BulkAttendanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    record_ids = [record.id for record in session_obj.attendance_records if record.status != payload.status]
    for record_id in record_ids:
        update_attendance_status(db, record_id, payload.status)
    db.refresh(session_obj)
    return [_serialize_record(record) for record in session_obj.attendance_records]
