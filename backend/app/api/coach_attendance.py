"""Coach time-in/time-out and coach attendance endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.dependencies.auth import ensure_session_access, get_current_staff
from backend.app.models.session import TrainingSession
from backend.app.models.user import User
from backend.app.schemas.coach_attendance import CoachAttendanceRead, CoachTimeRead, CoachTimeUpdate, GracePeriodResult
from backend.app.services import coach_attendance as coach_attendance_service

router = APIRouter(prefix="/coach-attendance", tags=["coach-attendance"])


def _get_session(db: Session, session_id: int) -> TrainingSession:
    session_obj = db.query(TrainingSession).filter(TrainingSession.id == session_id).first()
    if not session_obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session_obj


def _resolve_coach_id(current_user: User, coach_id: int | None) -> int:
    """Coaches always act for themselves; admins must name the coach."""
    if not current_user.is_admin:
        return current_user.coach_id
    if coach_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="coach_id is required")
    return coach_id


@router.get("/sessions/{session_id}/times", response_model=list[CoachTimeRead])
async def list_coach_times(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    return session_obj.coach_times


@router.get("/sessions/{session_id}", response_model=list[CoachAttendanceRead])
async def list_coach_attendance(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    return session_obj.coach_attendance


@router.post("/sessions/{session_id}/time-in", response_model=CoachTimeRead)
async def record_time_in(
    session_id: int,
    coach_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    return coach_attendance_service.time_in(
        db,
        session_obj,
        _resolve_coach_id(current_user, coach_id),
        user_type=current_user.role,
    )


@router.post("/sessions/{session_id}/time-out", response_model=CoachTimeRead)
async def record_time_out(
    session_id: int,
    coach_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    return coach_attendance_service.time_out(
        db,
        session_obj,
        _resolve_coach_id(current_user, coach_id),
        user_type=current_user.role,
    )


@router.put("/sessions/{session_id}/coaches/{coach_id}/time", response_model=CoachTimeRead)
async def edit_coach_time(
    session_id: int,
    coach_id: int,
    payload: CoachTimeUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    session_obj = _get_session(db, session_id)
    return coach_attendance_service.update_coach_time(
        db, session_obj, coach_id, changes=payload.model_dump(exclude_unset=True)
    )


@router.post("/sessions/{session_id}/coaches/{coach_id}/absent", response_model=CoachAttendanceRead)
async def mark_absent(
    session_id: int,
    coach_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    session_obj = _get_session(db, session_id)
    return coach_attendance_service.mark_coach_absent(db, session_obj, coach_id)


@router.post("/grace-period-check", response_model=GracePeriodResult)
async def run_grace_period_check(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return coach_attendance_service.auto_mark_absent_after_grace_period(db)
