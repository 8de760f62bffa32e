"""Training session endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import ensure_session_access, get_current_staff
from backend.app.models.branch import Branch
from backend.app.models.coach import Coach
from backend.app.models.session import SessionCoach, TrainingSession
from backend.app.models.user import User
from backend.app.schemas.session import (
    ConflictCheck,
    SchedulingConflict,
    TrainingSessionCreate,
    TrainingSessionRead,
    TrainingSessionUpdate,
)
from backend.app.services.scheduling import (
    create_training_session,
    delete_training_session,
    find_scheduling_conflicts,
    update_training_session,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_session(db: Session, session_id: int) -> TrainingSession:
    session_obj = db.query(TrainingSession).filter(TrainingSession.id == session_id).first()
    if not session_obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session_obj


@router.post("/", response_model=TrainingSessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_in: TrainingSessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    if not current_user.is_admin and current_user.coach_id not in session_in.coach_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Coaches can only schedule their own sessions")
    return create_training_session(
        db,
        session_date=session_in.date,
        start_time=session_in.start_time,
        end_time=session_in.end_time,
        branch_id=session_in.branch_id,
        package_id=session_in.package_id,
        coach_ids=session_in.coach_ids,
        student_ids=session_in.student_ids,
        notes=session_in.notes,
        session_status=session_in.status,
    )


@router.get("/", response_model=list[TrainingSessionRead])
async def list_sessions(
    branch_id: int | None = None,
    coach_id: int | None = None,
    package_id: int | None = None,
    session_status: str | None = Query(default=None, alias="status"),
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    sort: str = Query(default="asc", pattern="^(asc|desc)$"),
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    query = db.query(TrainingSession)
    if not current_user.is_admin:
        coach_id = current_user.coach_id
    if coach_id is not None:
        query = query.filter(TrainingSession.coach_links.any(SessionCoach.coach_id == coach_id))
    if branch_id is not None:
        query = query.filter(TrainingSession.branch_id == branch_id)
    if package_id is not None:
        query = query.filter(TrainingSession.package_id == package_id)
    if session_status:
        query = query.filter(TrainingSession.status == session_status)
    if date_from is not None:
        query = query.filter(TrainingSession.date >= date_from)
    if date_to is not None:
        query = query.filter(TrainingSession.date <= date_to)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            TrainingSession.branch.has(Branch.name.ilike(pattern))
            | TrainingSession.coach_links.any(SessionCoach.coach.has(Coach.name.ilike(pattern)))
        )

    if sort == "desc":
        query = query.order_by(TrainingSession.date.desc(), TrainingSession.start_time.desc())
    else:
        query = query.order_by(TrainingSession.date.asc(), TrainingSession.start_time.asc())
    return query.offset(skip).limit(limit).all()


@router.post("/conflicts", response_model=list[SchedulingConflict])
async def check_conflicts(check: ConflictCheck, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return find_scheduling_conflicts(
        db,
        session_date=check.date,
        start_time=check.start_time,
        end_time=check.end_time,
        coach_ids=check.coach_ids,
        student_ids=check.student_ids,
        exclude_session_id=check.exclude_session_id,
    )


@router.get("/{session_id}", response_model=TrainingSessionRead)
async def get_session(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    return session_obj


@router.put("/{session_id}", response_model=TrainingSessionRead)
async def update_session(
    session_id: int,
    session_in: TrainingSessionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    changes = session_in.model_dump(exclude_unset=True)
    if not current_user.is_admin and changes.get("coach_ids") is not None and current_user.coach_id not in changes["coach_ids"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Coaches cannot remove themselves from a session")
    return update_training_session(db, session_obj, **changes)


@router.delete("/{session_id}")
async def delete_session(session_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    session_obj = _get_session(db, session_id)
    ensure_session_access(current_user, session_obj)
    delete_training_session(db, session_obj)
    return {"status": "deleted", "id": session_id}
