"""Coach endpoints, including coach login accounts."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin, get_password_hash
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_staff
from backend.app.models.coach import Coach
from backend.app.models.user import ROLE_COACH, User
from backend.app.schemas.coach import CoachCreate, CoachRead, CoachUpdate
from backend.app.services.session_credits import commit_or_raise

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coaches", tags=["coaches"])


def _get_coach(db: Session, coach_id: int) -> Coach:
    coach = db.query(Coach).filter(Coach.id == coach_id).first()
    if not coach:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coach not found")
    return coach


@router.post("/", response_model=CoachRead, status_code=status.HTTP_201_CREATED)
async def create_coach(coach_in: CoachCreate, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    if db.query(Coach).filter(Coach.email == coach_in.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coach email already registered")
    coach = Coach(name=coach_in.name, email=coach_in.email, phone=coach_in.phone)
    if coach_in.password:
        if db.query(User).filter(User.email == coach_in.email).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
        coach.user = User(
            email=coach_in.email,
            full_name=coach_in.name,
            hashed_password=get_password_hash(coach_in.password),
            role=ROLE_COACH,
        )
    db.add(coach)
    commit_or_raise(db, "create coach")
    db.refresh(coach)
    logger.info("Created coach %s (login account: %s)", coach.id, coach.user_id is not None)
    return coach


@router.get("/", response_model=list[CoachRead])
async def list_coaches(
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    query = db.query(Coach)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(Coach.name.ilike(pattern) | Coach.email.ilike(pattern))
    return query.order_by(Coach.name.asc()).offset(skip).limit(limit).all()


@router.get("/{coach_id}", response_model=CoachRead)
async def get_coach(coach_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return _get_coach(db, coach_id)


@router.put("/{coach_id}", response_model=CoachRead)
async def update_coach(
    coach_id: int,
    coach_in: CoachUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    coach = _get_coach(db, coach_id)
    for field, value in coach_in.model_dump(exclude_unset=True).items():
        setattr(coach, field, value)
    commit_or_raise(db, "update coach")
    db.refresh(coach)
    return coach


@router.delete("/{coach_id}")
async def delete_coach(coach_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    coach = _get_coach(db, coach_id)
    if coach.user is not None:
        coach.user.is_active = False
    db.delete(coach)
    commit_or_raise(db, "delete coach")
    return {"status": "deleted", "id": coach_id}
