"""Dashboard overview endpoints."""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_staff
from backend.app.models.user import User
from backend.app.schemas.dashboard import DashboardStats
from backend.app.services.dashboard_service import get_dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    coach_id = None if current_user.is_admin else current_user.coach_id
    return get_dashboard_stats(db, today=date.today(), coach_id=coach_id)
