"""Role checks shared by the routers."""

from fastapi import Depends, HTTPException, status

from backend.app.core.security import get_current_user
from backend.app.models.session import TrainingSession
from backend.app.models.user import ROLE_ADMIN, ROLE_COACH, User


def get_current_staff(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency for endpoints open to both admins and coaches. Coach users must
    be linked to a coach profile.
    """
    if current_user.role not in (ROLE_ADMIN, ROLE_COACH):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff access required")
    if current_user.role == ROLE_COACH and current_user.coach is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No coach profile linked to this account")
    return current_user


def ensure_session_access(user: User, session_obj: TrainingSession) -> None:
    if user.is_admin:
        return
    if user.coach_id not in session_obj.coach_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not assigned to this session")
