import logging
import os

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.models.user import ROLE_ADMIN, User

logger = logging.getLogger(__name__)

DEFAULT_DEV_ADMIN_EMAIL = "admin@example.com"
DEFAULT_DEV_PASSWORD = "Secret123!"


def ensure_default_dev_admin(db: Session) -> None:
    """
    Create a default admin account for local development if no admin exists.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return
    if db.query(User).filter(User.role == ROLE_ADMIN).first():
        return

    db.add(
        User(
            email=DEFAULT_DEV_ADMIN_EMAIL,
            full_name="Administrator",
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            role=ROLE_ADMIN,
            is_active=True,
        )
    )
    db.commit()
    logger.warning("Created default development admin %s", DEFAULT_DEV_ADMIN_EMAIL)
