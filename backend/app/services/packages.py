"""Package renewal: archive the current package and start a new cycle."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.core.time import utc_now
from backend.app.models.package import Package
from backend.app.models.package_history import StudentPackageHistory
from backend.app.models.student import Student
from backend.app.services.session_credits import ZERO, commit_or_raise, to_credits

logger = logging.getLogger(__name__)

REASON_RENEWAL_EXPIRED = "renewal - expired"
REASON_RENEWAL_COMPLETED = "renewal - completed"
REASON_RENEWAL_EARLY = "renewal - early"


def has_package_data(student: Student) -> bool:
    return bool(
        student.package_id is not None
        or to_credits(student.sessions) > ZERO
        or student.enrollment_date
        or student.expiration_date
    )


def renewal_reason(student: Student, today: date) -> str:
    # Expiry wins over completion when both apply
    total = to_credits(student.sessions)
    remaining = to_credits(student.remaining_sessions)
    if student.expiration_date and today > student.expiration_date:
        return REASON_RENEWAL_EXPIRED
    if remaining <= ZERO or total - remaining >= total:
        return REASON_RENEWAL_COMPLETED
    return REASON_RENEWAL_EARLY


def archive_current_package(db: Session, student: Student, today: date) -> StudentPackageHistory:
    entry = StudentPackageHistory(
        student_id=student.id,
        package_type=student.package_type,
        sessions=student.sessions,
        remaining_sessions=student.remaining_sessions,
        enrollment_date=student.enrollment_date,
        expiration_date=student.expiration_date,
        captured_at=utc_now(),
        reason=renewal_reason(student, today),
    )
    db.add(entry)
    return entry


def renew_student_package(
    db: Session,
    student: Student,
    *,
    package: Package,
    sessions: Decimal,
    enrollment_date: date | None = None,
    expiration_date: date | None = None,
    today: date | None = None,
) -> Student:
    today = today or date.today()
    archived = None
    if has_package_data(student):
        archived = archive_current_package(db, student, today)

    student.package_id = package.id
    student.sessions = to_credits(sessions)
    student.remaining_sessions = to_credits(sessions)
    student.enrollment_date = enrollment_date
    student.expiration_date = expiration_date

    commit_or_raise(db, "renew package")
    db.refresh(student)
    logger.info(
        "Renewed package for student %s: %s with %s sessions (archived: %s)",
        student.id,
        package.name,
        student.sessions,
        archived.reason if archived else "nothing",
    )
    return student
