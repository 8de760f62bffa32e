from datetime import date
from decimal import Decimal

import pytest

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.package import Package, PackageKind
from backend.app.models.student import Student
from backend.app.services.packages import (
    REASON_RENEWAL_COMPLETED,
    REASON_RENEWAL_EARLY,
    REASON_RENEWAL_EXPIRED,
    renew_student_package,
    renewal_reason,
)
from backend.app.services.session_credits import next_package_cycle


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def make_student(db, **overrides):
    group = Package(name="Group", kind=PackageKind.GROUP_TRAINING.value)
    db.add(group)
    db.flush()
    values = {
        "name": "Avery",
        "email": "avery@example.com",
        "package_id": group.id,
        "sessions": Decimal("8"),
        "remaining_sessions": Decimal("3"),
        "enrollment_date": date(2030, 1, 1),
        "expiration_date": date(2030, 3, 1),
    }
    values.update(overrides)
    student = Student(**values)
    db.add(student)
    db.commit()
    return student


@pytest.mark.parametrize(
    "remaining, today, expected",
    [
        ("3", date(2030, 2, 1), REASON_RENEWAL_EARLY),
        ("0", date(2030, 2, 1), REASON_RENEWAL_COMPLETED),
        ("3", date(2030, 4, 1), REASON_RENEWAL_EXPIRED),
        ("0", date(2030, 4, 1), REASON_RENEWAL_EXPIRED),
    ],
)
def test_renewal_reason(remaining, today, expected):
    student = Student(
        sessions=Decimal("8"),
        remaining_sessions=Decimal(remaining),
        expiration_date=date(2030, 3, 1),
    )
    assert renewal_reason(student, today) == expected


def test_renewal_archives_current_package_and_resets_credits():
    db = SessionLocal()
    try:
        student = make_student(db)
        personal = Package(name="Personal", kind=PackageKind.PERSONAL_TRAINING.value)
        db.add(personal)
        db.commit()

        renew_student_package(
            db,
            student,
            package=personal,
            sessions=Decimal("12"),
            enrollment_date=date(2030, 2, 1),
            expiration_date=date(2030, 6, 1),
            today=date(2030, 2, 1),
        )

        assert student.package_id == personal.id
        assert student.sessions == Decimal("12.00")
        assert student.remaining_sessions == Decimal("12.00")
        assert len(student.package_history) == 1
        entry = student.package_history[0]
        assert entry.package_type == "Group"
        assert entry.remaining_sessions == Decimal("3.00")
        assert entry.reason == REASON_RENEWAL_EARLY
        assert next_package_cycle(db, student.id) == 2
    finally:
        db.close()


def test_first_package_is_not_archived():
    db = SessionLocal()
    try:
        student = make_student(
            db,
            package_id=None,
            sessions=None,
            remaining_sessions=Decimal("0"),
            enrollment_date=None,
            expiration_date=None,
        )
        package = db.query(Package).first()
        renew_student_package(db, student, package=package, sessions=Decimal("8"))
        assert student.package_history == []
        assert student.remaining_sessions == Decimal("8.00")
    finally:
        db.close()
