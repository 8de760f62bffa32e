from datetime import date, time
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.attendance import AttendanceRecord
from backend.app.models.branch import Branch
from backend.app.models.package import Package, PackageKind
from backend.app.models.package_history import StudentPackageHistory
from backend.app.models.session import TrainingSession
from backend.app.models.student import Student
from backend.app.services import session_credits
from backend.app.services.session_credits import (
    apply_balance_transition,
    get_package_usage,
    recalculate_remaining_sessions,
    update_attendance_status,
)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def seed_player(db, *, kind=PackageKind.GROUP_TRAINING, sessions="10", remaining=None, records=1):
    branch = Branch(name="Main Court", address="1 Court St", city="Springfield")
    package = Package(name=f"{kind.value} package", kind=kind.value)
    db.add_all([branch, package])
    db.flush()
    student = Student(
        name="Jordan",
        email="jordan@example.com",
        branch_id=branch.id,
        package_id=package.id,
        sessions=Decimal(sessions),
        remaining_sessions=Decimal(remaining if remaining is not None else sessions),
        enrollment_date=date(2030, 1, 1),
    )
    db.add(student)
    db.flush()
    record_ids = []
    for day in range(records):
        session_obj = TrainingSession(
            date=date(2030, 1, 2 + day),
            start_time=time(9, 0),
            end_time=time(10, 0),
            branch_id=branch.id,
            package_id=package.id,
        )
        db.add(session_obj)
        db.flush()
        record = AttendanceRecord(session_id=session_obj.id, student_id=student.id)
        db.add(record)
        db.flush()
        record_ids.append(record.id)
    db.commit()
    return student, record_ids


def test_scenario_a_group_player_marked_present_uses_one_credit():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, sessions="10")
        record = update_attendance_status(db, record_id, "present")
        assert record.session_duration == Decimal("1.00")
        assert record.marked_at is not None
        assert student.remaining_sessions == Decimal("9.00")
    finally:
        db.close()


def test_scenario_b_personal_player_uses_selected_duration():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=PackageKind.PERSONAL_TRAINING, sessions="5")
        record = update_attendance_status(db, record_id, "present", session_duration=Decimal("1.5"))
        assert record.session_duration == Decimal("1.50")
        assert student.remaining_sessions == Decimal("3.50")
    finally:
        db.close()


def test_scenario_c_reverting_to_absent_restores_credits():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=PackageKind.PERSONAL_TRAINING, sessions="5")
        update_attendance_status(db, record_id, "present", session_duration=Decimal("1.5"))
        record = update_attendance_status(db, record_id, "absent")
        assert student.remaining_sessions == Decimal("5.00")
        assert record.status == "absent"
        assert record.marked_at is None
    finally:
        db.close()


def test_scenario_d_changing_duration_while_present_adjusts_by_difference():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=PackageKind.PERSONAL_TRAINING, sessions="5")
        update_attendance_status(db, record_id, "present", session_duration=Decimal("1.5"))
        record = update_attendance_status(db, record_id, "present", session_duration=Decimal("0.5"))
        assert record.session_duration == Decimal("0.50")
        assert student.remaining_sessions == Decimal("4.50")
    finally:
        db.close()


def test_scenario_e_balance_is_clamped_at_zero():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=PackageKind.PERSONAL_TRAINING, sessions="5", remaining="0.5")
        update_attendance_status(db, record_id, "present", session_duration=Decimal("2.0"))
        assert student.remaining_sessions == Decimal("0.00")
    finally:
        db.close()


@pytest.mark.parametrize("kind", [PackageKind.GROUP_TRAINING, PackageKind.CAMP_TRAINING])
def test_non_personal_packages_ignore_requested_duration(kind):
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=kind, sessions="10")
        record = update_attendance_status(db, record_id, "present", session_duration=Decimal("3.0"))
        assert record.session_duration == Decimal("1.00")
        assert student.remaining_sessions == Decimal("9.00")
    finally:
        db.close()


def test_personal_package_without_duration_defaults_to_one():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=PackageKind.PERSONAL_TRAINING, sessions="5")
        record = update_attendance_status(db, record_id, "present")
        assert record.session_duration == Decimal("1.00")
        assert student.remaining_sessions == Decimal("4.00")
    finally:
        db.close()


def test_package_cycle_is_assigned_once():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, sessions="10")
        record = update_attendance_status(db, record_id, "present")
        assert record.package_cycle == 1

        # A renewal after the first mark must not move the record to the new cycle
        db.add(StudentPackageHistory(student_id=student.id, package_type="old", sessions=Decimal("10")))
        db.commit()
        update_attendance_status(db, record_id, "absent")
        record = update_attendance_status(db, record_id, "present")
        assert record.package_cycle == 1
    finally:
        db.close()


def test_round_trip_leaves_balance_unchanged():
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, kind=PackageKind.PERSONAL_TRAINING, sessions="10")
        update_attendance_status(db, record_id, "present", session_duration=Decimal("2.0"))
        update_attendance_status(db, record_id, "pending")
        update_attendance_status(db, record_id, "present", session_duration=Decimal("1.0"))
        update_attendance_status(db, record_id, "absent")
        assert student.remaining_sessions == Decimal("10.00")
    finally:
        db.close()


def test_repeated_present_marks_never_go_negative():
    db = SessionLocal()
    try:
        student, record_ids = seed_player(db, sessions="2", records=4)
        for record_id in record_ids:
            update_attendance_status(db, record_id, "present")
        assert student.remaining_sessions == Decimal("0.00")
    finally:
        db.close()


def test_unknown_record_returns_404():
    db = SessionLocal()
    try:
        with pytest.raises(HTTPException) as exc:
            update_attendance_status(db, 999, "present")
        assert exc.value.status_code == 404
    finally:
        db.close()


def test_apply_balance_transition_rules():
    student = Student(remaining_sessions=Decimal("5.00"))
    assert apply_balance_transition(student, None, None, "pending", None) == Decimal("5.00")
    assert apply_balance_transition(student, "pending", None, "present", Decimal("1.5")) == Decimal("3.50")
    assert apply_balance_transition(student, "present", Decimal("1.5"), "present", Decimal("1.5")) == Decimal("3.50")
    assert apply_balance_transition(student, "present", Decimal("1.5"), "absent", Decimal("1.5")) == Decimal("5.00")
    assert apply_balance_transition(student, "absent", None, "pending", None) == Decimal("5.00")


def test_package_usage_counts_only_current_cycle():
    db = SessionLocal()
    try:
        student, record_ids = seed_player(db, sessions="10", records=3)
        update_attendance_status(db, record_ids[0], "present")
        update_attendance_status(db, record_ids[1], "present")
        usage = get_package_usage(db, student, today=date(2030, 1, 5))
        assert usage["current_cycle"] == 1
        assert usage["used"] == Decimal("2.00")
        assert usage["remaining"] == Decimal("8.00")
        assert usage["progress_percentage"] == Decimal("20.00")
        assert usage["status"] == "ongoing"

        db.add(StudentPackageHistory(student_id=student.id, package_type="old", sessions=Decimal("10")))
        db.commit()
        usage = get_package_usage(db, student, today=date(2030, 1, 5))
        assert usage["current_cycle"] == 2
        assert usage["used"] == Decimal("0.00")
    finally:
        db.close()


def test_recalculate_remaining_sessions_rebuilds_balance():
    db = SessionLocal()
    try:
        student, record_ids = seed_player(db, sessions="10", records=2)
        update_attendance_status(db, record_ids[0], "present")
        student.remaining_sessions = Decimal("1.00")
        db.commit()
        assert recalculate_remaining_sessions(db, student) == Decimal("9.00")
    finally:
        db.close()


def test_competing_present_marks_on_one_record_debit_once(monkeypatch):
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, sessions="10")
        student_id = student.id
        lock_student = session_credits._lock_student
        competitor_ran = []

        def lock_after_competing_mark(session, locked_student_id):
            # Another request commits the same mark between the first read and the lock
            if not competitor_ran:
                competitor_ran.append(True)
                other = SessionLocal()
                try:
                    update_attendance_status(other, record_id, "present")
                finally:
                    other.close()
            return lock_student(session, locked_student_id)

        monkeypatch.setattr(session_credits, "_lock_student", lock_after_competing_mark)
        update_attendance_status(db, record_id, "present")
        assert competitor_ran
    finally:
        db.close()

    check = SessionLocal()
    try:
        assert check.get(Student, student_id).remaining_sessions == Decimal("9.00")
        assert check.get(AttendanceRecord, record_id).status == "present"
    finally:
        check.close()


@pytest.mark.parametrize(
    "error, status_code",
    [
        (IntegrityError("UPDATE attendance_records", {}, Exception("constraint failed")), 409),
        (OperationalError("UPDATE attendance_records", {}, Exception("database is locked")), 500),
    ],
)
def test_failed_commit_leaves_record_and_balance_unchanged(monkeypatch, error, status_code):
    db = SessionLocal()
    try:
        student, (record_id,) = seed_player(db, sessions="10")
        student_id = student.id

        def failing_commit():
            raise error

        monkeypatch.setattr(db, "commit", failing_commit)
        with pytest.raises(HTTPException) as exc:
            update_attendance_status(db, record_id, "present")
        assert exc.value.status_code == status_code
    finally:
        db.close()

    check = SessionLocal()
    try:
        record = check.get(AttendanceRecord, record_id)
        assert record.status == "pending"
        assert record.package_cycle is None
        assert record.marked_at is None
        assert check.get(Student, student_id).remaining_sessions == Decimal("10.00")
    finally:
        check.close()
