from datetime import date, time
from decimal import Decimal

import pytest
from fastapi import HTTPException

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.branch import Branch
from backend.app.models.coach import Coach
from backend.app.models.package import Package, PackageKind
from backend.app.models.student import Student
from backend.app.services.scheduling import (
    create_training_session,
    delete_training_session,
    find_scheduling_conflicts,
    update_training_session,
)
from backend.app.services.session_credits import update_attendance_status

SESSION_DAY = date(2030, 5, 6)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def seed(db):
    branch = Branch(name="North Gym", address="9 Rim Rd", city="Springfield")
    package = Package(name="Group", kind=PackageKind.GROUP_TRAINING.value)
    coach = Coach(name="Coach Sam", email="sam@example.com")
    players = [
        Student(name=name, email=f"{name.lower()}@example.com", sessions=Decimal("4"), remaining_sessions=Decimal("4"))
        for name in ("Riley", "Casey")
    ]
    db.add_all([branch, package, coach, *players])
    db.commit()
    return branch, package, coach, players


def schedule(db, branch, package, coach, players, start=time(10, 0), end=time(11, 0)):
    return create_training_session(
        db,
        session_date=SESSION_DAY,
        start_time=start,
        end_time=end,
        branch_id=branch.id,
        package_id=package.id,
        coach_ids=[coach.id],
        student_ids=[p.id for p in players],
    )


def test_create_session_adds_pending_attendance_per_player():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        session_obj = schedule(db, branch, package, coach, players)
        assert session_obj.coach_ids == [coach.id]
        assert sorted(session_obj.student_ids) == sorted(p.id for p in players)
        assert {r.status for r in session_obj.attendance_records} == {"pending"}
        assert all(r.package_cycle is None for r in session_obj.attendance_records)
    finally:
        db.close()


@pytest.mark.parametrize(
    "start, end, clashes",
    [
        (time(10, 30), time(11, 30), True),
        (time(9, 30), time(10, 30), True),
        (time(9, 0), time(12, 0), True),
        (time(10, 15), time(10, 45), True),
        (time(11, 0), time(12, 0), False),
        (time(9, 0), time(10, 0), False),
    ],
)
def test_conflict_overlap_rule(start, end, clashes):
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        schedule(db, branch, package, coach, players[:1])
        conflicts = find_scheduling_conflicts(
            db,
            session_date=SESSION_DAY,
            start_time=start,
            end_time=end,
            coach_ids=[coach.id],
            student_ids=[players[0].id],
        )
        if clashes:
            assert [c["conflict_type"] for c in conflicts] == ["coach", "student"]
            assert conflicts[0]["conflict_details"] == "Coach Coach Sam is already scheduled at this time"
        else:
            assert conflicts == []
    finally:
        db.close()


def test_conflicting_session_is_rejected():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        schedule(db, branch, package, coach, players[:1])
        with pytest.raises(HTTPException) as exc:
            schedule(db, branch, package, coach, players[1:], start=time(10, 30), end=time(11, 30))
        assert exc.value.status_code == 400
        assert "already scheduled" in exc.value.detail
    finally:
        db.close()


def test_cancelled_sessions_do_not_conflict():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        session_obj = schedule(db, branch, package, coach, players[:1])
        update_training_session(db, session_obj, status="cancelled")
        conflicts = find_scheduling_conflicts(
            db,
            session_date=SESSION_DAY,
            start_time=time(10, 0),
            end_time=time(11, 0),
            coach_ids=[coach.id],
            student_ids=[],
        )
        assert conflicts == []
    finally:
        db.close()


@pytest.mark.parametrize(
    "overrides, detail",
    [
        ({"package_id": None}, "Package type is required"),
        ({"coach_ids": []}, "At least one coach must be selected"),
        ({"end_time": time(9, 0)}, "End time must be after start time"),
    ],
)
def test_create_session_validation(overrides, detail):
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        kwargs = {
            "session_date": SESSION_DAY,
            "start_time": time(10, 0),
            "end_time": time(11, 0),
            "branch_id": branch.id,
            "package_id": package.id,
            "coach_ids": [coach.id],
            "student_ids": [players[0].id],
        }
        kwargs.update(overrides)
        with pytest.raises(HTTPException) as exc:
            create_training_session(db, **kwargs)
        assert exc.value.status_code == 400
        assert exc.value.detail == detail
    finally:
        db.close()


def test_player_without_credits_cannot_be_scheduled():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        players[0].sessions = Decimal("1")
        db.commit()
        first = schedule(db, branch, package, coach, players[:1])
        update_attendance_status(db, first.attendance_records[0].id, "present")
        with pytest.raises(HTTPException) as exc:
            schedule(db, branch, package, coach, players[:1], start=time(12, 0), end=time(13, 0))
        assert exc.value.status_code == 400
        assert "Riley" in exc.value.detail
    finally:
        db.close()


def test_removing_a_present_player_credits_back():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        session_obj = schedule(db, branch, package, coach, players)
        riley = players[0]
        record = next(r for r in session_obj.attendance_records if r.student_id == riley.id)
        update_attendance_status(db, record.id, "present")
        assert riley.remaining_sessions == Decimal("3.00")

        update_training_session(db, session_obj, student_ids=[players[1].id])
        assert session_obj.student_ids == [players[1].id]
        assert riley.remaining_sessions == Decimal("4.00")
    finally:
        db.close()


def test_kept_players_keep_their_attendance_on_update():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        session_obj = schedule(db, branch, package, coach, players[:1])
        update_attendance_status(db, session_obj.attendance_records[0].id, "present")

        update_training_session(db, session_obj, student_ids=[p.id for p in players], notes="Shooting drills")
        statuses = {r.student_id: r.status for r in session_obj.attendance_records}
        assert statuses == {players[0].id: "present", players[1].id: "pending"}
        assert session_obj.notes == "Shooting drills"
    finally:
        db.close()


def test_deleting_a_session_credits_back_present_players():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        session_obj = schedule(db, branch, package, coach, players[:1])
        update_attendance_status(db, session_obj.attendance_records[0].id, "present")
        delete_training_session(db, session_obj)
        db.refresh(players[0])
        assert players[0].remaining_sessions == Decimal("4.00")
    finally:
        db.close()


def test_rejected_update_leaves_session_untouched():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        session_obj = schedule(db, branch, package, coach, players[:1])
        with pytest.raises(HTTPException) as exc:
            update_training_session(db, session_obj, end_time=time(9, 0), notes="Moved")
        assert exc.value.detail == "End time must be after start time"
        assert session_obj.end_time == time(11, 0)
        assert session_obj.notes is None
        assert not db.is_modified(session_obj)
    finally:
        db.close()


def test_update_checks_conflicts_at_the_new_time():
    db = SessionLocal()
    try:
        branch, package, coach, players = seed(db)
        schedule(db, branch, package, coach, players[:1])
        later = schedule(db, branch, package, coach, players[1:], start=time(12, 0), end=time(13, 0))
        with pytest.raises(HTTPException) as exc:
            update_training_session(db, later, start_time=time(10, 30), end_time=time(11, 30))
        assert "already scheduled" in exc.value.detail
        assert later.start_time == time(12, 0)
    finally:
        db.close()
