"""Training session scheduling: conflict detection and participant bookkeeping."""

import logging
from datetime import date, time
from typing import Iterable

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.models.attendance import ATTENDANCE_PENDING, AttendanceRecord
from backend.app.models.branch import Branch
from backend.app.models.coach import Coach
from backend.app.models.package import Package
from backend.app.models.session import SESSION_CANCELLED, SessionCoach, SessionParticipant, TrainingSession
from backend.app.models.student import Student
from backend.app.services.session_credits import (
    ZERO,
    commit_or_raise,
    release_attendance_credits,
    to_credits,
    used_credits_in_current_cycle,
)

logger = logging.getLogger(__name__)


def _overlaps(start_time: time, end_time: time):
    return or_(
        (TrainingSession.start_time <= start_time) & (TrainingSession.end_time > start_time),
        (TrainingSession.start_time < end_time) & (TrainingSession.end_time >= end_time),
        (TrainingSession.start_time >= start_time) & (TrainingSession.end_time <= end_time),
    )


def find_scheduling_conflicts(
    db: Session,
    *,
    session_date: date,
    start_time: time,
    end_time: time,
    coach_ids: Iterable[int],
    student_ids: Iterable[int],
    exclude_session_id: int | None = None,
) -> list[dict]:
    base = db.query(TrainingSession).filter(
        TrainingSession.date == session_date,
        TrainingSession.status != SESSION_CANCELLED,
        _overlaps(start_time, end_time),
    )
    if exclude_session_id is not None:
        base = base.filter(TrainingSession.id != exclude_session_id)

    conflicts = []
    for coach_id in coach_ids:
        clash = base.join(SessionCoach, SessionCoach.session_id == TrainingSession.id).filter(SessionCoach.coach_id == coach_id).first()
        if clash:
            coach = db.get(Coach, coach_id)
            name = coach.name if coach else f"#{coach_id}"
            conflicts.append(
                {"conflict_type": "coach", "conflict_details": f"Coach {name} is already scheduled at this time"}
            )
    for student_id in student_ids:
        clash = (
            base.join(SessionParticipant, SessionParticipant.session_id == TrainingSession.id)
            .filter(SessionParticipant.student_id == student_id)
            .first()
        )
        if clash:
            student = db.get(Student, student_id)
            name = student.name if student else f"#{student_id}"
            conflicts.append(
                {"conflict_type": "student", "conflict_details": f"Student {name} is already scheduled at this time"}
            )
    return conflicts


def _get_or_404(db: Session, model, obj_id: int, label: str):
    obj = db.get(model, obj_id)
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj


def _validate_session_fields(
    db: Session,
    *,
    branch_id: int,
    package_id: int | None,
    start_time: time,
    end_time: time,
    coach_ids: list[int],
    student_ids: list[int],
) -> list[Student]:
    if package_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Package type is required")
    if not coach_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one coach must be selected")
    if end_time <= start_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End time must be after start time")
    _get_or_404(db, Branch, branch_id, "Branch")
    package = _get_or_404(db, Package, package_id, "Package")
    if not package.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Package is not active")
    for coach_id in coach_ids:
        _get_or_404(db, Coach, coach_id, "Coach")
    return [_get_or_404(db, Student, student_id, "Student") for student_id in student_ids]


def _ensure_remaining_credits(db: Session, students: list[Student]) -> None:
    exhausted = [
        stu.name
        for stu in students
        if to_credits(stu.sessions) - used_credits_in_current_cycle(db, stu) <= ZERO
    ]
    if exhausted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"The following students have no remaining sessions: {', '.join(exhausted)}. "
                "Please renew their package or increase their session count."
            ),
        )


def _raise_on_conflicts(conflicts: list[dict]) -> None:
    if conflicts:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="; ".join(c["conflict_details"] for c in conflicts),
        )


def create_training_session(
    db: Session,
    *,
    session_date: date,
    start_time: time,
    end_time: time,
    branch_id: int,
    package_id: int | None,
    coach_ids: list[int],
    student_ids: list[int],
    notes: str | None = None,
    session_status: str = "scheduled",
) -> TrainingSession:
    coach_ids = list(dict.fromkeys(coach_ids))
    student_ids = list(dict.fromkeys(student_ids))
    students = _validate_session_fields(
        db,
        branch_id=branch_id,
        package_id=package_id,
        start_time=start_time,
        end_time=end_time,
        coach_ids=coach_ids,
        student_ids=student_ids,
    )
    _ensure_remaining_credits(db, students)
    _raise_on_conflicts(
        find_scheduling_conflicts(
            db,
            session_date=session_date,
            start_time=start_time,
            end_time=end_time,
            coach_ids=coach_ids,
            student_ids=student_ids,
        )
    )

    session_obj = TrainingSession(
        date=session_date,
        start_time=start_time,
        end_time=end_time,
        branch_id=branch_id,
        package_id=package_id,
        notes=notes,
        status=session_status,
    )
    db.add(session_obj)
    db.flush()  # obtain session id for links
    for coach_id in coach_ids:
        db.add(SessionCoach(session_id=session_obj.id, coach_id=coach_id))
    for student_id in student_ids:
        db.add(SessionParticipant(session_id=session_obj.id, student_id=student_id))
        # Cycle is assigned later, when attendance is taken
        db.add(AttendanceRecord(session_id=session_obj.id, student_id=student_id, status=ATTENDANCE_PENDING))
    commit_or_raise(db, "create session")
    db.refresh(session_obj)
    logger.info(
        "Created session %s on %s with %d coach(es) and %d player(s)",
        session_obj.id,
        session_obj.date,
        len(coach_ids),
        len(student_ids),
    )
    return session_obj


def _remove_participant(db: Session, session_obj: TrainingSession, student_id: int) -> None:
    for record in list(session_obj.attendance_records):
        if record.student_id == student_id:
            release_attendance_credits(record.student, record)
            session_obj.attendance_records.remove(record)
    for participant in list(session_obj.participants):
        if participant.student_id == student_id:
            session_obj.participants.remove(participant)


def update_training_session(db: Session, session_obj: TrainingSession, **changes) -> TrainingSession:
    coach_ids = changes.pop("coach_ids", None)
    student_ids = changes.pop("student_ids", None)
    changes = {field: value for field, value in changes.items() if value is not None}

    new = {
        field: changes.get(field, getattr(session_obj, field))
        for field in ("date", "start_time", "end_time", "branch_id", "package_id")
    }

    coach_ids = list(dict.fromkeys(coach_ids)) if coach_ids is not None else session_obj.coach_ids
    student_ids = list(dict.fromkeys(student_ids)) if student_ids is not None else session_obj.student_ids
    existing_students = set(session_obj.student_ids)
    added_students = [sid for sid in student_ids if sid not in existing_students]

    students = _validate_session_fields(
        db,
        branch_id=new["branch_id"],
        package_id=new["package_id"],
        start_time=new["start_time"],
        end_time=new["end_time"],
        coach_ids=coach_ids,
        student_ids=student_ids,
    )
    _ensure_remaining_credits(db, [stu for stu in students if stu.id in added_students])
    _raise_on_conflicts(
        find_scheduling_conflicts(
            db,
            session_date=new["date"],
            start_time=new["start_time"],
            end_time=new["end_time"],
            coach_ids=coach_ids,
            student_ids=student_ids,
            exclude_session_id=session_obj.id,
        )
    )

    for field, value in changes.items():
        setattr(session_obj, field, value)

    for link in list(session_obj.coach_links):
        if link.coach_id not in coach_ids:
            session_obj.coach_links.remove(link)
    linked = set(session_obj.coach_ids)
    for coach_id in coach_ids:
        if coach_id not in linked:
            session_obj.coach_links.append(SessionCoach(coach_id=coach_id))

    for student_id in existing_students - set(student_ids):
        _remove_participant(db, session_obj, student_id)
    for student_id in added_students:
        session_obj.participants.append(SessionParticipant(student_id=student_id))
        session_obj.attendance_records.append(AttendanceRecord(student_id=student_id, status=ATTENDANCE_PENDING))

    commit_or_raise(db, "update session")
    db.refresh(session_obj)
    logger.info("Updated session %s", session_obj.id)
    return session_obj


def delete_training_session(db: Session, session_obj: TrainingSession) -> None:
    for record in session_obj.attendance_records:
        release_attendance_credits(record.student, record)
    session_id = session_obj.id
    db.delete(session_obj)
    commit_or_raise(db, "delete session")
    logger.info("Deleted session %s", session_id)
