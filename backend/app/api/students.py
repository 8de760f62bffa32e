"""Player endpoints: CRUD, package renewal, package history and usage."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_staff
from backend.app.models.branch import Branch
from backend.app.models.package import Package
from backend.app.models.package_history import StudentPackageHistory
from backend.app.models.student import Student
from backend.app.models.user import User
from backend.app.schemas.student import (
    PackageHistoryRead,
    PackageRenewal,
    PackageUsage,
    StudentCreate,
    StudentRead,
    StudentUpdate,
)
from backend.app.services.packages import renew_student_package
from backend.app.services.payments import recalculate_remaining_balance
from backend.app.services.session_credits import (
    commit_or_raise,
    get_package_usage,
    recalculate_remaining_sessions,
    to_credits,
)

router = APIRouter(prefix="/students", tags=["students"])


def _get_student(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


def _check_references(db: Session, branch_id: int | None, package_id: int | None) -> None:
    if branch_id is not None and not db.query(Branch).filter(Branch.id == branch_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    if package_id is not None and not db.query(Package).filter(Package.id == package_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")


@router.post("/", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
async def create_student(student_in: StudentCreate, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    if db.query(Student).filter(Student.email == student_in.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student email already registered")
    _check_references(db, student_in.branch_id, student_in.package_id)

    data = student_in.model_dump()
    sessions = data.pop("sessions")
    if sessions is None:
        sessions = get_settings().default_package_sessions
    sessions = to_credits(sessions)
    student = Student(**data, sessions=sessions, remaining_sessions=sessions)
    recalculate_remaining_balance(student)
    db.add(student)
    commit_or_raise(db, "create student")
    db.refresh(student)
    return student


@router.get("/", response_model=list[StudentRead])
async def list_students(
    search: str | None = None,
    branch_id: int | None = None,
    package_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    query = db.query(Student)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(Student.name.ilike(pattern) | Student.email.ilike(pattern))
    if branch_id is not None:
        query = query.filter(Student.branch_id == branch_id)
    if package_id is not None:
        query = query.filter(Student.package_id == package_id)
    return query.order_by(Student.name.asc()).offset(skip).limit(limit).all()


@router.get("/{student_id}", response_model=StudentRead)
async def get_student(student_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return _get_student(db, student_id)


@router.put("/{student_id}", response_model=StudentRead)
async def update_student(
    student_id: int,
    student_in: StudentUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    update_data = student_in.model_dump(exclude_unset=True)
    _check_references(db, update_data.get("branch_id"), update_data.get("package_id"))
    if "email" in update_data and update_data["email"] != student.email:
        if db.query(Student).filter(Student.email == update_data["email"]).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student email already registered")

    for field, value in update_data.items():
        setattr(student, field, value)
    if "total_training_fee" in update_data or "downpayment" in update_data:
        recalculate_remaining_balance(student)
    commit_or_raise(db, "update student")
    db.refresh(student)
    return student


@router.delete("/{student_id}")
async def delete_student(student_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    student = _get_student(db, student_id)
    db.delete(student)
    commit_or_raise(db, "delete student")
    return {"status": "deleted", "id": student_id}


@router.post("/{student_id}/renew", response_model=StudentRead)
async def renew_package(
    student_id: int,
    renewal: PackageRenewal,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    package = db.query(Package).filter(Package.id == renewal.package_id).first()
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")
    if not package.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Package is not active")
    return renew_student_package(
        db,
        student,
        package=package,
        sessions=renewal.sessions,
        enrollment_date=renewal.enrollment_date,
        expiration_date=renewal.expiration_date,
    )


@router.get("/{student_id}/package-history", response_model=list[PackageHistoryRead])
async def list_package_history(student_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return _get_student(db, student_id).package_history


@router.delete("/{student_id}/package-history/{history_id}")
async def delete_package_history(
    student_id: int,
    history_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    entry = (
        db.query(StudentPackageHistory)
        .filter(StudentPackageHistory.id == history_id, StudentPackageHistory.student_id == student_id)
        .first()
    )
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package history entry not found")
    db.delete(entry)
    commit_or_raise(db, "delete package history")
    return {"status": "deleted", "id": history_id}


@router.get("/{student_id}/package-usage", response_model=PackageUsage)
async def package_usage(student_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return get_package_usage(db, _get_student(db, student_id))


@router.post("/{student_id}/recalculate-sessions", response_model=StudentRead)
async def recalculate_sessions(student_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    student = _get_student(db, student_id)
    recalculate_remaining_sessions(db, student)
    return student
