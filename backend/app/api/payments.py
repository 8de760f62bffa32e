"""Player payment endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_current_admin
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_staff
from backend.app.models.payment import StudentPayment
from backend.app.models.student import Student
from backend.app.models.user import User
from backend.app.schemas.payment import PaymentCreate, PaymentRead, PaymentReceipt
from backend.app.services.payments import build_payment_receipt, delete_payment, record_payment

router = APIRouter(prefix="/payments", tags=["payments"])


def _get_payment(db: Session, payment_id: int) -> StudentPayment:
    payment = db.query(StudentPayment).filter(StudentPayment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return payment


@router.post("/", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
async def create_payment(payment_in: PaymentCreate, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    student = db.query(Student).filter(Student.id == payment_in.student_id).first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return record_payment(
        db,
        student,
        amount=payment_in.payment_amount,
        payment_date=payment_in.payment_date,
        notes=payment_in.notes,
    )


@router.get("/", response_model=list[PaymentRead])
async def list_payments(
    student_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_staff),
):
    query = db.query(StudentPayment)
    if student_id is not None:
        query = query.filter(StudentPayment.student_id == student_id)
    return query.order_by(StudentPayment.payment_date.desc()).offset(skip).limit(limit).all()


@router.get("/{payment_id}/receipt", response_model=PaymentReceipt)
async def payment_receipt(payment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_staff)):
    return build_payment_receipt(_get_payment(db, payment_id))


@router.delete("/{payment_id}")
async def remove_payment(payment_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    delete_payment(db, _get_payment(db, payment_id))
    return {"status": "deleted", "id": payment_id}
