"""Player payment entries and outstanding balance upkeep."""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.models.payment import StudentPayment
from backend.app.models.student import Student
from backend.app.services.session_credits import ZERO, commit_or_raise, to_credits

logger = logging.getLogger(__name__)


def total_paid(student: Student) -> Decimal:
    return sum((to_credits(p.payment_amount) for p in student.payments), ZERO)


def recalculate_remaining_balance(student: Student) -> Decimal:
    balance = to_credits(student.total_training_fee) - to_credits(student.downpayment) - total_paid(student)
    if balance < ZERO:
        balance = ZERO
    student.remaining_balance = balance
    return balance


def record_payment(
    db: Session,
    student: Student,
    *,
    amount: Decimal,
    payment_date: datetime | None = None,
    notes: str | None = None,
) -> StudentPayment:
    payment = StudentPayment(student_id=student.id, payment_amount=to_credits(amount), notes=notes)
    if payment_date is not None:
        payment.payment_date = payment_date
    student.payments.append(payment)
    balance = recalculate_remaining_balance(student)
    commit_or_raise(db, "record payment")
    db.refresh(payment)
    logger.info("Recorded payment %s for student %s; remaining balance %s", payment.id, student.id, balance)
    return payment


def delete_payment(db: Session, payment: StudentPayment) -> None:
    student = payment.student
    student.payments.remove(payment)
    recalculate_remaining_balance(student)
    commit_or_raise(db, "delete payment")


def build_payment_receipt(payment: StudentPayment) -> dict:
    student = payment.student
    return {
        "receipt_number": f"PR-{payment.id:06d}",
        "student_id": student.id,
        "student_name": student.name,
        "student_email": student.email,
        "package_type": student.package_type,
        "branch_name": student.branch.name if student.branch else None,
        "payment_id": payment.id,
        "payment_amount": to_credits(payment.payment_amount),
        "payment_date": payment.payment_date,
        "notes": payment.notes,
        "total_training_fee": to_credits(student.total_training_fee),
        "downpayment": to_credits(student.downpayment),
        "total_paid": total_paid(student),
        "remaining_balance": to_credits(student.remaining_balance),
    }
