"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentBase(BaseModel):
    payment_amount: Decimal = Field(gt=0)
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None


class PaymentCreate(PaymentBase):
    student_id: int


class PaymentRead(PaymentBase):
    id: int
    student_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentReceipt(BaseModel):
    receipt_number: str
    student_id: int
    student_name: str
    student_email: str
    package_type: Optional[str] = None
    branch_name: Optional[str] = None
    payment_id: int
    payment_amount: Decimal
    payment_date: datetime
    notes: Optional[str] = None
    total_training_fee: Decimal
    downpayment: Decimal
    total_paid: Decimal
    remaining_balance: Decimal
