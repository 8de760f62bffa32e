"""Student (player) model."""

from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone = Column(String, nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=True, index=True)
    sessions = Column(Numeric(10, 2), nullable=True, default=Decimal("0.00"))
    remaining_sessions = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    enrollment_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True)
    total_training_fee = Column(Numeric(10, 2), nullable=True, default=Decimal("0.00"))
    downpayment = Column(Numeric(10, 2), nullable=True, default=Decimal("0.00"))
    remaining_balance = Column(Numeric(10, 2), nullable=True, default=Decimal("0.00"))
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    branch = relationship("Branch", back_populates="students")
    package = relationship("Package", back_populates="students")
    attendance_records = relationship("AttendanceRecord", back_populates="student", cascade="all, delete-orphan")
    participations = relationship("SessionParticipant", back_populates="student", cascade="all, delete-orphan")
    package_history = relationship(
        "StudentPackageHistory",
        back_populates="student",
        cascade="all, delete-orphan",
        order_by="StudentPackageHistory.captured_at.desc()",
    )
    payments = relationship("StudentPayment", back_populates="student", cascade="all, delete-orphan")

    @property
    def package_type(self) -> str | None:
        return self.package.name if self.package is not None else None
