"""Snapshot of a player's package, captured when the package is renewed."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class StudentPackageHistory(Base):
    __tablename__ = "student_package_history"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    package_type = Column(String, nullable=True)
    sessions = Column(Numeric(10, 2), nullable=True)
    remaining_sessions = Column(Numeric(10, 2), nullable=True)
    enrollment_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True)
    captured_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    reason = Column(Text, nullable=True)

    student = relationship("Student", back_populates="package_history")
