"""Player attendance per training session."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now

ATTENDANCE_PRESENT = "present"
ATTENDANCE_ABSENT = "absent"
ATTENDANCE_PENDING = "pending"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("session_id", "student_id", name="uq_attendance_session_student"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ATTENDANCE_PENDING)
    marked_at = Column(DateTime(timezone=True), nullable=True)
    session_duration = Column(Numeric(4, 2), nullable=True)
    package_cycle = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    session = relationship("TrainingSession", back_populates="attendance_records")
    student = relationship("Student", back_populates="attendance_records")
