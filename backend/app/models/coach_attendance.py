"""Coach time logs and attendance per training session."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class CoachSessionTime(Base):
    __tablename__ = "coach_session_times"
    __table_args__ = (UniqueConstraint("session_id", "coach_id", name="uq_coach_session_time"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    time_in = Column(DateTime(timezone=True), nullable=True)
    time_out = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    session = relationship("TrainingSession", back_populates="coach_times")
    coach = relationship("Coach")


class CoachAttendanceRecord(Base):
    __tablename__ = "coach_attendance_records"
    __table_args__ = (UniqueConstraint("session_id", "coach_id", name="uq_coach_attendance"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    marked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    session = relationship("TrainingSession", back_populates="coach_attendance")
    coach = relationship("Coach")
