"""Training session model and its coach / participant links."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now

SESSION_SCHEDULED = "scheduled"
SESSION_COMPLETED = "completed"
SESSION_CANCELLED = "cancelled"


class TrainingSession(Base):
    __tablename__ = "training_sessions"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=SESSION_SCHEDULED)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    branch = relationship("Branch", back_populates="sessions")
    package = relationship("Package", back_populates="sessions")
    coach_links = relationship("SessionCoach", back_populates="session", cascade="all, delete-orphan")
    participants = relationship("SessionParticipant", back_populates="session", cascade="all, delete-orphan")
    attendance_records = relationship("AttendanceRecord", back_populates="session", cascade="all, delete-orphan")
    coach_times = relationship("CoachSessionTime", back_populates="session", cascade="all, delete-orphan")
    coach_attendance = relationship("CoachAttendanceRecord", back_populates="session", cascade="all, delete-orphan")

    @property
    def coach_ids(self) -> list[int]:
        return [link.coach_id for link in self.coach_links]

    @property
    def student_ids(self) -> list[int]:
        return [p.student_id for p in self.participants]

    @property
    def package_type(self) -> str | None:
        return self.package.name if self.package is not None else None


class SessionCoach(Base):
    __tablename__ = "session_coaches"
    __table_args__ = (UniqueConstraint("session_id", "coach_id", name="uq_session_coach"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    session = relationship("TrainingSession", back_populates="coach_links")
    coach = relationship("Coach", back_populates="session_links")


class SessionParticipant(Base):
    __tablename__ = "session_participants"
    __table_args__ = (UniqueConstraint("session_id", "student_id", name="uq_session_participant"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    session = relationship("TrainingSession", back_populates="participants")
    student = relationship("Student", back_populates="participations")
