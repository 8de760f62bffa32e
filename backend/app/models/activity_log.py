"""Activity log model for coach time-in/time-out and other session events."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    user_type = Column(String(20), nullable=False)
    session_id = Column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_type = Column(String(50), nullable=False)
    activity_description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
