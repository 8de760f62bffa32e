"""Training package model.

The kind of a package is a closed set; only personal training lets staff pick
how many credits a single attendance consumes.
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base
from backend.app.core.time import utc_now


class PackageKind(str, enum.Enum):
    PERSONAL_TRAINING = "personal_training"
    GROUP_TRAINING = "group_training"
    CAMP_TRAINING = "camp_training"

    @property
    def requires_duration_selection(self) -> bool:
        return self is PackageKind.PERSONAL_TRAINING


class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    kind = Column(String(32), nullable=False, default=PackageKind.GROUP_TRAINING.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    students = relationship("Student", back_populates="package")
    sessions = relationship("TrainingSession", back_populates="package")

    @property
    def requires_duration_selection(self) -> bool:
        return PackageKind(self.kind).requires_duration_selection
