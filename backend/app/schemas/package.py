"""Package schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from backend.app.models.package import PackageKind


class PackageBase(BaseModel):
    name: str
    description: Optional[str] = None
    kind: PackageKind = PackageKind.GROUP_TRAINING
    is_active: bool = True


class PackageCreate(PackageBase):
    pass


class PackageUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    kind: Optional[PackageKind] = None
    is_active: Optional[bool] = None


class PackageRead(PackageBase):
    id: int
    requires_duration_selection: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
