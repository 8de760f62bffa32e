from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BranchBase(BaseModel):
    name: str
    address: str
    city: str
    contact_info: Optional[str] = None


class BranchCreate(BranchBase):
    pass


class BranchUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    contact_info: Optional[str] = None


class BranchRead(BranchBase):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
