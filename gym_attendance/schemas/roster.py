from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from gym_attendance.schemas.attendance import SubjectKind


class RosterEntryCreate(BaseModel):
    kind: SubjectKind
    name: str
    category: Optional[str] = None    # membership type or staff role
    email: Optional[str] = None
    phone: Optional[str] = None
    biometric_id: Optional[str] = None


class RosterEntryOut(BaseModel):
    id: int
    kind: SubjectKind
    name: str
    category: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    biometric_id: Optional[str]
    is_active: int
    registered_at: Optional[datetime]

    class Config:
        from_attributes = True
