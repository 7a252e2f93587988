"""
Attendance API schemas, shared by the store routes and the tracker client.

The subject is a tagged union: a record references exactly one member or
exactly one staff person, chosen by `kind`. Status and duration are derived
from the timestamps every time a record is built; incoming values for them
are ignored.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from gym_attendance.utils.timeutils import as_utc, format_duration


class SubjectKind(str, Enum):
    MEMBER = "member"
    STAFF = "staff"


class CheckMethod(str, Enum):
    QR = "qr"
    BIOMETRIC = "biometric"
    MANUAL = "manual"


class AttendanceStatus(str, Enum):
    CHECKED_IN = "Checked In"
    CHECKED_OUT = "Checked Out"


class MemberRef(BaseModel):
    kind: Literal["member"] = "member"
    id: int
    name: str
    membership_type: Optional[str] = None

    @property
    def category(self) -> Optional[str]:
        return self.membership_type


class StaffRef(BaseModel):
    kind: Literal["staff"] = "staff"
    id: int
    name: str
    role: Optional[str] = None

    @property
    def category(self) -> Optional[str]:
        return self.role


SubjectRef = Annotated[Union[MemberRef, StaffRef], Field(discriminator="kind")]


class SubjectKey(BaseModel):
    """Identity of a subject, as sent by check-in devices."""
    kind: SubjectKind
    id: int

    def __str__(self):
        return f"{self.kind.value}:{self.id}"


class AttendanceRecordOut(BaseModel):
    id: int
    subject: SubjectRef
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    check_in_method: Optional[CheckMethod] = None
    check_out_method: Optional[CheckMethod] = None
    notes: Optional[str] = None

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def _normalise_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_out_after_check_in(self):
        if self.check_out_time is not None and self.check_out_time <= self.check_in_time:
            raise ValueError("check_out_time must be after check_in_time")
        return self

    @computed_field
    @property
    def status(self) -> AttendanceStatus:
        if self.check_out_time is None:
            return AttendanceStatus.CHECKED_IN
        return AttendanceStatus.CHECKED_OUT

    @computed_field
    @property
    def duration_seconds(self) -> Optional[int]:
        if self.check_out_time is None:
            return None
        return int((self.check_out_time - self.check_in_time).total_seconds())

    @computed_field
    @property
    def duration(self) -> Optional[str]:
        if self.check_out_time is None:
            return None
        return format_duration(self.check_out_time - self.check_in_time)

    class Config:
        from_attributes = True


class DailyStats(BaseModel):
    total_today: int = 0
    currently_in: int = 0
    members_today: int = 0
    staff_today: int = 0


class DayView(BaseModel):
    day: date
    attendance: list[AttendanceRecordOut]
    stats: DailyStats


class HistoryPage(BaseModel):
    attendance: list[AttendanceRecordOut]
    page: int
    page_size: int
    total_pages: int
    total: int


class DateRange(BaseModel):
    """Inclusive range of calendar days."""
    start: date
    end: date


# ── Tracker views (what the dashboard renders) ────────────────────────────

class TrackedDayView(DayView):
    stale: bool = False            # True when showing last-known-good data
    error: Optional[str] = None


class TrackedHistoryView(HistoryPage):
    stale: bool = False
    error: Optional[str] = None


# ── Requests ──────────────────────────────────────────────────────────────

class CheckInRequest(BaseModel):
    subject: SubjectKey
    method: CheckMethod = CheckMethod.MANUAL
    notes: Optional[str] = None


class CheckOutRequest(BaseModel):
    subject: SubjectKey
    method: Optional[CheckMethod] = None
    notes: Optional[str] = None


class RecordCheckOutRequest(BaseModel):
    method: Optional[CheckMethod] = None
    notes: Optional[str] = None


class QrScanRequest(BaseModel):
    qr_code: str


class BiometricScanRequest(BaseModel):
    biometric_id: str


class DashboardActionOut(BaseModel):
    status: Literal["ok", "noop"]
    notice: Optional[str] = None
    record: Optional[AttendanceRecordOut] = None
