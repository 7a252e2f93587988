"""
Attendance records — one row per check-in, closed once by check-out.

Status is never stored: a row is open while check_out_time is NULL.
The partial unique index allows at most one open row per subject, so two
devices racing to check the same person in cannot both succeed.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text, text
from gym_attendance.database import Base

_OPEN = text("check_out_time IS NULL")


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        CheckConstraint("subject_kind IN ('member', 'staff')", name="ck_attendance_subject_kind"),
        CheckConstraint(
            "check_out_time IS NULL OR check_out_time > check_in_time",
            name="ck_attendance_checkout_after_checkin",
        ),
        Index(
            "uq_attendance_open_session",
            "subject_kind",
            "subject_id",
            unique=True,
            sqlite_where=_OPEN,
            postgresql_where=_OPEN,
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_kind = Column(String(10), nullable=False)        # member | staff
    subject_id = Column(Integer, nullable=False, index=True)  # roster.id
    subject_name = Column(String(120), nullable=False)
    subject_category = Column(String(60))
    check_in_time = Column(DateTime, nullable=False, index=True)
    check_out_time = Column(DateTime)
    check_in_method = Column(String(20), nullable=False)     # qr | biometric | manual
    check_out_method = Column(String(20))
    notes = Column(Text)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    @property
    def subject(self) -> dict:
        """Tagged subject reference in the shape the API schemas expect."""
        category_field = "membership_type" if self.subject_kind == "member" else "role"
        return {
            "kind": self.subject_kind,
            "id": self.subject_id,
            "name": self.subject_name,
            category_field: self.subject_category,
        }

    def __repr__(self):
        state = "open" if self.check_out_time is None else "closed"
        return f"<AttendanceRecord {self.id} {self.subject_kind}:{self.subject_id} {state}>"
