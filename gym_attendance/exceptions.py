"""
Attendance error taxonomy.

Every failure the store or the tracker reports is one of these kinds.
Each carries a stable `code` (sent in error bodies and used by the store
client to rebuild the exception) and the HTTP status the API answers with.
"""

from typing import Optional


class AttendanceError(Exception):
    """Base class for attendance failures."""

    code = "attendance_error"
    status_code = 400

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__

    def to_body(self) -> dict:
        return {"detail": str(self), "code": self.code}


class AlreadyCheckedIn(AttendanceError):
    """Check-in attempted while the subject has an open record."""

    code = "already_checked_in"
    status_code = 409

    def __init__(self, message: Optional[str] = None, record_id: Optional[int] = None):
        super().__init__(message)
        self.record_id = record_id

    @classmethod
    def default_message(cls) -> str:
        return "Subject is already checked in"


class NoOpenSession(AttendanceError):
    """Check-out attempted with no open record."""

    code = "no_open_session"
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "Subject has no open attendance session"


class TransientFetchFailure(AttendanceError):
    """Store unreachable, timed out, or answered with something unusable."""

    code = "transient_fetch_failure"
    status_code = 503

    @classmethod
    def default_message(cls) -> str:
        return "Attendance store is unavailable, try again"


class InvalidRange(AttendanceError):
    code = "invalid_range"
    status_code = 422

    @classmethod
    def default_message(cls) -> str:
        return "End date must not be before start date"


class SubjectNotFound(AttendanceError):
    code = "subject_not_found"
    status_code = 404

    @classmethod
    def default_message(cls) -> str:
        return "Member or staff not found"


class InvalidQrCode(AttendanceError):
    code = "invalid_qr_code"
    status_code = 422

    @classmethod
    def default_message(cls) -> str:
        return "QR code is not a valid attendance card"


class InvalidCheckOut(AttendanceError):
    """Check-out time would not be strictly after check-in time."""

    code = "invalid_check_out"
    status_code = 422

    @classmethod
    def default_message(cls) -> str:
        return "Check-out time must be after check-in time"


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        AlreadyCheckedIn,
        NoOpenSession,
        TransientFetchFailure,
        InvalidRange,
        SubjectNotFound,
        InvalidQrCode,
        InvalidCheckOut,
    )
}
