"""Builders for attendance records used across the tests."""

from datetime import datetime, timedelta, timezone

from gym_attendance.schemas.attendance import AttendanceRecordOut

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def make_record(record_id=1, kind="member", name="Asha", check_in=T0, minutes_inside=None, subject_id=None):
    subject = {"kind": kind, "id": subject_id or record_id, "name": name}
    subject["membership_type" if kind == "member" else "role"] = "Gold" if kind == "member" else "Trainer"
    return AttendanceRecordOut(
        id=record_id,
        subject=subject,
        check_in_time=check_in,
        check_out_time=check_in + timedelta(minutes=minutes_inside) if minutes_inside is not None else None,
        check_in_method="manual",
    )
