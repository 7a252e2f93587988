"""Unit tests for the attendance record schema and its derived fields."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import random
import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from gym_attendance.schemas.attendance import (
    AttendanceRecordOut,
    AttendanceStatus,
    MemberRef,
    StaffRef,
)
from helpers import T0, make_record


def _payload(**overrides):
    data = {
        "id": 1,
        "subject": {"kind": "member", "id": 4, "name": "Asha", "membership_type": "Gold"},
        "check_in_time": "2026-03-02T09:00:00",
        "check_out_time": None,
    }
    data.update(overrides)
    return data


class TestSubject:
    def test_member_subject(self):
        record = AttendanceRecordOut.model_validate(_payload())
        assert isinstance(record.subject, MemberRef)
        assert record.subject.category == "Gold"

    def test_staff_subject(self):
        record = AttendanceRecordOut.model_validate(
            _payload(subject={"kind": "staff", "id": 2, "name": "Ravi", "role": "Trainer"})
        )
        assert isinstance(record.subject, StaffRef)
        assert record.subject.category == "Trainer"

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            AttendanceRecordOut.model_validate(_payload(subject={"kind": "visitor", "id": 1, "name": "X"}))

    def test_missing_subject_rejected(self):
        data = _payload()
        del data["subject"]
        with pytest.raises(ValidationError):
            AttendanceRecordOut.model_validate(data)


class TestDerivedFields:
    def test_open_record(self):
        record = AttendanceRecordOut.model_validate(_payload())
        assert record.status == AttendanceStatus.CHECKED_IN
        assert record.duration is None
        assert record.duration_seconds is None

    def test_closed_record(self):
        record = AttendanceRecordOut.model_validate(_payload(check_out_time="2026-03-02T10:30:00"))
        assert record.status == AttendanceStatus.CHECKED_OUT
        assert record.duration == "1h 30m"
        assert record.duration_seconds == 5400

    def test_incoming_status_is_ignored(self):
        record = AttendanceRecordOut.model_validate(_payload(status="Checked Out", duration="9h 9m"))
        assert record.status == AttendanceStatus.CHECKED_IN
        assert record.duration is None

    def test_naive_times_are_utc(self):
        record = AttendanceRecordOut.model_validate(_payload())
        assert record.check_in_time == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def test_serialised_record_carries_status(self):
        dumped = make_record(minutes_inside=90).model_dump(mode="json")
        assert dumped["status"] == "Checked Out"
        assert dumped["duration"] == "1h 30m"
        assert dumped["subject"]["kind"] == "member"


class TestCheckOutAfterCheckIn:
    def test_generated_pairs(self):
        """Only pairs with check-out strictly after check-in are accepted."""
        rng = random.Random(42)
        for _ in range(200):
            check_in = T0 + timedelta(seconds=rng.randint(-86_400, 86_400))
            check_out = T0 + timedelta(seconds=rng.randint(-86_400, 86_400))
            data = _payload(check_in_time=check_in.isoformat(), check_out_time=check_out.isoformat())
            if check_out > check_in:
                record = AttendanceRecordOut.model_validate(data)
                assert record.duration_seconds > 0
            else:
                with pytest.raises(ValidationError):
                    AttendanceRecordOut.model_validate(data)

    def test_equal_times_rejected(self):
        with pytest.raises(ValidationError):
            AttendanceRecordOut.model_validate(_payload(check_out_time="2026-03-02T09:00:00"))
