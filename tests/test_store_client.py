"""Unit tests for the Attendance Store HTTP client and its error translation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from datetime import date

from gym_attendance.exceptions import (
    AlreadyCheckedIn,
    InvalidRange,
    NoOpenSession,
    SubjectNotFound,
    TransientFetchFailure,
)
from gym_attendance.schemas.attendance import CheckMethod, SubjectKey
from gym_attendance.services.store_client import AttendanceStoreClient
from helpers import make_record

BASE = "http://store.test/api/v1"
ASHA = SubjectKey(kind="member", id=1)


def client_for(handler):
    return AttendanceStoreClient(base_url=BASE, timeout=1.0, api_key="k", transport=httpx.MockTransport(handler))


class TestQueries:
    @pytest.mark.asyncio
    async def test_fetch_day(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("X-API-Key")
            return httpx.Response(200, json={
                "day": "2026-03-02",
                "attendance": [make_record(minutes_inside=75).model_dump(mode="json")],
                "stats": {"total_today": 99, "currently_in": 99, "members_today": 99, "staff_today": 99},
            })

        async with client_for(handler) as client:
            view = await client.fetch_day("today")

        assert seen["url"] == f"{BASE}/attendance?date=today"
        assert seen["key"] == "k"
        assert view.day == date(2026, 3, 2)
        assert view.attendance[0].duration == "1h 15m"

    @pytest.mark.asyncio
    async def test_fetch_history_params(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={"attendance": [], "page": 4, "page_size": 10,
                                             "total_pages": 3, "total": 25})

        async with client_for(handler) as client:
            page = await client.fetch_history(4, 10, date(2026, 2, 1), date(2026, 2, 25))

        assert seen == {"page": "4", "limit": "10", "start_date": "2026-02-01", "end_date": "2026-02-25"}
        assert page.attendance == []
        assert page.total == 25


class TestCommands:
    @pytest.mark.asyncio
    async def test_check_in_body(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(201, json=make_record().model_dump(mode="json"))

        async with client_for(handler) as client:
            record = await client.check_in(ASHA, CheckMethod.BIOMETRIC)

        assert seen["path"] == "/api/v1/attendance/check-in"
        assert b'"kind":"member"' in seen["body"].replace(b" ", b"")
        assert b'"method":"biometric"' in seen["body"].replace(b" ", b"")
        assert record.check_out_time is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,error", [
        ("already_checked_in", AlreadyCheckedIn),
        ("no_open_session", NoOpenSession),
        ("subject_not_found", SubjectNotFound),
        ("invalid_range", InvalidRange),
    ])
    async def test_error_codes(self, code, error):
        def handler(request):
            return httpx.Response(409, json={"detail": "nope", "code": code})

        async with client_for(handler) as client:
            with pytest.raises(error) as exc:
                await client.check_out(ASHA)
        assert str(exc.value) == "nope"


class TestTransientFailures:
    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with client_for(handler) as client:
            with pytest.raises(TransientFetchFailure):
                await client.fetch_day()

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(TransientFetchFailure):
                await client.check_in(ASHA, CheckMethod.MANUAL)

    @pytest.mark.asyncio
    async def test_server_error_without_code(self):
        async with client_for(lambda request: httpx.Response(500, text="boom")) as client:
            with pytest.raises(TransientFetchFailure):
                await client.fetch_day()

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        async with client_for(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(TransientFetchFailure):
                await client.fetch_day()

    @pytest.mark.asyncio
    async def test_malformed_record(self):
        bad = {"day": "2026-03-02", "attendance": [{"id": 1}], "stats": {}}
        async with client_for(lambda request: httpx.Response(200, json=bad)) as client:
            with pytest.raises(TransientFetchFailure):
                await client.fetch_day()
