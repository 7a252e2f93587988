"""
Dashboard attendance endpoints (presentation layer).

Everything here goes through the AttendanceTracker, which reaches the
Attendance Store over HTTP. Each operator console (X-Console-Id header)
gets its own tracker so one console's newer request never cancels another's.
Repeat check-ins and check-outs are answered as "noop" notices; store
outages leave the last good data on screen, flagged stale.
"""

import threading
from collections import OrderedDict
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from gym_attendance.config import settings
from gym_attendance.exceptions import AlreadyCheckedIn, NoOpenSession
from gym_attendance.schemas.attendance import (
    CheckInRequest,
    CheckOutRequest,
    DashboardActionOut,
    DateRange,
    TrackedDayView,
    TrackedHistoryView,
)
from gym_attendance.services.attendance_stats import TODAY
from gym_attendance.services.attendance_tracker import VIEWS, AttendanceTracker
from gym_attendance.services.store_client import AttendanceStoreClient
from gym_attendance.utils.logger import get_logger
from gym_attendance.utils.timeutils import local_today

router = APIRouter(prefix="/dashboard/attendance")
logger = get_logger(__name__)

_MAX_CONSOLES = 64

_store_client: Optional[AttendanceStoreClient] = None
_trackers: "OrderedDict[str, AttendanceTracker]" = OrderedDict()
_registry_lock = threading.Lock()


def get_tracker(x_console_id: str = Header("default")) -> AttendanceTracker:
    """FastAPI dependency — one tracker per console, sharing one store client."""
    global _store_client
    # Runs in the threadpool; concurrent first requests must share one tracker
    with _registry_lock:
        if _store_client is None:
            _store_client = AttendanceStoreClient()

        tracker = _trackers.get(x_console_id)
        if tracker is None:
            tracker = AttendanceTracker(_store_client)
            _trackers[x_console_id] = tracker
            if len(_trackers) > _MAX_CONSOLES:
                _trackers.popitem(last=False)
        else:
            _trackers.move_to_end(x_console_id)
        return tracker


async def close_store_client():
    global _store_client
    _trackers.clear()
    if _store_client is not None:
        await _store_client.aclose()
        _store_client = None


def _superseded() -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": "Superseded by a newer request", "code": "superseded"})


@router.get("/today", response_model=TrackedDayView, summary="Live view of today's attendance")
async def today_view(q: Optional[str] = None, day: str = TODAY,
                     tracker: AttendanceTracker = Depends(get_tracker)):
    """Stats always describe the whole day; `q` only narrows the listed records."""
    view = await tracker.get_day_view(day)
    if view is None:
        return _superseded()
    if q:
        view = view.model_copy(update={"attendance": tracker.search(view.attendance, q)})
    return view


@router.get("/history", response_model=TrackedHistoryView, summary="Attendance history, one page at a time")
async def history_view(page: int = 1, start_date: Optional[date] = None, end_date: Optional[date] = None,
                       q: Optional[str] = None, tracker: AttendanceTracker = Depends(get_tracker)):
    end = end_date or local_today(tracker.tz)
    start = start_date or end - timedelta(days=settings.HISTORY_DEFAULT_DAYS)

    view = await tracker.get_history(DateRange(start=start, end=end), page)
    if view is None:
        return _superseded()
    if q:
        view = view.model_copy(update={"attendance": tracker.search(view.attendance, q)})
    return view


@router.post("/check-in", response_model=DashboardActionOut, summary="Check a member or staff in")
async def check_in(body: CheckInRequest, tracker: AttendanceTracker = Depends(get_tracker)):
    try:
        record = await tracker.record_check_in(body.subject, body.method, body.notes)
    except AlreadyCheckedIn as e:
        return DashboardActionOut(status="noop", notice=str(e))
    return DashboardActionOut(status="ok", record=record)


@router.post("/check-out", response_model=DashboardActionOut, summary="Check a member or staff out")
async def check_out(body: CheckOutRequest, tracker: AttendanceTracker = Depends(get_tracker)):
    try:
        record = await tracker.record_check_out(body.subject, body.method, body.notes)
    except NoOpenSession as e:
        return DashboardActionOut(status="noop", notice=str(e))
    return DashboardActionOut(status="ok", record=record)


@router.post("/views/{view}/abandon", summary="Drop the in-flight fetch of a view")
async def abandon_view(view: str, tracker: AttendanceTracker = Depends(get_tracker)):
    if view not in VIEWS:
        raise HTTPException(status_code=404, detail=f"Unknown view '{view}'")
    return {"view": view, "cancelled": tracker.abandon(view)}
