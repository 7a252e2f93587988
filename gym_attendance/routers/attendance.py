"""
Attendance Store endpoints.
Check-in / check-out (manual, QR, biometric), day view with stats,
paginated history and the list of people currently inside.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gym_attendance.config import settings
from gym_attendance.database import get_db
from gym_attendance.exceptions import InvalidRange
from gym_attendance.schemas.attendance import (
    AttendanceRecordOut,
    AttendanceStatus,
    BiometricScanRequest,
    CheckInRequest,
    CheckMethod,
    CheckOutRequest,
    DailyStats,
    DayView,
    HistoryPage,
    QrScanRequest,
    RecordCheckOutRequest,
    SubjectKind,
)
from gym_attendance.services import attendance_service, scan_service
from gym_attendance.services.attendance_stats import TODAY, compute_daily_stats, resolve_day

router = APIRouter()


def _out(records) -> list[AttendanceRecordOut]:
    return [AttendanceRecordOut.model_validate(r) for r in records]


@router.get("/attendance", response_model=DayView, summary="Records and stats for one day")
def get_day(target_date: str = Query(TODAY, alias="date"), db: Session = Depends(get_db)):
    """`date` is "today" or YYYY-MM-DD, in the facility time zone."""
    day = resolve_day(target_date, settings.facility_tz)
    records = _out(attendance_service.get_day_records(db, day, settings.facility_tz))
    return DayView(day=day, attendance=records, stats=compute_daily_stats(records))


@router.get("/attendance/stats", response_model=DailyStats, summary="Daily stats only")
def get_day_stats(target_date: str = Query(TODAY, alias="date"), db: Session = Depends(get_db)):
    day = resolve_day(target_date, settings.facility_tz)
    return compute_daily_stats(_out(attendance_service.get_day_records(db, day, settings.facility_tz)))


@router.get("/attendance/history", response_model=HistoryPage, summary="Paginated attendance history")
def get_history(
    page: int = 1,
    limit: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    kind: Optional[SubjectKind] = None,
    status: Optional[AttendanceStatus] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Newest first. A page beyond the last one comes back empty."""
    page_size = limit or settings.HISTORY_PAGE_SIZE
    if page_size > settings.HISTORY_MAX_PAGE_SIZE:
        raise InvalidRange(f"limit may not exceed {settings.HISTORY_MAX_PAGE_SIZE}")
    result = attendance_service.get_history(
        db, settings.facility_tz, page, page_size,
        start_date=start_date, end_date=end_date, kind=kind, status=status, search=search,
    )
    return HistoryPage(attendance=_out(result.records), page=result.page, page_size=result.page_size,
                       total_pages=result.total_pages, total=result.total)


@router.get("/attendance/active", response_model=list[AttendanceRecordOut], summary="Currently checked in")
def get_active(db: Session = Depends(get_db)):
    return _out(attendance_service.get_active_records(db))


@router.post("/attendance/check-in", response_model=AttendanceRecordOut, status_code=201,
             summary="Check a member or staff in")
def check_in(body: CheckInRequest, db: Session = Depends(get_db)):
    return attendance_service.check_in(db, body.subject, body.method, body.notes)


@router.post("/attendance/check-out", response_model=AttendanceRecordOut, summary="Check a member or staff out")
def check_out(body: CheckOutRequest, db: Session = Depends(get_db)):
    return attendance_service.check_out(db, body.subject, body.method, body.notes)


@router.put("/attendance/check-out/{record_id}", response_model=AttendanceRecordOut,
            summary="Close a specific open record")
def check_out_record(record_id: int, body: RecordCheckOutRequest, db: Session = Depends(get_db)):
    return attendance_service.check_out_record(db, record_id, body.method, body.notes)


@router.post("/attendance/qr-check-in", response_model=AttendanceRecordOut, status_code=201,
             summary="Check in from a scanned QR card")
def qr_check_in(body: QrScanRequest, db: Session = Depends(get_db)):
    subject = scan_service.parse_qr_payload(body.qr_code)
    return attendance_service.check_in(db, subject, CheckMethod.QR)


@router.post("/attendance/qr-check-out", response_model=AttendanceRecordOut, summary="Check out from a scanned QR card")
def qr_check_out(body: QrScanRequest, db: Session = Depends(get_db)):
    subject = scan_service.parse_qr_payload(body.qr_code)
    return attendance_service.check_out(db, subject, CheckMethod.QR)


@router.post("/attendance/biometric-check-in", response_model=AttendanceRecordOut, status_code=201,
             summary="Check in from a biometric reader")
def biometric_check_in(body: BiometricScanRequest, db: Session = Depends(get_db)):
    subject = scan_service.resolve_biometric(db, body.biometric_id)
    return attendance_service.check_in(db, subject, CheckMethod.BIOMETRIC)


@router.post("/attendance/biometric-check-out", response_model=AttendanceRecordOut,
             summary="Check out from a biometric reader")
def biometric_check_out(body: BiometricScanRequest, db: Session = Depends(get_db)):
    subject = scan_service.resolve_biometric(db, body.biometric_id)
    return attendance_service.check_out(db, subject, CheckMethod.BIOMETRIC)
