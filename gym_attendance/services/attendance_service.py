"""
Attendance Store: check-in/check-out lifecycle and record queries.

Per subject the lifecycle is Out → In → Out:
  - check_in creates an open record (check_out_time NULL); refused while one is open
  - check_out closes the open record exactly once; refused when none is open

The database enforces the one-open-record rule (partial unique index) and
check-out is a conditional UPDATE on check_out_time IS NULL, so concurrent
devices racing on the same subject get AlreadyCheckedIn / NoOpenSession
instead of a second open session.
"""

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_attendance.exceptions import (
    AlreadyCheckedIn,
    InvalidCheckOut,
    InvalidRange,
    NoOpenSession,
    SubjectNotFound,
)
from gym_attendance.models.attendance_record import AttendanceRecord
from gym_attendance.models.roster_entry import RosterEntry
from gym_attendance.schemas.attendance import (
    AttendanceStatus,
    CheckMethod,
    SubjectKey,
    SubjectKind,
)
from gym_attendance.services.attendance_stats import total_pages, validate_page, validate_range
from gym_attendance.utils.logger import get_logger
from gym_attendance.utils.timeutils import day_bounds, to_db, utcnow

logger = get_logger(__name__)


@dataclass
class HistoryResult:
    records: list[AttendanceRecord]
    page: int
    page_size: int
    total_pages: int
    total: int


def resolve_subject(db: Session, key: SubjectKey) -> RosterEntry:
    entry = (
        db.query(RosterEntry)
        .filter(RosterEntry.id == key.id, RosterEntry.kind == key.kind.value)
        .first()
    )
    if not entry or not entry.is_active:
        raise SubjectNotFound(f"No active {key.kind.value} with id {key.id}")
    return entry


def find_open_record(db: Session, key: SubjectKey) -> Optional[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.subject_kind == key.kind.value,
            AttendanceRecord.subject_id == key.id,
            AttendanceRecord.check_out_time.is_(None),
        )
        .first()
    )


def check_in(db: Session, key: SubjectKey, method: CheckMethod = CheckMethod.MANUAL,
             notes: Optional[str] = None, now: Optional[datetime] = None) -> AttendanceRecord:
    """Out → In. Raises AlreadyCheckedIn when the subject is already inside."""
    entry = resolve_subject(db, key)

    existing = find_open_record(db, key)
    if existing:
        logger.info(f"[Attendance] {key} already checked in (record {existing.id})")
        raise AlreadyCheckedIn(f"{entry.name} is already checked in", record_id=existing.id)

    stamp = to_db(now or utcnow())
    record = AttendanceRecord(
        subject_kind=entry.kind,
        subject_id=entry.id,
        subject_name=entry.name,
        subject_category=entry.category,
        check_in_time=stamp,
        check_in_method=CheckMethod(method).value,
        notes=notes,
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # Another device opened a session between our lookup and the insert
        db.rollback()
        logger.info(f"[Attendance] {key} check-in lost a race with another device")
        raise AlreadyCheckedIn(f"{entry.name} is already checked in") from None
    db.refresh(record)

    logger.info(f"[Attendance] IN  {key} {entry.name} via {record.check_in_method} (record {record.id})")
    return record


def check_out(db: Session, key: SubjectKey, method: Optional[CheckMethod] = None,
              notes: Optional[str] = None, now: Optional[datetime] = None) -> AttendanceRecord:
    """In → Out. Raises NoOpenSession when the subject is not inside."""
    record = find_open_record(db, key)
    if not record:
        logger.info(f"[Attendance] {key} check-out with no open session")
        raise NoOpenSession(f"{key.kind.value.capitalize()} {key.id} is not checked in")
    return _close(db, record, method, notes, now)


def check_out_record(db: Session, record_id: int, method: Optional[CheckMethod] = None,
                     notes: Optional[str] = None, now: Optional[datetime] = None) -> AttendanceRecord:
    """Close a specific open record by id."""
    record = (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.id == record_id, AttendanceRecord.check_out_time.is_(None))
        .first()
    )
    if not record:
        raise NoOpenSession(f"Active attendance record {record_id} not found")
    return _close(db, record, method, notes, now)


def _close(db: Session, record: AttendanceRecord, method: Optional[CheckMethod],
           notes: Optional[str], now: Optional[datetime]) -> AttendanceRecord:
    stamp = to_db(now or utcnow())
    if stamp <= record.check_in_time:
        raise InvalidCheckOut(
            f"Check-out at {stamp.isoformat()} is not after check-in at {record.check_in_time.isoformat()}"
        )

    values = {
        AttendanceRecord.check_out_time: stamp,
        AttendanceRecord.check_out_method: CheckMethod(method).value if method else None,
        AttendanceRecord.updated_at: stamp,
    }
    if notes:
        values[AttendanceRecord.notes] = notes

    # Conditional write: only succeeds if nobody closed the record meanwhile
    updated = (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.id == record.id, AttendanceRecord.check_out_time.is_(None))
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        raise NoOpenSession(f"Attendance record {record.id} was already closed")
    db.commit()
    db.refresh(record)

    minutes = int((record.check_out_time - record.check_in_time).total_seconds()) // 60
    logger.info(
        f"[Attendance] OUT {record.subject_kind}:{record.subject_id} {record.subject_name} "
        f"after {minutes} min (record {record.id})"
    )
    return record


def get_day_records(db: Session, day: date, tz: tzinfo) -> list[AttendanceRecord]:
    """Records whose check-in falls inside `day` in the facility time zone, newest first."""
    start, end = day_bounds(day, tz)
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.check_in_time >= to_db(start),
            AttendanceRecord.check_in_time < to_db(end),
        )
        .order_by(AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc())
        .all()
    )


def get_active_records(db: Session) -> list[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.check_out_time.is_(None))
        .order_by(AttendanceRecord.check_in_time.desc())
        .all()
    )


def get_history(db: Session, tz: tzinfo, page: int, page_size: int,
                start_date: Optional[date] = None, end_date: Optional[date] = None,
                kind: Optional[SubjectKind] = None, status: Optional[AttendanceStatus] = None,
                search: Optional[str] = None) -> HistoryResult:
    """
    One page of records with check-in inside [start_date, end_date] (whole
    days, inclusive), newest first. A page past the end is simply empty.
    """
    validate_range(start_date, end_date)
    validate_page(page)
    if page_size < 1:
        raise InvalidRange("page size must be at least 1")

    q = db.query(AttendanceRecord)
    if start_date:
        q = q.filter(AttendanceRecord.check_in_time >= to_db(day_bounds(start_date, tz)[0]))
    if end_date:
        q = q.filter(AttendanceRecord.check_in_time < to_db(day_bounds(end_date, tz)[1]))
    if kind:
        q = q.filter(AttendanceRecord.subject_kind == SubjectKind(kind).value)
    if status == AttendanceStatus.CHECKED_IN:
        q = q.filter(AttendanceRecord.check_out_time.is_(None))
    elif status == AttendanceStatus.CHECKED_OUT:
        q = q.filter(AttendanceRecord.check_out_time.isnot(None))
    if search and search.strip():
        q = q.filter(AttendanceRecord.subject_name.ilike(f"%{_escape_like(search.strip())}%", escape="\\"))

    total = q.count()
    records = (
        q.order_by(AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return HistoryResult(records=records, page=page, page_size=page_size,
                         total_pages=total_pages(total, page_size), total=total)


def _escape_like(term: str) -> str:
    """Make `term` match literally inside a LIKE pattern."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
