"""
Derived attendance figures: daily stats, ordering, search and page counts.

Everything here is pure and recomputed from the record list it is given.
Both the store and the tracker call these on every fetch so counters can
never drift from the records they describe.
"""

import math
from datetime import date, datetime, tzinfo
from typing import Iterable, Optional

from gym_attendance.exceptions import InvalidRange
from gym_attendance.schemas.attendance import AttendanceRecordOut, DailyStats, SubjectKind
from gym_attendance.utils.timeutils import local_today

TODAY = "today"


def compute_daily_stats(records: Iterable[AttendanceRecordOut]) -> DailyStats:
    stats = DailyStats()
    for record in records:
        stats.total_today += 1
        if record.check_out_time is None:
            stats.currently_in += 1
        if record.subject.kind == SubjectKind.MEMBER:
            stats.members_today += 1
        elif record.subject.kind == SubjectKind.STAFF:
            stats.staff_today += 1
    return stats


def sort_recent_first(records: Iterable[AttendanceRecordOut]) -> list[AttendanceRecordOut]:
    return sorted(records, key=lambda r: (r.check_in_time, r.id), reverse=True)


def search_records(records: Iterable[AttendanceRecordOut], query: Optional[str]) -> list[AttendanceRecordOut]:
    """Case-insensitive substring match on the subject's display name."""
    needle = (query or "").strip().casefold()
    if not needle:
        return list(records)
    return [r for r in records if needle in r.subject.name.casefold()]


def total_pages(match_count: int, page_size: int) -> int:
    if page_size < 1:
        raise InvalidRange("page size must be at least 1")
    return math.ceil(match_count / page_size)


def validate_page(page: int) -> None:
    if page < 1:
        raise InvalidRange("page numbers start at 1")


def validate_range(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end < start:
        raise InvalidRange(f"end date {end} is before start date {start}")


def resolve_day(selector: Optional[str], tz: tzinfo, now: Optional[datetime] = None) -> date:
    """Turn "today" or an ISO date string into a calendar day."""
    if not selector or selector == TODAY:
        return local_today(tz, now)
    try:
        return date.fromisoformat(selector)
    except ValueError:
        raise InvalidRange(f"'{selector}' is not 'today' or a YYYY-MM-DD date") from None
