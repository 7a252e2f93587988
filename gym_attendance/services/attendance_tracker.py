"""
Attendance Tracker — the dashboard's view of the Attendance Store.

Holds nothing but the last good snapshot of each view. Stats are always
recomputed from the records the store returns; the store's own counters are
ignored. Each view ("day", "history") allows one in-flight fetch: a newer
fetch or an explicit abandon() cancels the older one, and a superseded
fetch returns None instead of a stale result.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from gym_attendance.config import settings
from gym_attendance.exceptions import AttendanceError, InvalidRange, TransientFetchFailure
from gym_attendance.schemas.attendance import (
    AttendanceRecordOut,
    CheckMethod,
    DailyStats,
    DateRange,
    SubjectKey,
    TrackedDayView,
    TrackedHistoryView,
)
from gym_attendance.services.attendance_stats import (
    TODAY,
    compute_daily_stats,
    resolve_day,
    search_records,
    sort_recent_first,
    total_pages,
    validate_page,
    validate_range,
)
from gym_attendance.services.store_client import AttendanceStoreClient
from gym_attendance.utils.logger import get_logger

logger = get_logger(__name__)

DAY_VIEW = "day"
HISTORY_VIEW = "history"
VIEWS = (DAY_VIEW, HISTORY_VIEW)


class _ViewSlot:
    def __init__(self):
        self.generation = 0
        self.task: Optional[asyncio.Task] = None
        self.last_good = None


class AttendanceTracker:
    def __init__(self, client: AttendanceStoreClient, page_size: Optional[int] = None, tz=None):
        self._client = client
        self.page_size = page_size or settings.HISTORY_PAGE_SIZE
        self.tz = tz or settings.facility_tz
        self._views = {view: _ViewSlot() for view in VIEWS}

    # ── Commands ─────────────────────────────────────────────────────────

    async def record_check_in(self, subject: SubjectKey, method: CheckMethod = CheckMethod.MANUAL,
                              notes: Optional[str] = None) -> AttendanceRecordOut:
        """Raises AlreadyCheckedIn, SubjectNotFound or TransientFetchFailure."""
        record = await self._client.check_in(subject, method, notes)
        logger.info(f"[Tracker] Checked in {subject} ({record.subject.name}) via {CheckMethod(method).value}")
        return record

    async def record_check_out(self, subject: SubjectKey, method: Optional[CheckMethod] = None,
                               notes: Optional[str] = None) -> AttendanceRecordOut:
        """Raises NoOpenSession or TransientFetchFailure."""
        record = await self._client.check_out(subject, method, notes)
        logger.info(f"[Tracker] Checked out {subject} ({record.subject.name}) after {record.duration}")
        return record

    # ── Views ────────────────────────────────────────────────────────────

    async def get_today_view(self) -> Optional[TrackedDayView]:
        return await self.get_day_view(TODAY)

    async def get_day_view(self, selector: str = TODAY) -> Optional[TrackedDayView]:
        day = resolve_day(selector, self.tz)   # InvalidRange before any request
        slot = self._views[DAY_VIEW]
        try:
            fetched = await self._latest(DAY_VIEW, lambda: self._client.fetch_day(selector))
        except TransientFetchFailure as e:
            return self._fallback(slot, e, TrackedDayView(day=day, attendance=[], stats=DailyStats()))
        if fetched is None:
            return None

        records = sort_recent_first(fetched.attendance)
        view = TrackedDayView(day=fetched.day, attendance=records, stats=compute_daily_stats(records))
        slot.last_good = view
        return view

    async def get_history(self, date_range: DateRange, page: int = 1,
                          page_size: Optional[int] = None) -> Optional[TrackedHistoryView]:
        page_size = page_size or self.page_size
        validate_range(date_range.start, date_range.end)
        validate_page(page)
        if page_size < 1:
            raise InvalidRange("page size must be at least 1")

        slot = self._views[HISTORY_VIEW]
        try:
            fetched = await self._latest(
                HISTORY_VIEW,
                lambda: self._client.fetch_history(page, page_size, date_range.start, date_range.end),
            )
        except TransientFetchFailure as e:
            empty = TrackedHistoryView(attendance=[], page=page, page_size=page_size, total_pages=0, total=0)
            return self._fallback(slot, e, empty)
        if fetched is None:
            return None

        view = TrackedHistoryView(
            attendance=sort_recent_first(fetched.attendance),
            page=page,
            page_size=page_size,
            total_pages=total_pages(fetched.total, page_size),
            total=fetched.total,
        )
        slot.last_good = view
        return view

    def abandon(self, view: str) -> bool:
        """Drop the in-flight fetch for `view` (e.g. the user left the tab)."""
        slot = self._views[view]
        slot.generation += 1
        if slot.task is not None and not slot.task.done():
            slot.task.cancel()
            logger.debug(f"[Tracker] Abandoned in-flight {view} fetch")
            return True
        return False

    @staticmethod
    def search(records: list[AttendanceRecordOut], query: Optional[str]) -> list[AttendanceRecordOut]:
        return search_records(records, query)

    # ── Internals ────────────────────────────────────────────────────────

    async def _latest(self, view: str, fetch: Callable[[], Awaitable]):
        """Run `fetch` as the only in-flight request of `view`; None if superseded."""
        slot = self._views[view]
        slot.generation += 1
        generation = slot.generation
        if slot.task is not None and not slot.task.done():
            slot.task.cancel()

        task = asyncio.ensure_future(fetch())
        slot.task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if slot.generation != generation:
                logger.debug(f"[Tracker] {view} fetch superseded")
                return None
            raise
        except AttendanceError:
            if slot.generation != generation:
                return None
            raise
        finally:
            if slot.task is task:
                slot.task = None

        if slot.generation != generation:
            logger.debug(f"[Tracker] Discarding late {view} result")
            return None
        return result

    @staticmethod
    def _fallback(slot: _ViewSlot, error: TransientFetchFailure, empty):
        logger.warning(f"[Tracker] Showing last known data: {error}")
        base = slot.last_good if slot.last_good is not None else empty
        return base.model_copy(update={"stale": True, "error": str(error)})
