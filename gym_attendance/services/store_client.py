"""
HTTP client for the Attendance Store.

Every call is a single request with a bounded timeout. Whatever goes wrong
on the wire is translated into the attendance error taxonomy here, so
callers never see httpx exceptions or raw status codes:
  - timeouts, connection failures, 5xx, unreadable bodies → TransientFetchFailure
  - error bodies with a known "code"                    → that error class
"""

from datetime import date
from typing import Optional

import httpx
from pydantic import ValidationError

from gym_attendance.config import settings
from gym_attendance.exceptions import ERRORS_BY_CODE, TransientFetchFailure
from gym_attendance.schemas.attendance import (
    AttendanceRecordOut,
    CheckMethod,
    DayView,
    HistoryPage,
    SubjectKey,
)
from gym_attendance.utils.logger import get_logger

logger = get_logger(__name__)


class AttendanceStoreClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Accept": "application/json"}
        api_key = api_key if api_key is not None else settings.STORE_API_KEY
        if api_key:
            headers["X-API-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.STORE_BASE_URL).rstrip("/"),
            timeout=timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    # ── Queries ──────────────────────────────────────────────────────────

    async def fetch_day(self, selector: str = "today") -> DayView:
        data = await self._request("GET", "/attendance", params={"date": selector})
        return self._parse(DayView, data)

    async def fetch_history(self, page: int, page_size: int,
                            start_date: Optional[date] = None, end_date: Optional[date] = None) -> HistoryPage:
        params = {"page": page, "limit": page_size}
        if start_date:
            params["start_date"] = start_date.isoformat()
        if end_date:
            params["end_date"] = end_date.isoformat()
        data = await self._request("GET", "/attendance/history", params=params)
        return self._parse(HistoryPage, data)

    # ── Commands ─────────────────────────────────────────────────────────

    async def check_in(self, subject: SubjectKey, method: CheckMethod,
                       notes: Optional[str] = None) -> AttendanceRecordOut:
        body = {"subject": subject.model_dump(mode="json"), "method": CheckMethod(method).value}
        if notes:
            body["notes"] = notes
        data = await self._request("POST", "/attendance/check-in", json=body)
        return self._parse(AttendanceRecordOut, data)

    async def check_out(self, subject: SubjectKey, method: Optional[CheckMethod] = None,
                        notes: Optional[str] = None) -> AttendanceRecordOut:
        body = {"subject": subject.model_dump(mode="json")}
        if method:
            body["method"] = CheckMethod(method).value
        if notes:
            body["notes"] = notes
        data = await self._request("POST", "/attendance/check-out", json=body)
        return self._parse(AttendanceRecordOut, data)

    # ── Internals ────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs):
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            logger.warning(f"[Store] {method} {path} timed out")
            raise TransientFetchFailure("Attendance store did not answer in time") from None
        except httpx.HTTPError as e:
            logger.warning(f"[Store] {method} {path} failed: {e!r}")
            raise TransientFetchFailure("Attendance store is unreachable") from None

        if response.is_success:
            try:
                return response.json()
            except ValueError:
                logger.error(f"[Store] {method} {path} returned a non-JSON body")
                raise TransientFetchFailure("Attendance store sent an unreadable response") from None

        raise self._error_from(response, method, path)

    @staticmethod
    def _error_from(response: httpx.Response, method: str, path: str) -> Exception:
        detail, code = None, None
        try:
            body = response.json()
            if isinstance(body, dict):
                detail, code = body.get("detail"), body.get("code")
        except ValueError:
            pass

        error_cls = ERRORS_BY_CODE.get(code)
        if error_cls is not None:
            return error_cls(detail if isinstance(detail, str) else None)

        logger.warning(f"[Store] {method} {path} → HTTP {response.status_code}: {detail}")
        return TransientFetchFailure(f"Attendance store answered HTTP {response.status_code}")

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"[Store] Malformed {model.__name__} payload: {e}")
            raise TransientFetchFailure("Attendance store sent a malformed response") from None
