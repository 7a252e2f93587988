"""
System health check endpoint.
Returns status of backend + DB + Attendance Store reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from gym_attendance.database import get_db
from gym_attendance.config import settings
from gym_attendance.utils.timeutils import utcnow

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(deep: bool = True, db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Attendance Store reachability (only when deep=true; the store is
      pinged with deep=false so two instances never ping each other forever)
    """
    result = {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "store": "skipped",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if not deep:
        return result

    headers = {"X-API-Key": settings.STORE_API_KEY} if settings.STORE_API_KEY else {}
    try:
        resp = requests.get(
            f"{settings.STORE_BASE_URL.rstrip('/')}/health",
            params={"deep": "false"},
            headers=headers,
            timeout=settings.STORE_TIMEOUT_SECONDS,
        )
        result["store"] = "ok" if resp.status_code == 200 else f"http_{resp.status_code}"
        if resp.status_code != 200:
            result["status"] = "degraded"
    except requests.exceptions.ConnectionError:
        result["store"] = "unreachable"
        result["status"] = "degraded"
    except requests.exceptions.Timeout:
        result["store"] = "timeout"
        result["status"] = "degraded"
    except requests.exceptions.RequestException as e:
        result["store"] = f"error: {e.__class__.__name__}"
        result["status"] = "degraded"

    return result
