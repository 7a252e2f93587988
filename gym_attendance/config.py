"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional
from zoneinfo import ZoneInfo


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./gym_attendance.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "127.0.0.1"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Attendance Store (consumed by the tracker) ────────────────────────
    STORE_BASE_URL: str = "http://127.0.0.1:8080/api/v1"
    STORE_API_KEY: Optional[str] = None
    STORE_TIMEOUT_SECONDS: float = 5.0

    # ── Facility ──────────────────────────────────────────────────────────
    FACILITY_TIMEZONE: str = "UTC"   # IANA name, e.g. "Asia/Kolkata"

    # ── History paging ────────────────────────────────────────────────────
    HISTORY_PAGE_SIZE: int = 10
    HISTORY_MAX_PAGE_SIZE: int = 100
    HISTORY_DEFAULT_DAYS: int = 30   # Dashboard range when no dates are given

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    @property
    def facility_tz(self) -> ZoneInfo:
        return ZoneInfo(self.FACILITY_TIMEZONE)

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
