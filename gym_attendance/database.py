"""
Database connection, session management, and table creation.
Uses SQLAlchemy; PostgreSQL in production, SQLite for development.
All models are auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from gym_attendance.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool; SQLite must allow that
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,   # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,                  # Set True to log all SQL queries (debug only)
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from gym_attendance.models.roster_entry import RosterEntry              # noqa
    from gym_attendance.models.attendance_record import AttendanceRecord    # noqa

    Base.metadata.create_all(bind=bind or engine)
