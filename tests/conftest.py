"""Shared fixtures: an in-memory SQLite store and roster helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gym_attendance.database import create_tables
from gym_attendance.models.roster_entry import RosterEntry


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def add_subject(db):
    def _add(kind="member", name="Asha", category="Gold", biometric_id=None, is_active=1):
        entry = RosterEntry(kind=kind, name=name, category=category,
                            biometric_id=biometric_id, is_active=is_active)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
    return _add
