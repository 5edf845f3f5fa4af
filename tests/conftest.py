"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all CareLedger tests.
Fixtures include database sessions, test clients and sample profiles, items and occurrences.
"""

import os
import sys
from datetime import datetime, date
from typing import Generator, Callable

from tests import TEST_DATABASE_URL

# In-memory database for the app engine created at import time
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db
from models import Profile, ScheduledItem, OccurrenceEvent, EventStatus, ItemType
from app import app


# Items are backdated so every test day falls after their start day
ITEM_CREATED_AT = datetime(2024, 1, 1, 12, 0)


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def test_profile(db_session: Session) -> Profile:
    """Profile on UTC so local and stored times coincide"""
    profile = Profile(name="Ana Souza", timezone="UTC", is_active=True)
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def sao_paulo_profile(db_session: Session) -> Profile:
    """Profile on America/Sao_Paulo (UTC-3)"""
    profile = Profile(name="Carlos Lima", timezone="America/Sao_Paulo", is_active=True)
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def inactive_profile(db_session: Session) -> Profile:
    profile = Profile(name="Inativo", timezone="UTC", is_active=False)
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def test_medication(db_session: Session, test_profile: Profile) -> ScheduledItem:
    """Twice-daily medication with stock"""
    item = ScheduledItem(
        profile_id=test_profile.id,
        item_type=ItemType.MEDICATION.value,
        title="Losartana",
        dosage="50mg",
        rule={"kind": "daily", "times": ["08:00", "20:00"]},
        stock_quantity=10,
        active=True,
        created_at=ITEM_CREATED_AT
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def test_routine(db_session: Session, test_profile: Profile) -> ScheduledItem:
    """Routine on Monday, Wednesday and Friday mornings"""
    item = ScheduledItem(
        profile_id=test_profile.id,
        item_type=ItemType.ROUTINE.value,
        title="Caminhada",
        rule={"kind": "weekly", "days_of_week": [1, 3, 5], "time": "07:00"},
        active=True,
        created_at=ITEM_CREATED_AT
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def make_event(db_session: Session) -> Callable[..., OccurrenceEvent]:
    """Factory writing ledger rows directly, bypassing the state machine"""

    def _make(
        profile: Profile,
        scheduled_at: datetime,
        status: str = EventStatus.PENDING.value,
        item_type: str = ItemType.MEDICATION.value,
        item_id: int = 1,
        occurrence_date: date = None,
        confirmed_at: datetime = None
    ) -> OccurrenceEvent:
        event = OccurrenceEvent(
            profile_id=profile.id,
            item_type=item_type,
            item_id=item_id,
            occurrence_date=occurrence_date or scheduled_at.date(),
            scheduled_at=scheduled_at,
            confirmed_at=confirmed_at,
            status=status
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make
