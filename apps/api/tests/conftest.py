"""Shared fixtures: in-memory SQLite store, service wiring and API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLINIC_TIMEZONE", "UTC")

from datetime import datetime, timedelta  # noqa: E402
from zoneinfo import ZoneInfo  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hms_scheduling.core.database import Base, get_db  # noqa: E402
from hms_scheduling.models.appointment import Appointment  # noqa: E402,F401
from hms_scheduling.models.provider import Provider  # noqa: E402
from hms_scheduling.models.provider_schedule import ProviderScheduleRule  # noqa: E402,F401
from hms_scheduling.models.resource import Resource  # noqa: E402,F401
from hms_scheduling.models.slot import AppointmentSlot, SlotType  # noqa: E402
from hms_scheduling.models.time_off import ProviderTimeOff  # noqa: E402,F401
from hms_scheduling.services.events import EventPublisher  # noqa: E402
from hms_scheduling.services.scheduling_service import SchedulingService  # noqa: E402

UTC = ZoneInfo("UTC")


class RecordingPublisher(EventPublisher):
    """Keeps every published event for assertions."""

    def __init__(self, subscribers=None):
        super().__init__(subscribers)
        self.events = []

    def publish(self, event):
        self.events.append(event)
        super().publish(event)


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads through a single connection."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def service(db, publisher):
    return SchedulingService(db, publisher=publisher, tz=UTC)


@pytest.fixture
def provider(db):
    p = Provider(name="Dr. Adaeze Okafor", specialization="Cardiology", department="Cardiology")
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture
def make_slot(db, provider):
    """Insert a slot directly, bypassing conflict checks."""

    def _make(start, minutes=30, **overrides):
        values = dict(
            provider_id=provider.provider_id,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            duration=minutes,
            slot_type=SlotType.CONSULTATION,
            max_bookings=1,
            current_bookings=0,
            is_available=True,
            is_bookable=True,
        )
        values.update(overrides)
        slot = AppointmentSlot(**values)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make


@pytest.fixture
def monday_9am():
    # 2024-01-01 is a Monday
    return datetime(2024, 1, 1, 9, 0)


@pytest.fixture
def client(session_factory):
    """API client whose requests run against the test database."""
    from hms_scheduling.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
