"""
Test configuration and fixtures.

Provides:
- Booking stores (in-memory and SQLite-backed database store)
- Service factory with a fixed business timezone
- Recording notifier
- HTTPX AsyncClient against the app with store/notifier overrides
"""
import os
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient

# Disable rate limiting and keep the app off the default database file
os.environ["TESTING"] = "1"
os.environ["STORE_BACKEND"] = "memory"
os.environ["NOTIFIER_BACKEND"] = "log"

from slotbook.core.deps import get_notifier, get_store
from slotbook.db.base import Base
from slotbook.db.models import Contact, Service
from slotbook.db.session import build_engine
from slotbook.main import app
from slotbook.services.notifier import Notifier
from slotbook.stores import BookingStore, DatabaseStore, MemoryStore


# Sunday 2026-01-04 12:00 in UTC-8
NOW = datetime(2026, 1, 4, 20, 0, tzinfo=timezone.utc)


def weekly_hours(days=range(5), start: str = "09:00", end: str = "17:00") -> list[dict]:
    """Working-hours entries, open on the given weekdays (Monday=0)."""
    open_days = set(days)
    return [
        {
            "day_of_week": day,
            "is_working": day in open_days,
            "start_time": start,
            "end_time": end,
        }
        for day in range(7)
    ]


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def database_store(tmp_path) -> Generator[DatabaseStore, None, None]:
    """Database store on a throwaway SQLite file."""
    engine = build_engine(f"sqlite:///{tmp_path / 'slotbook.db'}")
    Base.metadata.create_all(engine)
    yield DatabaseStore(engine)
    engine.dispose()


@pytest.fixture(params=["memory", "database"])
def store(request) -> BookingStore:
    """Run a test once per store backend."""
    return request.getfixturevalue(f"{request.param}_store")


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def hours():
    """The weekly_hours builder, for tests that need custom working days."""
    return weekly_hours


@pytest.fixture
def make_service(tenant_id):
    """Factory creating a service in the given store."""

    def _make(
        store: BookingStore,
        *,
        name: str = "Lawn Mowing",
        duration_minutes: int = 60,
        working_hours: list[dict] | None = None,
        is_active: bool = True,
        booking_settings: dict | None = None,
        **availability,
    ) -> Service:
        settings_ = {"max_bookings_per_slot": 1, "require_confirmation": False}
        settings_.update(booking_settings or {})
        policy = {
            "working_hours": weekly_hours() if working_hours is None else working_hours,
            "buffer_minutes": 0,
            "advance_booking_days": 30,
            "same_day_booking": False,
            "timezone_offset_hours": -8,
        }
        policy.update(availability)
        service = Service(
            tenant_id=tenant_id,
            name=name,
            duration_minutes=duration_minutes,
            availability=policy,
            booking_settings=settings_,
            is_active=is_active,
        )
        with store.begin() as uow:
            return uow.add_service(service)

    return _make


@pytest.fixture
def make_contact(tenant_id):
    def _make(store: BookingStore, **fields) -> Contact:
        values = {
            "tenant_id": tenant_id,
            "first_name": "Jane",
            "last_name": "Doe",
            "email": f"jane-{uuid.uuid4().hex[:8]}@example.com",
        }
        values.update(fields)
        with store.begin() as uow:
            return uow.add_contact(Contact(**values))

    return _make


# =============================================================================
# Notifier Fixtures
# =============================================================================

class RecordingNotifier(Notifier):
    """Collects notifier calls as (event, appointment_id, extra) tuples."""

    def __init__(self, fail: bool = False):
        self.events: list[tuple] = []
        self.fail = fail

    def _record(self, event, appointment, extra=None):
        self.events.append((event, appointment.id, extra))
        if self.fail:
            raise RuntimeError("notifier down")

    def notify_client_pending(self, contact, appointment):
        self._record("client_pending", appointment)

    def notify_client_confirmed(self, contact, appointment):
        self._record("client_confirmed", appointment)

    def notify_client_declined(self, contact, appointment, reason=None):
        self._record("client_declined", appointment, reason)

    def notify_contractor(self, appointment, is_pending):
        self._record("contractor", appointment, is_pending)

    @property
    def names(self) -> list[str]:
        return [event for event, _, _ in self.events]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    """Notifier whose every call raises after being recorded."""
    return RecordingNotifier(fail=True)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture
async def client(
    memory_store: MemoryStore,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient bound to a fresh in-memory store."""
    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()

