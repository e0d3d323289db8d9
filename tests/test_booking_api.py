"""
Tests for the HTTP API.

Services are open around the clock in UTC so the tests do not depend on the
wall clock beyond "tomorrow".
"""

import uuid
from datetime import datetime, time, timedelta, timezone

import pytest
from httpx import AsyncClient

from slotbook.core.config import settings


def _tomorrow_at(hour: int) -> datetime:
    tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).date()
    return datetime.combine(tomorrow, time(hour, 0), tzinfo=timezone.utc)


@pytest.fixture
def open_service(memory_store, make_service, hours):
    def _make(**overrides):
        values = {
            "working_hours": hours(days=range(7), start="00:00", end="24:00"),
            "timezone": "UTC",
        }
        values.update(overrides)
        return make_service(memory_store, **values)

    return _make


def _booking(start: datetime, email: str = "jane@example.com") -> dict:
    return {
        "start_time": start.isoformat(),
        "contact": {"name": "Jane Doe", "email": email, "phone": "555-0100"},
        "notes": "Gate code 1234",
    }


# =============================================================================
# Public booking
# =============================================================================

@pytest.mark.asyncio
async def test_get_public_service(client: AsyncClient, open_service):
    service = open_service()
    response = await client.get(f"/book/services/{service.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Lawn Mowing"
    assert data["duration_minutes"] == 60
    assert data["require_confirmation"] is False


@pytest.mark.asyncio
async def test_unknown_service_is_404(client: AsyncClient):
    response = await client.get(f"/book/services/{uuid.uuid4()}/availability")
    assert response.status_code == 404
    assert response.json()["code"] == "service_not_found"


@pytest.mark.asyncio
async def test_booking_link(client: AsyncClient, open_service):
    service = open_service()
    response = await client.get(f"/book/services/{service.id}/link")
    assert response.status_code == 200
    data = response.json()
    assert data["public_link"] == f"{settings.public_app_url}/book/{service.id}"
    assert data["embed_code"].startswith(f'<iframe src="{data["public_link"]}"')


@pytest.mark.asyncio
async def test_availability_for_a_day(client: AsyncClient, open_service):
    service = open_service()
    day = _tomorrow_at(0).date().isoformat()
    response = await client.get(
        f"/book/services/{service.id}/availability",
        params={"range_start": day, "range_end": day},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["service_id"] == str(service.id)
    assert len(data["days"]) == 1
    assert data["days"][0]["date"] == day
    assert len(data["days"][0]["slots"]) == 24


@pytest.mark.asyncio
async def test_availability_rejects_bad_range(client: AsyncClient, open_service):
    service = open_service()
    response = await client.get(
        f"/book/services/{service.id}/availability",
        params={"range_start": "next tuesday"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_book_and_conflict(client: AsyncClient, open_service, notifier):
    service = open_service()
    start = _tomorrow_at(10)

    response = await client.post(f"/book/services/{service.id}/book", json=_booking(start))
    assert response.status_code == 201
    appt = response.json()
    assert appt["status"] == "scheduled"
    assert appt["notes"] == "Gate code 1234"
    assert notifier.names == ["client_confirmed", "contractor"]

    fetched = await client.get(f"/appointments/{appt['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["contact_id"] == appt["contact_id"]

    clash = await client.post(
        f"/book/services/{service.id}/book",
        json=_booking(start + timedelta(minutes=30), email="other@example.com"),
    )
    assert clash.status_code == 409
    assert clash.json()["code"] == "slot_unavailable"


@pytest.mark.asyncio
async def test_book_past_slot(client: AsyncClient, open_service):
    service = open_service()
    start = datetime.now(timezone.utc) - timedelta(days=1)
    response = await client.post(f"/book/services/{service.id}/book", json=_booking(start))
    assert response.status_code == 400
    assert response.json()["code"] == "slot_in_past"


@pytest.mark.asyncio
async def test_book_invalid_email(client: AsyncClient, open_service):
    service = open_service()
    response = await client.post(
        f"/book/services/{service.id}/book",
        json=_booking(_tomorrow_at(10), email="not-an-email"),
    )
    assert response.status_code == 422


# =============================================================================
# Contractor actions
# =============================================================================

@pytest.mark.asyncio
async def test_confirm_flow(client: AsyncClient, open_service):
    service = open_service(booking_settings={"require_confirmation": True})
    response = await client.post(
        f"/book/services/{service.id}/book", json=_booking(_tomorrow_at(11))
    )
    appt = response.json()
    assert appt["status"] == "pending-confirmation"

    confirmed = await client.post(f"/appointments/{appt['id']}/confirm")
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "scheduled"

    again = await client.post(f"/appointments/{appt['id']}/confirm")
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_transition"


@pytest.mark.asyncio
async def test_decline_with_reason(client: AsyncClient, open_service, notifier):
    service = open_service(booking_settings={"require_confirmation": True})
    response = await client.post(
        f"/book/services/{service.id}/book", json=_booking(_tomorrow_at(12))
    )
    appt_id = response.json()["id"]

    declined = await client.post(
        f"/appointments/{appt_id}/decline", json={"reason": "Out of town"}
    )
    assert declined.status_code == 200
    assert declined.json()["status"] == "cancelled"
    assert "Declined: Out of town" in declined.json()["notes"]
    assert notifier.names[-1] == "client_declined"


@pytest.mark.asyncio
async def test_lifecycle_endpoints(client: AsyncClient, open_service):
    service = open_service()
    response = await client.post(
        f"/book/services/{service.id}/book", json=_booking(_tomorrow_at(13))
    )
    appt_id = response.json()["id"]

    started = await client.post(f"/appointments/{appt_id}/start")
    assert started.json()["status"] == "in-progress"
    completed = await client.post(f"/appointments/{appt_id}/complete")
    assert completed.json()["status"] == "completed"

    cancelled = await client.post(f"/appointments/{appt_id}/cancel", json={"reason": "late"})
    assert cancelled.status_code == 409


@pytest.mark.asyncio
async def test_manual_creation_conflict(client: AsyncClient, open_service):
    service = open_service()
    response = await client.post(
        f"/book/services/{service.id}/book", json=_booking(_tomorrow_at(14))
    )
    booked = response.json()

    manual = await client.post(
        "/appointments",
        json={
            "service_id": str(service.id),
            "contact_id": booked["contact_id"],
            "start_time": _tomorrow_at(14).isoformat(),
            "end_time": (_tomorrow_at(14) + timedelta(hours=2)).isoformat(),
        },
    )
    assert manual.status_code == 409
    body = manual.json()
    assert body["code"] == "appointment_conflict"
    assert body["conflicting_ids"] == [booked["id"]]

    later = await client.post(
        "/appointments",
        json={
            "service_id": str(service.id),
            "contact_id": booked["contact_id"],
            "start_time": _tomorrow_at(16).isoformat(),
        },
    )
    assert later.status_code == 201
    assert later.json()["source"] == "manual"


@pytest.mark.asyncio
async def test_unknown_appointment(client: AsyncClient):
    response = await client.post(f"/appointments/{uuid.uuid4()}/start")
    assert response.status_code == 404
    assert response.json()["code"] == "appointment_not_found"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["store"] == "memory"
