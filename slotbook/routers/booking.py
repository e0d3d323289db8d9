"""Public booking router - unauthenticated endpoints for clients.

- View a bookable service and its shareable link
- View open time slots
- Submit a booking
"""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from slotbook.core.config import settings
from slotbook.core.deps import get_notifier, get_store
from slotbook.core.rate_limit import limiter
from slotbook.schemas.booking import (
    AppointmentRead,
    AvailabilityRead,
    BookingLinkRead,
    BookingRequest,
    DayAvailabilityRead,
    PublicServiceRead,
    TimeSlotRead,
)
from slotbook.services import booking_service, slot_service
from slotbook.services.errors import ValidationError
from slotbook.services.notifier import Notifier
from slotbook.stores import BookingStore

router = APIRouter()


def _parse_range_bound(value: str | None, name: str) -> date | datetime | None:
    """Accept either a calendar date (YYYY-MM-DD) or an ISO-8601 instant."""
    if not value:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}: {value!r}")


# =============================================================================
# Service Page
# =============================================================================

@router.get("/services/{service_id}", response_model=PublicServiceRead)
def get_public_service(
    service_id: UUID,
    store: BookingStore = Depends(get_store),
):
    """Service details for the public booking page."""
    service = booking_service.get_service(store, service_id)
    return PublicServiceRead(
        id=service.id,
        name=service.name,
        description=service.description,
        duration_minutes=service.duration_minutes,
        price=service.price,
        availability=service.availability or {},
        require_confirmation=bool(
            (service.booking_settings or {}).get("require_confirmation", False)
        ),
    )


@router.get("/services/{service_id}/link", response_model=BookingLinkRead)
def get_booking_link(
    service_id: UUID,
    store: BookingStore = Depends(get_store),
):
    """Shareable booking URL and embed code."""
    link = booking_service.get_booking_link(store, service_id)
    return BookingLinkRead(**link._asdict())


# =============================================================================
# Availability
# =============================================================================

@router.get("/services/{service_id}/availability", response_model=AvailabilityRead)
def get_availability(
    service_id: UUID,
    range_start: str | None = Query(None, description="Date (YYYY-MM-DD) or ISO-8601 instant"),
    range_end: str | None = Query(None, description="Defaults to the advance booking window"),
    store: BookingStore = Depends(get_store),
):
    """
    Open slots grouped by the business's local date.

    Slots are UTC instants. The listing is not a reservation; booking
    re-validates the chosen slot.
    """
    availability = slot_service.get_availability(
        store,
        service_id,
        range_start=_parse_range_bound(range_start, "range_start"),
        range_end=_parse_range_bound(range_end, "range_end"),
    )
    return AvailabilityRead(
        service_id=availability.service_id,
        days=[
            DayAvailabilityRead(
                date=day.date,
                slots=[TimeSlotRead(start=s.start, end=s.end) for s in day.slots],
            )
            for day in availability.days
        ],
    )


# =============================================================================
# Booking
# =============================================================================

@router.post("/services/{service_id}/book", response_model=AppointmentRead, status_code=201)
@limiter.limit(settings.RATE_LIMIT_BOOKING)
def book_service(
    service_id: UUID,
    data: BookingRequest,
    request: Request,
    store: BookingStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Book a slot.

    Scheduled immediately unless the service requires confirmation, in which
    case the appointment waits in pending-confirmation. Rate limited to
    prevent spam.
    """
    contact = booking_service.ContactInput(**data.contact.model_dump())
    appointment = booking_service.book(
        store,
        service_id,
        data.start_time,
        contact,
        location=data.location,
        notes=data.notes,
        notifier=notifier,
    )
    return AppointmentRead.model_validate(appointment)
