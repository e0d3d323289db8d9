"""Booking service - public booking of a service slot.

Handles:
- Public service lookup and booking links
- Slot re-validation against working hours and the booking window
- Contact upsert (by id, then by email)
- Appointment creation inside one atomic unit of work
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import NamedTuple
from uuid import UUID

from slotbook.core.config import settings
from slotbook.core.structured_logging import build_log_context
from slotbook.db.enums import AppointmentSource, AppointmentStatus, ContactStatus
from slotbook.db.models import Appointment, Contact, Service
from slotbook.services.conflict_service import count_overlapping
from slotbook.services.errors import (
    ContactNotFoundError,
    SameDayNotAllowedError,
    ServiceInactiveError,
    ServiceNotFoundError,
    SlotInPastError,
    SlotOutsideWorkingHoursError,
    SlotTooFarInAdvanceError,
    SlotUnavailableError,
)
from slotbook.services.notifier import Notifier, dispatch
from slotbook.services.service_config import ServiceConfig, load_bookable_config, to_utc
from slotbook.services.slot_types import TimeSlot
from slotbook.stores.base import BookingStore, UnitOfWork

logger = logging.getLogger(__name__)

GUEST_FIRST_NAME = "Guest"


@dataclass
class ContactInput:
    """Contact details submitted with a public booking."""
    id: UUID | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    address: str | None = None
    notes: str | None = None


class BookingLink(NamedTuple):
    service_id: UUID
    service_name: str
    public_link: str
    embed_code: str


# =============================================================================
# Public service lookup
# =============================================================================

def get_service(store: BookingStore, service_id: UUID) -> Service:
    """Load a service that is open for public booking."""
    with store.read() as uow:
        service = uow.get_service(service_id)
    if service is None:
        raise ServiceNotFoundError()
    if not service.is_active:
        raise ServiceInactiveError()
    return service


def build_booking_link(service: Service, base_url: str | None = None) -> BookingLink:
    """Public booking URL and iframe embed snippet for a service."""
    base_url = (base_url or settings.public_app_url).rstrip("/")
    public_link = f"{base_url}/book/{service.id}"
    embed_code = (
        f'<iframe src="{public_link}" width="100%" height="600" frameborder="0"></iframe>'
    )
    return BookingLink(
        service_id=service.id,
        service_name=service.name,
        public_link=public_link,
        embed_code=embed_code,
    )


def get_booking_link(store: BookingStore, service_id: UUID) -> BookingLink:
    with store.read() as uow:
        service = uow.get_service(service_id)
    if service is None:
        raise ServiceNotFoundError()
    return build_booking_link(service)


# =============================================================================
# Validation
# =============================================================================

def validate_booking_time(config: ServiceConfig, start: datetime, now: datetime) -> TimeSlot:
    """
    Check a requested start against the service's booking policy.

    Checks run in a fixed order so clients always see the first violated rule:
    past, working hours, same-day, advance window.
    """
    start = to_utc(start)
    now = to_utc(now)
    slot = TimeSlot(start=start, end=start + timedelta(minutes=config.duration_minutes))

    if start < now:
        raise SlotInPastError()

    local_day = config.local_date(start)
    window = config.working_window(local_day)
    if window is None:
        raise SlotOutsideWorkingHoursError("Service is not available on this day")
    open_at, close_at = window
    if slot.start < open_at or slot.end > close_at:
        raise SlotOutsideWorkingHoursError()

    if local_day == config.local_date(now) and not config.same_day_booking:
        raise SameDayNotAllowedError()

    if start - now > timedelta(days=config.advance_booking_days):
        raise SlotTooFarInAdvanceError(
            f"Cannot book more than {config.advance_booking_days} days in advance"
        )

    return slot


# =============================================================================
# Contacts
# =============================================================================

def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    email = email.strip().lower()
    return email or None


def split_name(name: str | None) -> tuple[str, str]:
    """Split a full name on the first whitespace run."""
    parts = (name or "").split(maxsplit=1)
    first = parts[0] if parts else GUEST_FIRST_NAME
    last = parts[1] if len(parts) > 1 else ""
    return first, last


def upsert_contact(uow: UnitOfWork, tenant_id: UUID, data: ContactInput) -> Contact:
    """
    Resolve the booking's contact.

    An explicit id must belong to the tenant. Otherwise the oldest contact
    with the same email is reused, and a new one is created when nothing
    matches. Reused contacts take a newly supplied phone or address.
    """
    email = normalize_email(data.email)

    contact = None
    if data.id is not None:
        contact = uow.get_contact(data.id)
        if contact is None or contact.tenant_id != tenant_id:
            raise ContactNotFoundError()
    elif email:
        contact = uow.find_contact_by_email(tenant_id, email)

    if contact is not None:
        changed = False
        if data.phone and data.phone != contact.phone:
            contact.phone = data.phone
            changed = True
        if data.address and data.address != contact.address:
            contact.address = data.address
            changed = True
        if changed:
            contact = uow.save_contact(contact)
        return contact

    first_name, last_name = split_name(data.name)
    return uow.add_contact(
        Contact(
            tenant_id=tenant_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=data.phone,
            company=data.company,
            address=data.address,
            notes=data.notes,
            status=ContactStatus.ACTIVE.value,
        )
    )


# =============================================================================
# Booking
# =============================================================================

def book(
    store: BookingStore,
    service_id: UUID,
    start_time: datetime,
    contact: ContactInput,
    location: str | None = None,
    notes: str | None = None,
    notifier: Notifier | None = None,
    now: datetime | None = None,
) -> Appointment:
    """
    Book a slot for a contact.

    Runs in one unit of work holding the service lock: re-validate the slot,
    count overlapping active appointments against capacity, upsert the
    contact, then insert the appointment. Nothing is persisted on failure.
    Notifications go out after commit and never fail the booking.
    """
    now = to_utc(now or datetime.now(timezone.utc))

    with store.begin() as uow:
        config = load_bookable_config(uow.get_service(service_id, lock=True))
        slot = validate_booking_time(config, start_time, now)

        existing = uow.list_active_appointments(service_id, slot.start, slot.end)
        if count_overlapping(existing, slot) >= config.max_bookings_per_slot:
            raise SlotUnavailableError()

        client = upsert_contact(uow, config.tenant_id, contact)
        status = (
            AppointmentStatus.PENDING_CONFIRMATION
            if config.require_confirmation
            else AppointmentStatus.SCHEDULED
        )
        appointment = uow.add_appointment(
            Appointment(
                tenant_id=config.tenant_id,
                service_id=service_id,
                contact_id=client.id,
                title=f"{config.name} with {client.first_name} {client.last_name}".rstrip(),
                start_time=slot.start,
                end_time=slot.end,
                status=status.value,
                source=AppointmentSource.PUBLIC.value,
                location=location or client.address,
                notes=notes,
            )
        )

    is_pending = status == AppointmentStatus.PENDING_CONFIRMATION
    logger.info(
        "Booked %s appointment",
        status.value,
        extra=build_log_context(
            tenant_id=appointment.tenant_id,
            service_id=service_id,
            appointment_id=appointment.id,
            contact_id=client.id,
            event="appointment_booked",
        ),
    )

    if notifier is not None:
        if is_pending:
            dispatch(notifier.notify_client_pending, client, appointment)
        else:
            dispatch(notifier.notify_client_confirmed, client, appointment)
        dispatch(notifier.notify_contractor, appointment, is_pending)

    return appointment
