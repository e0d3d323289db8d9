"""Appointment status machine and contractor-side appointment actions.

Flow: pending-confirmation → scheduled → in-progress → completed
Any non-terminal status may move to cancelled. Every change runs inside
`store.begin()` with the appointment row locked.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from slotbook.core.structured_logging import build_log_context
from slotbook.db.enums import AppointmentSource, AppointmentStatus
from slotbook.db.models import Appointment
from slotbook.services.conflict_service import find_overlapping
from slotbook.services.errors import (
    AppointmentConflictError,
    AppointmentNotFoundError,
    ContactNotFoundError,
    InvalidTransitionError,
    ServiceNotFoundError,
    ValidationError,
)
from slotbook.services.notifier import Notifier, dispatch
from slotbook.services.service_config import load_service_config, to_utc
from slotbook.services.slot_types import TimeSlot
from slotbook.stores.base import BookingStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING_CONFIRMATION: frozenset(
        {AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def can_transition(current: AppointmentStatus | str, target: AppointmentStatus | str) -> bool:
    try:
        current, target = AppointmentStatus(current), AppointmentStatus(target)
    except ValueError:
        return False
    return target in ALLOWED_TRANSITIONS[current]


def _append_note(notes: str | None, line: str) -> str:
    return f"{notes}\n{line}" if notes else line


def get_appointment(store: BookingStore, appointment_id: UUID) -> Appointment:
    with store.read() as uow:
        appointment = uow.get_appointment(appointment_id)
    if appointment is None:
        raise AppointmentNotFoundError()
    return appointment


# =============================================================================
# Transitions
# =============================================================================

def transition(
    store: BookingStore,
    appointment_id: UUID,
    target: AppointmentStatus,
    *,
    expected: AppointmentStatus | None = None,
    note: str | None = None,
) -> Appointment:
    """
    Move an appointment to `target`.

    `expected` narrows the allowed source status (confirm and decline only
    act on pending requests). `note` is appended to the appointment notes.
    """
    target = AppointmentStatus(target)
    with store.begin() as uow:
        appointment = uow.get_appointment(appointment_id, lock=True)
        if appointment is None:
            raise AppointmentNotFoundError()

        current = appointment.status
        if expected is not None and current != expected.value:
            raise InvalidTransitionError(current, target.value)
        if not can_transition(current, target):
            raise InvalidTransitionError(current, target.value)

        appointment.status = target.value
        if note:
            appointment.notes = _append_note(appointment.notes, note)
        appointment = uow.save_appointment(appointment)

    logger.info(
        "Appointment status %s -> %s",
        current,
        target.value,
        extra=build_log_context(
            tenant_id=appointment.tenant_id,
            appointment_id=appointment.id,
            event="appointment_status_changed",
        ),
    )
    return appointment


def _load_contact(store: BookingStore, appointment: Appointment):
    with store.read() as uow:
        return uow.get_contact(appointment.contact_id)


def confirm(
    store: BookingStore,
    appointment_id: UUID,
    notifier: Notifier | None = None,
) -> Appointment:
    """Contractor accepts a pending request."""
    appointment = transition(
        store,
        appointment_id,
        AppointmentStatus.SCHEDULED,
        expected=AppointmentStatus.PENDING_CONFIRMATION,
    )
    if notifier is not None:
        contact = _load_contact(store, appointment)
        if contact is not None:
            dispatch(notifier.notify_client_confirmed, contact, appointment)
    return appointment


def decline(
    store: BookingStore,
    appointment_id: UUID,
    reason: str | None = None,
    notifier: Notifier | None = None,
) -> Appointment:
    """Contractor rejects a pending request."""
    appointment = transition(
        store,
        appointment_id,
        AppointmentStatus.CANCELLED,
        expected=AppointmentStatus.PENDING_CONFIRMATION,
        note=f"Declined: {reason}" if reason else None,
    )
    if notifier is not None:
        contact = _load_contact(store, appointment)
        if contact is not None:
            dispatch(notifier.notify_client_declined, contact, appointment, reason)
    return appointment


def start(store: BookingStore, appointment_id: UUID) -> Appointment:
    return transition(store, appointment_id, AppointmentStatus.IN_PROGRESS)


def complete(store: BookingStore, appointment_id: UUID) -> Appointment:
    return transition(store, appointment_id, AppointmentStatus.COMPLETED)


def cancel(store: BookingStore, appointment_id: UUID, reason: str | None = None) -> Appointment:
    return transition(
        store,
        appointment_id,
        AppointmentStatus.CANCELLED,
        note=f"Cancelled: {reason}" if reason else None,
    )


# =============================================================================
# Manual creation
# =============================================================================

def create_manual(
    store: BookingStore,
    service_id: UUID,
    contact_id: UUID,
    start_time: datetime,
    end_time: datetime | None = None,
    location: str | None = None,
    notes: str | None = None,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    title: str | None = None,
) -> Appointment:
    """
    Contractor-created appointment.

    Skips working-hours and booking-window checks but still respects slot
    capacity, failing with the ids of the colliding appointments.
    """
    status = AppointmentStatus(status)
    if status not in (AppointmentStatus.PENDING_CONFIRMATION, AppointmentStatus.SCHEDULED):
        raise ValidationError("New appointments must be scheduled or pending confirmation")

    with store.begin() as uow:
        service = uow.get_service(service_id, lock=True)
        if service is None:
            raise ServiceNotFoundError()
        config = load_service_config(service)

        contact = uow.get_contact(contact_id)
        if contact is None or contact.tenant_id != config.tenant_id:
            raise ContactNotFoundError()

        start = to_utc(start_time)
        end = (
            to_utc(end_time)
            if end_time is not None
            else start + timedelta(minutes=config.duration_minutes)
        )
        if end <= start:
            raise ValidationError("end_time must be after start_time")

        slot = TimeSlot(start=start, end=end)
        colliding = find_overlapping(uow.list_active_appointments(service_id, start, end), slot)
        if len(colliding) >= config.max_bookings_per_slot:
            raise AppointmentConflictError([a.id for a in colliding])

        appointment = uow.add_appointment(
            Appointment(
                tenant_id=config.tenant_id,
                service_id=service_id,
                contact_id=contact.id,
                title=title or f"{config.name} with {contact.full_name}",
                start_time=start,
                end_time=end,
                status=status.value,
                source=AppointmentSource.MANUAL.value,
                location=location or contact.address,
                notes=notes,
            )
        )

    logger.info(
        "Created manual appointment",
        extra=build_log_context(
            tenant_id=appointment.tenant_id,
            service_id=service_id,
            appointment_id=appointment.id,
            event="appointment_created_manual",
        ),
    )
    return appointment
