"""Appointments router - contractor actions on appointments.

Manual creation, confirm/decline of pending requests, and lifecycle
transitions. Authentication is handled by the surrounding platform.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from slotbook.core.deps import get_notifier, get_store
from slotbook.db.enums import AppointmentStatus
from slotbook.schemas.booking import (
    AppointmentCancel,
    AppointmentDecline,
    AppointmentRead,
    ManualAppointmentCreate,
)
from slotbook.services import appointment_status_service
from slotbook.services.notifier import Notifier
from slotbook.stores import BookingStore

router = APIRouter()


@router.post("", response_model=AppointmentRead, status_code=201)
def create_appointment(
    data: ManualAppointmentCreate,
    store: BookingStore = Depends(get_store),
):
    """Create an appointment directly (no working-hours checks)."""
    appointment = appointment_status_service.create_manual(
        store,
        service_id=data.service_id,
        contact_id=data.contact_id,
        start_time=data.start_time,
        end_time=data.end_time,
        location=data.location,
        notes=data.notes,
        status=AppointmentStatus(data.status),
        title=data.title,
    )
    return AppointmentRead.model_validate(appointment)


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(
    appointment_id: UUID,
    store: BookingStore = Depends(get_store),
):
    appointment = appointment_status_service.get_appointment(store, appointment_id)
    return AppointmentRead.model_validate(appointment)


# =============================================================================
# Pending requests
# =============================================================================

@router.post("/{appointment_id}/confirm", response_model=AppointmentRead)
def confirm_appointment(
    appointment_id: UUID,
    store: BookingStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Accept a pending booking request and notify the client."""
    appointment = appointment_status_service.confirm(store, appointment_id, notifier=notifier)
    return AppointmentRead.model_validate(appointment)


@router.post("/{appointment_id}/decline", response_model=AppointmentRead)
def decline_appointment(
    appointment_id: UUID,
    data: AppointmentDecline | None = None,
    store: BookingStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Decline a pending booking request and notify the client."""
    reason = data.reason if data else None
    appointment = appointment_status_service.decline(
        store, appointment_id, reason=reason, notifier=notifier
    )
    return AppointmentRead.model_validate(appointment)


# =============================================================================
# Lifecycle
# =============================================================================

@router.post("/{appointment_id}/start", response_model=AppointmentRead)
def start_appointment(
    appointment_id: UUID,
    store: BookingStore = Depends(get_store),
):
    appointment = appointment_status_service.start(store, appointment_id)
    return AppointmentRead.model_validate(appointment)


@router.post("/{appointment_id}/complete", response_model=AppointmentRead)
def complete_appointment(
    appointment_id: UUID,
    store: BookingStore = Depends(get_store),
):
    appointment = appointment_status_service.complete(store, appointment_id)
    return AppointmentRead.model_validate(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentRead)
def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel | None = None,
    store: BookingStore = Depends(get_store),
):
    """Cancel an appointment from any non-terminal status."""
    reason = data.reason if data else None
    appointment = appointment_status_service.cancel(store, appointment_id, reason=reason)
    return AppointmentRead.model_validate(appointment)
