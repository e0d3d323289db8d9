"""Pydantic schemas for API request/response models."""

from slotbook.schemas.booking import (
    AppointmentCancel,
    AppointmentDecline,
    AppointmentRead,
    AvailabilityRead,
    BookingLinkRead,
    BookingRequest,
    ContactIn,
    DayAvailabilityRead,
    ManualAppointmentCreate,
    PublicServiceRead,
    TimeSlotRead,
)

__all__ = [
    "AppointmentCancel",
    "AppointmentDecline",
    "AppointmentRead",
    "AvailabilityRead",
    "BookingLinkRead",
    "BookingRequest",
    "ContactIn",
    "DayAvailabilityRead",
    "ManualAppointmentCreate",
    "PublicServiceRead",
    "TimeSlotRead",
]
