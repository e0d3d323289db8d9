"""Booking schemas - Pydantic models for the booking and appointments API."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# =============================================================================
# Services
# =============================================================================

class PublicServiceRead(BaseModel):
    """Service details shown on the public booking page."""
    id: UUID
    name: str
    description: str | None
    duration_minutes: int
    price: Decimal | None
    availability: dict
    require_confirmation: bool


class BookingLinkRead(BaseModel):
    """Shareable booking URL and iframe embed code."""
    service_id: UUID
    service_name: str
    public_link: str
    embed_code: str


# =============================================================================
# Availability
# =============================================================================

class TimeSlotRead(BaseModel):
    """Schema for an available time slot."""
    start: datetime
    end: datetime


class DayAvailabilityRead(BaseModel):
    date: date
    slots: list[TimeSlotRead]


class AvailabilityRead(BaseModel):
    service_id: UUID
    days: list[DayAvailabilityRead]


# =============================================================================
# Booking
# =============================================================================

class ContactIn(BaseModel):
    """Contact details submitted by the client (id or email identifies them)."""
    id: UUID | None = None
    name: str | None = Field(None, max_length=201)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company: str | None = Field(None, max_length=255)
    address: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)


class BookingRequest(BaseModel):
    """Schema for a public booking submission."""
    start_time: datetime
    contact: ContactIn
    location: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)


# =============================================================================
# Appointments
# =============================================================================

class ManualAppointmentCreate(BaseModel):
    """Schema for a contractor-created appointment."""
    service_id: UUID
    contact_id: UUID
    start_time: datetime
    end_time: datetime | None = None
    title: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)
    status: Literal["scheduled", "pending-confirmation"] = "scheduled"


class AppointmentDecline(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""
    reason: str | None = Field(None, max_length=1000)


class AppointmentRead(BaseModel):
    """Schema for reading an appointment."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    service_id: UUID
    contact_id: UUID
    title: str
    start_time: datetime
    end_time: datetime
    status: str
    source: str
    location: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
