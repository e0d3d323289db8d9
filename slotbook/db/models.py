"""SQLAlchemy ORM models for bookable services, contacts and appointments."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from slotbook.db.base import Base
from slotbook.db.enums import (
    DEFAULT_APPOINTMENT_STATUS,
    AppointmentSource,
    ContactStatus,
)
from slotbook.db.types import JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Service(Base):
    """
    A bookable service offered by a contractor (e.g., "Lawn Mowing").

    `availability` holds the weekly working hours and booking-window policy:
        {
            "working_hours": [
                {"day_of_week": 0, "is_working": true,
                 "start_time": "09:00", "end_time": "17:00"},
                ...
            ],
            "buffer_minutes": 15,
            "advance_booking_days": 30,
            "same_day_booking": false,
            "timezone": "America/Los_Angeles",
            "timezone_offset_hours": -8
        }
    Day numbering is ISO-style: Monday=0, Sunday=6.

    `booking_settings` holds capacity and confirmation policy:
        {"max_bookings_per_slot": 1, "require_confirmation": false}
    """

    __tablename__ = "services"
    __table_args__ = (
        Index("idx_services_tenant", "tenant_id", "is_active"),
        CheckConstraint("duration_minutes > 0", name="ck_service_duration_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    availability: Mapped[dict] = mapped_column(JSONDocument, default=dict, nullable=False)
    booking_settings: Mapped[dict] = mapped_column(JSONDocument, default=dict, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, nullable=False
    )


class Contact(Base):
    """
    CRM contact created or reused by public bookings.

    Identity is (tenant_id, email) when an email is known.
    """

    __tablename__ = "contacts"
    __table_args__ = (
        Index("idx_contacts_tenant_email", "tenant_id", "email"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)  # Lowercased
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ContactStatus.ACTIVE.value, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, nullable=False
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Appointment(Base):
    """
    A booked interval of a service for a contact.

    Lifecycle: pending-confirmation → scheduled → in-progress → completed,
    with cancellation allowed from any non-terminal state.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_service_window", "service_id", "start_time", "end_time"),
        Index("idx_appointments_service_status", "service_id", "status"),
        Index("idx_appointments_contact", "contact_id"),
        CheckConstraint("end_time > start_time", name="ck_appointment_interval"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_APPOINTMENT_STATUS.value, nullable=False
    )
    source: Mapped[str] = mapped_column(
        String(20), default=AppointmentSource.PUBLIC.value, nullable=False
    )
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, nullable=False
    )
