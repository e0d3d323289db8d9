"""Appointment and booking enums."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: pending-confirmation → scheduled → in-progress → completed
                   ↘ cancelled    ↘ cancelled    ↘ cancelled
    """

    PENDING_CONFIRMATION = "pending-confirmation"  # Awaiting contractor approval
    SCHEDULED = "scheduled"  # Confirmed, on the calendar
    IN_PROGRESS = "in-progress"  # Work has started
    COMPLETED = "completed"
    CANCELLED = "cancelled"  # Declined or cancelled


# Statuses that occupy slot capacity
ACTIVE_APPOINTMENT_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING_CONFIRMATION.value,
        AppointmentStatus.SCHEDULED.value,
        AppointmentStatus.IN_PROGRESS.value,
    }
)


class AppointmentSource(str, Enum):
    """How an appointment was created."""

    PUBLIC = "public"  # Public booking page
    MANUAL = "manual"  # Contractor created it directly


class ContactStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.SCHEDULED
