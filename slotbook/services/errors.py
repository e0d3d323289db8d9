"""Booking engine exceptions.

Every error carries a stable machine-readable `code` and the HTTP status the
API layer maps it to.
"""

from uuid import UUID


class BookingError(Exception):
    """Base exception for booking engine errors."""

    code = "booking_error"
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.__doc__.strip().splitlines()[0]
        super().__init__(self.message)


# =============================================================================
# Validation (400)
# =============================================================================

class ValidationError(BookingError):
    """Invalid booking request."""

    code = "validation_error"


class ServiceInactiveError(ValidationError):
    """Service is not active."""

    code = "service_inactive"


class ServiceNotConfiguredError(ValidationError):
    """Service has no availability configured."""

    code = "service_not_configured"


class SlotInPastError(ValidationError):
    """Cannot book slots in the past."""

    code = "slot_in_past"


class SlotOutsideWorkingHoursError(ValidationError):
    """Slot is outside working hours."""

    code = "slot_outside_working_hours"


class SlotTooFarInAdvanceError(ValidationError):
    """Booking is too far in advance."""

    code = "slot_too_far_in_advance"


class SameDayNotAllowedError(ValidationError):
    """Same-day booking is not allowed."""

    code = "same_day_not_allowed"


# =============================================================================
# Not found (404)
# =============================================================================

class NotFoundError(BookingError):
    """Resource not found."""

    code = "not_found"
    status_code = 404


class ServiceNotFoundError(NotFoundError):
    """Service not found."""

    code = "service_not_found"


class ContactNotFoundError(NotFoundError):
    """Contact not found."""

    code = "contact_not_found"


class AppointmentNotFoundError(NotFoundError):
    """Appointment not found."""

    code = "appointment_not_found"


# =============================================================================
# Conflicts (409)
# =============================================================================

class ConflictError(BookingError):
    """Requested time conflicts with existing appointments."""

    code = "conflict"
    status_code = 409


class SlotUnavailableError(ConflictError):
    """Selected time is no longer available."""

    code = "slot_unavailable"


class AppointmentConflictError(ConflictError):
    """Appointment overlaps existing appointments."""

    code = "appointment_conflict"

    def __init__(self, conflicting_ids: list[UUID], message: str | None = None):
        self.conflicting_ids = list(conflicting_ids)
        if message is None:
            ids = ", ".join(str(i) for i in self.conflicting_ids)
            message = f"Appointment overlaps existing appointment(s): {ids}"
        super().__init__(message)


class InvalidTransitionError(BookingError):
    """Appointment status change is not allowed."""

    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change appointment status from {current} to {target}")
