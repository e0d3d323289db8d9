"""Service configuration - immutable per-request view of a bookable service.

Builds a `ServiceConfig` from the stored `Service` row and provides the
business-timezone helpers shared by slot generation and booking validation.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import NamedTuple
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slotbook.db.models import Service
from slotbook.services.errors import (
    ServiceInactiveError,
    ServiceNotConfiguredError,
    ServiceNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE_OFFSET_HOURS = -8  # Pacific
DEFAULT_ADVANCE_BOOKING_DAYS = 30
DEFAULT_BUFFER_MINUTES = 0
DEFAULT_MAX_BOOKINGS_PER_SLOT = 1
MINUTES_PER_DAY = 24 * 60
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# =============================================================================
# Types
# =============================================================================

class DayHours(NamedTuple):
    """Working window for one weekday, in minutes after local midnight."""
    is_working: bool
    start_minute: int
    end_minute: int


CLOSED = DayHours(is_working=False, start_minute=0, end_minute=0)


@dataclass(frozen=True)
class ServiceConfig:
    """Read-only scheduling policy for one service."""
    service_id: UUID
    tenant_id: UUID
    name: str
    duration_minutes: int
    buffer_minutes: int
    working_hours: tuple[DayHours, ...]  # Indexed by weekday, Monday=0
    tz: tzinfo
    advance_booking_days: int
    same_day_booking: bool
    max_bookings_per_slot: int
    require_confirmation: bool
    is_active: bool = True

    @property
    def step_minutes(self) -> int:
        """Distance between consecutive slot starts on the same day."""
        return self.duration_minutes + self.buffer_minutes

    def hours_for(self, day: date) -> DayHours:
        return self.working_hours[day.weekday()]

    def local_date(self, instant: datetime) -> date:
        """Calendar date of an instant in the business timezone."""
        return to_utc(instant).astimezone(self.tz).date()

    def local_to_utc(self, day: date, minute_of_day: int) -> datetime:
        """Convert a business-local wall time to a UTC instant."""
        # Naive wall-clock arithmetic so DST days keep their nominal hours
        wall = datetime.combine(day, time.min) + timedelta(minutes=minute_of_day)
        return wall.replace(tzinfo=self.tz).astimezone(timezone.utc)

    def working_window(self, day: date) -> tuple[datetime, datetime] | None:
        """UTC bounds of the working window on a local date, None if closed."""
        hours = self.hours_for(day)
        if not hours.is_working:
            return None
        return (
            self.local_to_utc(day, hours.start_minute),
            self.local_to_utc(day, hours.end_minute),
        )


# =============================================================================
# Parsing
# =============================================================================

def to_utc(instant: datetime) -> datetime:
    """Normalize an instant to aware UTC; naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def parse_time_of_day(value: str) -> int:
    """Parse "HH:MM" (00:00 - 24:00) into minutes after midnight."""
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time of day: {value!r}")
    total = hours * 60 + minutes
    if not (0 <= minutes < 60) or not (0 <= total <= MINUTES_PER_DAY):
        raise ValidationError(f"Invalid time of day: {value!r}")
    return total


def resolve_timezone(availability: dict) -> tzinfo:
    """
    Resolve the business timezone.

    An IANA name in `timezone` wins; otherwise `timezone_offset_hours` is a
    fixed offset where UTC = local - offset (e.g. -8 for Pacific).
    """
    name = availability.get("timezone")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, falling back to fixed offset", name)
    offset = availability.get("timezone_offset_hours")
    if offset is None:
        offset = DEFAULT_TIMEZONE_OFFSET_HOURS
    return timezone(timedelta(hours=int(offset)))


def parse_working_hours(entries: list[dict]) -> tuple[DayHours, ...]:
    """Build the 7-day working-hours table; missing days are closed."""
    week = [CLOSED] * 7
    for entry in entries:
        day = entry.get("day_of_week")
        if not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError(f"Invalid day_of_week: {day!r}")
        if not entry.get("is_working", False):
            week[day] = CLOSED
            continue
        start = parse_time_of_day(entry.get("start_time", ""))
        end = parse_time_of_day(entry.get("end_time", ""))
        if start >= end:
            raise ValidationError(
                f"Working hours for {DAY_NAMES[day]} must start before they end"
            )
        week[day] = DayHours(is_working=True, start_minute=start, end_minute=end)
    return tuple(week)


def load_service_config(service: Service) -> ServiceConfig:
    """Build the immutable scheduling view of a service row."""
    availability = service.availability or {}
    booking_settings = service.booking_settings or {}

    entries = availability.get("working_hours")
    if not entries:
        raise ServiceNotConfiguredError()

    if service.duration_minutes is None or service.duration_minutes <= 0:
        raise ValidationError("Service duration must be positive")

    buffer_minutes = availability.get("buffer_minutes")
    buffer_minutes = DEFAULT_BUFFER_MINUTES if buffer_minutes is None else int(buffer_minutes)
    advance_days = availability.get("advance_booking_days")
    advance_days = DEFAULT_ADVANCE_BOOKING_DAYS if advance_days is None else int(advance_days)
    max_per_slot = booking_settings.get("max_bookings_per_slot")
    max_per_slot = DEFAULT_MAX_BOOKINGS_PER_SLOT if max_per_slot is None else int(max_per_slot)

    if buffer_minutes < 0:
        raise ValidationError("Buffer time cannot be negative")
    if advance_days < 0:
        raise ValidationError("Advance booking window cannot be negative")
    if max_per_slot < 1:
        raise ValidationError("Bookings per slot must be at least 1")

    return ServiceConfig(
        service_id=service.id,
        tenant_id=service.tenant_id,
        name=service.name,
        duration_minutes=service.duration_minutes,
        buffer_minutes=buffer_minutes,
        working_hours=parse_working_hours(entries),
        tz=resolve_timezone(availability),
        advance_booking_days=advance_days,
        same_day_booking=bool(availability.get("same_day_booking", False)),
        max_bookings_per_slot=max_per_slot,
        require_confirmation=bool(booking_settings.get("require_confirmation", False)),
        is_active=bool(service.is_active),
    )


def load_bookable_config(service: Service | None) -> ServiceConfig:
    """Config of a service that exists and is currently accepting bookings."""
    if service is None:
        raise ServiceNotFoundError()
    if not service.is_active:
        raise ServiceInactiveError()
    return load_service_config(service)
