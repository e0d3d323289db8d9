"""Slot generation and availability listing.

`generate_slots` is a pure generator over a service's weekly working hours.
`get_availability` filters its output against existing appointments without
taking any lock; bookings re-validate the chosen slot atomically.
"""

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from slotbook.core.config import settings
from slotbook.services.conflict_service import is_available
from slotbook.services.errors import ValidationError
from slotbook.services.service_config import ServiceConfig, load_bookable_config, to_utc
from slotbook.services.slot_types import Availability, DayAvailability, TimeSlot
from slotbook.stores.base import BookingStore


# =============================================================================
# Slot Generation
# =============================================================================

def generate_slots(
    config: ServiceConfig,
    range_start: datetime,
    range_end: datetime,
    now: datetime,
) -> Iterator[TimeSlot]:
    """
    Yield bookable candidate slots between two instants, ascending.

    Days are walked in the business timezone from the later of
    `range_start` and today up to `range_end`'s date inclusive. Within a
    working day, slot starts step by duration + buffer from the opening
    time while the slot still ends by closing time. Slots starting before
    `now`, on today's date when same-day booking is off, or more than
    `advance_booking_days` after `now` are dropped.
    """
    now = to_utc(now)
    today = config.local_date(now)
    day = max(config.local_date(range_start), today)
    last_day = config.local_date(range_end)
    horizon = now + timedelta(days=config.advance_booking_days)
    duration = timedelta(minutes=config.duration_minutes)

    while day <= last_day:
        if config.local_to_utc(day, 0) > horizon:
            return

        hours = config.hours_for(day)
        same_day_blocked = day == today and not config.same_day_booking
        if hours.is_working and not same_day_blocked:
            last_start = hours.end_minute - config.duration_minutes
            for minute in range(hours.start_minute, last_start + 1, config.step_minutes):
                start = config.local_to_utc(day, minute)
                if start < now or start > horizon:
                    continue
                yield TimeSlot(start=start, end=start + duration)

        day += timedelta(days=1)


# =============================================================================
# Availability
# =============================================================================

def _range_bound(config: ServiceConfig, value: date | datetime) -> datetime:
    """Dates mean local midnight in the business timezone."""
    if isinstance(value, datetime):
        return to_utc(value)
    return config.local_to_utc(value, 0)


def get_availability(
    store: BookingStore,
    service_id: UUID,
    range_start: date | datetime | None = None,
    range_end: date | datetime | None = None,
    now: datetime | None = None,
    max_days: int | None = None,
) -> Availability:
    """
    Open slots for a service grouped by local date.

    Defaults to the full advance-booking window from now. Ranges longer than
    `max_days` (AVAILABILITY_MAX_DAYS) are clamped. Days without any open
    slot are omitted.
    """
    now = to_utc(now or datetime.now(timezone.utc))
    if max_days is None:
        max_days = settings.AVAILABILITY_MAX_DAYS

    with store.read() as uow:
        config = load_bookable_config(uow.get_service(service_id))

        start = _range_bound(config, range_start) if range_start is not None else now
        end = (
            _range_bound(config, range_end)
            if range_end is not None
            else now + timedelta(days=config.advance_booking_days)
        )
        if config.local_date(end) < config.local_date(start):
            raise ValidationError("range_end must not be before range_start")
        end = min(end, start + timedelta(days=max_days))

        window_start = config.local_to_utc(max(config.local_date(start), config.local_date(now)), 0)
        window_end = config.local_to_utc(config.local_date(end) + timedelta(days=1), 0)
        appointments = uow.list_active_appointments(service_id, window_start, window_end)

    days: dict[date, list[TimeSlot]] = {}
    for slot in generate_slots(config, start, end, now):
        if is_available(appointments, slot, config.max_bookings_per_slot):
            days.setdefault(config.local_date(slot.start), []).append(slot)

    return Availability(
        service_id=service_id,
        days=[DayAvailability(date=day, slots=slots) for day, slots in days.items()],
    )
