"""
Tests for slot generation and availability listing.

Coverage:
- Slot spacing and working-hours containment
- Past, same-day and advance-window filtering
- Timezone handling
- Availability filtering against existing appointments
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from slotbook.db.models import Service
from slotbook.services import appointment_status_service, booking_service, slot_service
from slotbook.services.booking_service import ContactInput
from slotbook.services.errors import (
    ServiceInactiveError,
    ServiceNotFoundError,
    ValidationError,
)
from slotbook.services.service_config import load_service_config

UTC = timezone.utc

# Local (UTC-8) midnight of Monday 2026-01-05, and the end of that day
MONDAY_START = datetime(2026, 1, 5, 8, 0, tzinfo=UTC)
MONDAY_END = datetime(2026, 1, 6, 7, 59, tzinfo=UTC)


def _config(hours, duration_minutes=60, **availability):
    policy = {"working_hours": hours(), "timezone_offset_hours": -8}
    policy.update(availability)
    return load_service_config(Service(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        name="Window Washing",
        duration_minutes=duration_minutes,
        availability=policy,
        booking_settings={},
        is_active=True,
    ))


# =============================================================================
# Slot Generation
# =============================================================================

class TestGenerateSlots:

    def test_weekday_with_buffer(self, hours, now):
        """09:00-17:00, 60 minute slots, 15 minute buffer."""
        config = _config(hours, buffer_minutes=15)
        slots = list(slot_service.generate_slots(config, MONDAY_START, MONDAY_END, now))

        assert slots[0].start == datetime(2026, 1, 5, 17, 0, tzinfo=UTC)  # 09:00 local
        assert slots[-1].start <= datetime(2026, 1, 6, 0, 0, tzinfo=UTC)  # 16:00 local
        assert [s.start.strftime("%H:%M") for s in slots] == [
            "17:00", "18:15", "19:30", "20:45", "22:00", "23:15",
        ]
        for slot in slots:
            assert slot.end - slot.start == timedelta(minutes=60)
            assert slot.end <= datetime(2026, 1, 6, 1, 0, tzinfo=UTC)
        for earlier, later in zip(slots, slots[1:]):
            assert later.start - earlier.end >= timedelta(minutes=15)

    def test_last_slot_fills_day_exactly(self, hours, now):
        config = _config(hours)
        slots = list(slot_service.generate_slots(config, MONDAY_START, MONDAY_END, now))
        assert len(slots) == 8
        assert slots[-1].end == datetime(2026, 1, 6, 1, 0, tzinfo=UTC)  # 17:00 local

    def test_duration_longer_than_any_window(self, hours, now):
        config = _config(hours, duration_minutes=9 * 60)
        end = MONDAY_START + timedelta(days=7)
        assert list(slot_service.generate_slots(config, MONDAY_START, end, now)) == []

    def test_skips_non_working_days(self, hours, now):
        config = _config(hours)
        saturday = datetime(2026, 1, 10, 8, 0, tzinfo=UTC)
        slots = list(slot_service.generate_slots(config, saturday, saturday + timedelta(days=2), now))
        assert {config.local_date(s.start) for s in slots} == {date(2026, 1, 12)}

    def test_excludes_past_slots(self, hours):
        config = _config(hours, same_day_booking=True)
        now = datetime(2026, 1, 5, 19, 30, tzinfo=UTC)  # Monday 11:30 local
        slots = list(slot_service.generate_slots(config, MONDAY_START, MONDAY_END, now))
        assert slots[0].start == datetime(2026, 1, 5, 20, 0, tzinfo=UTC)
        assert all(s.start >= now for s in slots)

    def test_same_day_disallowed(self, hours):
        """Today's slots disappear but tomorrow's remain."""
        config = _config(hours, same_day_booking=False)
        now = datetime(2026, 1, 5, 16, 0, tzinfo=UTC)  # Monday 08:00 local
        slots = list(
            slot_service.generate_slots(config, MONDAY_START, MONDAY_END + timedelta(days=1), now)
        )
        days = {config.local_date(s.start) for s in slots}
        assert date(2026, 1, 5) not in days
        assert date(2026, 1, 6) in days

    def test_range_start_before_today(self, hours, now):
        config = _config(hours)
        last_week = now - timedelta(days=7)
        slots = list(slot_service.generate_slots(config, last_week, MONDAY_END, now))
        assert slots
        assert all(s.start > now for s in slots)

    def test_advance_window(self, hours, now):
        config = _config(hours, advance_booking_days=30)
        horizon = now + timedelta(days=30)
        end = now + timedelta(days=40)
        slots = list(slot_service.generate_slots(config, now, end, now))

        assert slots
        assert all(s.start <= horizon for s in slots)
        # 31 days out (Wednesday 2026-02-04) offers nothing
        assert date(2026, 2, 4) not in {config.local_date(s.start) for s in slots}

    def test_generation_is_repeatable(self, hours, now):
        config = _config(hours, buffer_minutes=10)
        end = MONDAY_START + timedelta(days=5)
        first = list(slot_service.generate_slots(config, MONDAY_START, end, now))
        second = list(slot_service.generate_slots(config, MONDAY_START, end, now))
        assert first == second

    def test_daylight_saving_keeps_local_hours(self, hours, now):
        config = _config(hours, timezone="America/Los_Angeles", advance_booking_days=90)
        # Monday after the March 2026 change to PDT (UTC-7)
        day_start = datetime(2026, 3, 9, 7, 0, tzinfo=UTC)
        slots = list(slot_service.generate_slots(config, day_start, day_start + timedelta(hours=23), now))
        assert slots[0].start == datetime(2026, 3, 9, 16, 0, tzinfo=UTC)


# =============================================================================
# Availability
# =============================================================================

class TestGetAvailability:

    def test_groups_open_slots_by_local_date(self, store, make_service, now):
        service = make_service(store)
        result = slot_service.get_availability(
            store, service.id, date(2026, 1, 5), date(2026, 1, 6), now=now
        )
        assert result.service_id == service.id
        assert [d.date for d in result.days] == [date(2026, 1, 5), date(2026, 1, 6)]
        assert all(len(d.slots) == 8 for d in result.days)

    def test_defaults_to_advance_window(self, store, make_service, now):
        service = make_service(store, advance_booking_days=7)
        result = slot_service.get_availability(store, service.id, now=now)
        assert result.days
        assert result.days[-1].date <= date(2026, 1, 11)

    def test_booked_slot_is_hidden(self, store, make_service, now):
        service = make_service(store)
        booking_service.book(
            store,
            service.id,
            datetime(2026, 1, 5, 17, 0, tzinfo=UTC),
            ContactInput(name="Sam Lee", email="sam@example.com"),
            now=now,
        )
        result = slot_service.get_availability(
            store, service.id, date(2026, 1, 5), date(2026, 1, 5), now=now
        )
        starts = [s.start for s in result.days[0].slots]
        assert datetime(2026, 1, 5, 17, 0, tzinfo=UTC) not in starts
        assert len(starts) == 7

    def test_cancelled_appointment_frees_slot(self, store, make_service, now):
        service = make_service(store)
        appt = booking_service.book(
            store,
            service.id,
            datetime(2026, 1, 5, 17, 0, tzinfo=UTC),
            ContactInput(name="Sam Lee", email="sam@example.com"),
            now=now,
        )
        appointment_status_service.cancel(store, appt.id)
        result = slot_service.get_availability(
            store, service.id, date(2026, 1, 5), date(2026, 1, 5), now=now
        )
        assert len(result.days[0].slots) == 8

    def test_capacity_keeps_slot_open(self, store, make_service, now):
        service = make_service(store, booking_settings={"max_bookings_per_slot": 2})
        booking_service.book(
            store,
            service.id,
            datetime(2026, 1, 5, 17, 0, tzinfo=UTC),
            ContactInput(name="Sam Lee", email="sam@example.com"),
            now=now,
        )
        result = slot_service.get_availability(
            store, service.id, date(2026, 1, 5), date(2026, 1, 5), now=now
        )
        assert len(result.days[0].slots) == 8

    def test_empty_days_are_omitted(self, store, make_service, now):
        service = make_service(store)
        result = slot_service.get_availability(
            store, service.id, date(2026, 1, 10), date(2026, 1, 11), now=now
        )
        assert result.days == []

    def test_range_is_clamped(self, store, make_service, now):
        service = make_service(store)
        result = slot_service.get_availability(
            store, service.id, date(2026, 1, 5), date(2026, 1, 30), now=now, max_days=1
        )
        # Clamped end is local midnight of the 6th; end dates are inclusive
        assert [d.date for d in result.days] == [date(2026, 1, 5), date(2026, 1, 6)]

    def test_range_end_today_only(self, store, make_service):
        service = make_service(store, same_day_booking=True)
        monday_10am = datetime(2026, 1, 5, 18, 0, tzinfo=UTC)
        result = slot_service.get_availability(
            store, service.id, range_end=date(2026, 1, 5), now=monday_10am
        )
        assert [d.date for d in result.days] == [date(2026, 1, 5)]
        assert result.days[0].slots[0].start == monday_10am
        assert len(result.days[0].slots) == 7

    def test_inverted_range(self, store, make_service, now):
        service = make_service(store)
        with pytest.raises(ValidationError):
            slot_service.get_availability(
                store, service.id, date(2026, 1, 8), date(2026, 1, 5), now=now
            )

    def test_unknown_service(self, store, now):
        with pytest.raises(ServiceNotFoundError):
            slot_service.get_availability(store, uuid.uuid4(), now=now)

    def test_inactive_service(self, store, make_service, now):
        service = make_service(store, is_active=False)
        with pytest.raises(ServiceInactiveError):
            slot_service.get_availability(store, service.id, now=now)
