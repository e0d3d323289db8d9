"""Value types shared by slot generation and conflict detection."""

from datetime import date, datetime
from typing import NamedTuple
from uuid import UUID


class TimeSlot(NamedTuple):
    """Candidate appointment interval (UTC instants)."""
    start: datetime
    end: datetime


class DayAvailability(NamedTuple):
    """Open slots on one business-local calendar date."""
    date: date
    slots: list[TimeSlot]


class Availability(NamedTuple):
    """Availability listing for a service."""
    service_id: UUID
    days: list[DayAvailability]
