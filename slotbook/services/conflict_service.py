"""Conflict detection - overlap counting against active appointments.

Intervals are half-open: an appointment ending exactly when a slot starts
does not conflict with it.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from slotbook.db.enums import ACTIVE_APPOINTMENT_STATUSES
from slotbook.services.slot_types import TimeSlot


class Occupying(Protocol):
    start_time: datetime
    end_time: datetime
    status: str


def overlaps(slot: TimeSlot, start: datetime, end: datetime) -> bool:
    return slot.start < end and slot.end > start


def find_overlapping(appointments: Iterable[Occupying], slot: TimeSlot) -> list[Occupying]:
    """Active appointments whose interval intersects the slot."""
    return [
        appt for appt in appointments
        if appt.status in ACTIVE_APPOINTMENT_STATUSES
        and overlaps(slot, appt.start_time, appt.end_time)
    ]


def count_overlapping(appointments: Iterable[Occupying], slot: TimeSlot) -> int:
    return len(find_overlapping(appointments, slot))


def is_available(
    appointments: Iterable[Occupying],
    slot: TimeSlot,
    max_concurrent: int,
) -> bool:
    """True while the slot still has capacity left."""
    return count_overlapping(appointments, slot) < max_concurrent
