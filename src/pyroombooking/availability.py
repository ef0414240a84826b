"""Slot availability and conflict detection."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime

from .const import DEFAULT_MINIMUM_HOURS, DEFAULT_TIMEZONE
from .models import (
    AvailabilityCheck,
    BookedSlot,
    PendingBooking,
    SlotConflict,
    TimeSlot,
    WorkingHours,
)
from .util import is_date_in_past, is_time_in_past, local_now, validate_cooldown, validate_time_slot

_LOGGER = logging.getLogger(__name__)


def _conflicts_with_booking(selected: TimeSlot, booked: BookedSlot) -> bool:
    if selected.date != booked.date:
        return False
    if selected.start_hour < booked.end_hour and selected.end_hour > booked.start_hour:
        return True
    cooldown_end = booked.end_hour + booked.cooldown_minutes / 60
    return selected.start_hour < cooldown_end and selected.end_hour > booked.end_hour


def are_slots_available(
    selected: Iterable[TimeSlot],
    booked: Sequence[BookedSlot],
) -> bool:
    """Return True when no selected slot hits a booking or its cooldown.

    The batch is accepted or rejected as a whole; the scan stops at the
    first conflict.
    """
    for slot in selected:
        for booked_slot in booked:
            if _conflicts_with_booking(slot, booked_slot):
                _LOGGER.debug(
                    "Slot %s %s-%s conflicts with booking %s-%s",
                    slot.date,
                    slot.start_hour,
                    slot.end_hour,
                    booked_slot.start_hour,
                    booked_slot.end_hour,
                )
                return False
    return True


def find_conflicts(
    selected: Iterable[TimeSlot],
    booked: Sequence[BookedSlot],
) -> list[SlotConflict]:
    """Return every conflicting (selected, booked) pair in input order."""
    return [
        SlotConflict(selected=slot, booked=booked_slot)
        for slot in selected
        for booked_slot in booked
        if _conflicts_with_booking(slot, booked_slot)
    ]


def has_time_slot_conflict(
    first: TimeSlot | BookedSlot,
    second: TimeSlot | BookedSlot,
    cooldown_minutes: int = 0,
) -> bool:
    """Symmetric conflict check, with the cooldown following either slot."""
    if first.date != second.date:
        return False
    if first.start_hour < second.end_hour and first.end_hour > second.start_hour:
        return True
    cooldown_hours = cooldown_minutes / 60
    if first.end_hour + cooldown_hours > second.start_hour and first.end_hour <= second.start_hour:
        return True
    return second.end_hour + cooldown_hours > first.start_hour and second.end_hour <= first.start_hour


def find_conflicting_bookings(
    approved_slots: Sequence[TimeSlot],
    pending: Iterable[PendingBooking],
    cooldown_minutes: int = 0,
) -> list[PendingBooking]:
    """Return the pending requests that overlap an approved booking."""
    validate_cooldown(cooldown_minutes)
    return [
        booking
        for booking in pending
        if any(
            has_time_slot_conflict(pending_slot, approved_slot, cooldown_minutes)
            for pending_slot in booking.slots
            for approved_slot in approved_slots
        )
    ]


def generate_start_hours(
    working_hours: WorkingHours,
    minimum_hours: int = DEFAULT_MINIMUM_HOURS,
    cooldown_minutes: int = 0,
    *,
    earliest_hour: int | None = None,
) -> list[int]:
    start = working_hours.start_hour if earliest_hour is None else earliest_hour
    latest = math.floor(working_hours.end_hour - minimum_hours - cooldown_minutes / 60)
    return list(range(start, latest + 1))


def available_start_hours(
    day: date,
    working_hours: WorkingHours,
    *,
    minimum_hours: int = DEFAULT_MINIMUM_HOURS,
    cooldown_minutes: int = 0,
    now: datetime | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> list[int]:
    """Bookable start hours for ``day``, skipping hours already begun today."""
    validate_cooldown(cooldown_minutes)
    current = local_now(now, tz)
    if day < current.date():
        return []
    if day != current.date():
        return generate_start_hours(working_hours, minimum_hours, cooldown_minutes)
    earliest = max(working_hours.start_hour, current.hour)
    if current.minute > 0:
        earliest = max(working_hours.start_hour, current.hour + 1)
    if earliest + minimum_hours > working_hours.end_hour:
        return []
    return generate_start_hours(
        working_hours,
        minimum_hours,
        cooldown_minutes,
        earliest_hour=earliest,
    )


def _hours_for(
    day: date,
    working_hours: WorkingHours | Mapping[int, WorkingHours] | None,
) -> WorkingHours | None:
    if isinstance(working_hours, Mapping):
        return working_hours.get(day.isoweekday() % 7)
    return working_hours


def check_booking_slots(
    selected: Sequence[TimeSlot],
    booked: Sequence[BookedSlot],
    *,
    working_hours: WorkingHours | Mapping[int, WorkingHours] | None = None,
    now: datetime | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> AvailabilityCheck:
    """Validate a booking request and return a structured verdict.

    Checks run per slot in order: past date, past start time, working
    hours. Conflicts against ``booked`` are checked only once every slot
    passed those checks, with each booking's cooldown applied on both sides
    so the cooldown after a new slot may not run into a confirmed booking.
    A ``working_hours`` mapping is keyed by day of week with Sunday as 0.
    """
    current = local_now(now, tz)
    for slot in selected:
        validate_time_slot(slot)
        if is_date_in_past(slot.date, current, tz):
            return AvailabilityCheck(
                is_valid=False,
                message=f"Cannot book for past date: {slot.date.isoformat()}",
                conflicting_slot=slot,
            )
        if is_time_in_past(slot.date, slot.start_hour, current, tz):
            return AvailabilityCheck(
                is_valid=False,
                message=(
                    f"Cannot book for past time: {slot.start_hour:02d}:00 "
                    f"on {slot.date.isoformat()}"
                ),
                conflicting_slot=slot,
            )
        hours = _hours_for(slot.date, working_hours)
        if working_hours is not None and hours is None:
            return AvailabilityCheck(
                is_valid=False,
                message=f"Place is closed on {slot.date.isoformat()}",
                conflicting_slot=slot,
            )
        if hours is not None and not hours.start_hour <= slot.start_hour < hours.end_hour:
            return AvailabilityCheck(
                is_valid=False,
                message="Booking time is outside working hours",
                conflicting_slot=slot,
            )

    for slot in selected:
        if not any(
            has_time_slot_conflict(slot, booked_slot, booked_slot.cooldown_minutes)
            for booked_slot in booked
        ):
            continue
        return AvailabilityCheck(
            is_valid=False,
            message=(
                f"Time slot {slot.start_hour:02d}:00-{slot.end_hour:02d}:00 on "
                f"{slot.date.isoformat()} conflicts with confirmed booking"
            ),
            conflicting_slot=slot,
        )
    return AvailabilityCheck(is_valid=True)
