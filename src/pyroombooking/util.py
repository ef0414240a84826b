"""Shared utilities for validation and normalization."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .const import DEFAULT_TIMEZONE
from .exceptions import ValidationError
from .models import BookedSlot, PricingConfig, TimeSlot

_TIME_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?(?::\d{2})?\s*$")


def parse_hour(value: str) -> int:
    """Return the hour of an ``HH:MM`` string; minutes are discarded."""
    if not isinstance(value, str) or not value:
        raise ValidationError("Time must be a non-empty string.")
    match = _TIME_RE.match(value)
    if match is None:
        raise ValidationError(f"Time {value!r} is not in HH:MM format.")
    hour = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if not 0 <= hour <= 24 or minutes > 59:
        raise ValidationError(f"Time {value!r} is out of range.")
    return hour


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise ValidationError("Date must be a non-empty string.")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise ValidationError(f"Date {value!r} is not a valid YYYY-MM-DD value.") from exc


def parse_time_slot(data: Mapping[str, Any]) -> TimeSlot:
    """Build a slot from a ``{"date", "startTime", "endTime"}`` record."""
    if not isinstance(data, Mapping):
        raise ValidationError("Time slot must be a mapping.")
    missing = [key for key in ("date", "startTime", "endTime") if key not in data]
    if missing:
        raise ValidationError(f"Time slot missing keys: {', '.join(missing)}.")
    slot = TimeSlot(
        date=parse_date(data["date"]),
        start_hour=parse_hour(data["startTime"]),
        end_hour=parse_hour(data["endTime"]),
    )
    return validate_time_slot(slot)


def parse_booked_slot(data: Mapping[str, Any], cooldown_minutes: int = 0) -> BookedSlot:
    slot = parse_time_slot(data)
    return BookedSlot(
        date=slot.date,
        start_hour=slot.start_hour,
        end_hour=slot.end_hour,
        cooldown_minutes=validate_cooldown(cooldown_minutes),
    )


def validate_time_slot(slot: TimeSlot) -> TimeSlot:
    if not isinstance(slot.date, date):
        raise ValidationError("Time slot date must be a date.")
    for value in (slot.start_hour, slot.end_hour):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("Time slot hours must be integers.")
        if not 0 <= value <= 24:
            raise ValidationError("Time slot hours must be between 0 and 24.")
    if slot.end_hour <= slot.start_hour:
        raise ValidationError("end_hour must be after start_hour.")
    return slot


def validate_cooldown(cooldown_minutes: int) -> int:
    if isinstance(cooldown_minutes, bool) or not isinstance(cooldown_minutes, int):
        raise ValidationError("cooldown_minutes must be an integer.")
    if cooldown_minutes < 0:
        raise ValidationError("cooldown_minutes must not be negative.")
    return cooldown_minutes


def validate_pricing_config(config: PricingConfig) -> PricingConfig:
    if config is None:
        raise ValidationError("Pricing config is required.")
    if config.full_day_hours <= 0:
        raise ValidationError("full_day_hours must be positive.")
    if config.hourly_rate < 0:
        raise ValidationError("hourly_rate must not be negative.")
    if config.full_day_discount_price < 0:
        raise ValidationError("full_day_discount_price must not be negative.")
    return config


def format_hour_12(hour: int) -> str:
    hour = hour % 24
    display_hour = 12 if hour % 12 == 0 else hour % 12
    suffix = "AM" if hour < 12 else "PM"
    return f"{display_hour}:00 {suffix}"


def format_time_range(start_hour: int, end_hour: int) -> str:
    return f"{format_hour_12(start_hour)} - {format_hour_12(end_hour)}"


def resolve_timezone(name: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Timezone data for {name} is unavailable.") from exc


def local_now(now: datetime | None = None, tz: str = DEFAULT_TIMEZONE) -> datetime:
    zone = resolve_timezone(tz)
    if now is None:
        return datetime.now(tz=zone)
    if now.tzinfo is None:
        raise ValidationError("Timestamp must include timezone information.")
    return now.astimezone(zone)


def is_date_in_past(day: date, now: datetime | None = None, tz: str = DEFAULT_TIMEZONE) -> bool:
    return day < local_now(now, tz).date()


def is_time_in_past(
    day: date,
    hour: int,
    now: datetime | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> bool:
    current = local_now(now, tz)
    target = datetime.combine(day, time(), tzinfo=current.tzinfo) + timedelta(hours=hour)
    return target < current
