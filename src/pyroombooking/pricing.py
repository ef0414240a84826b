"""Booking price calculation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .const import DEFAULT_FULL_DAY_HOURS
from .exceptions import ValidationError
from .models import PriceBreakdownLine, PricingConfig, PricingResult, TimeSlot
from .util import format_time_range, validate_pricing_config, validate_time_slot

_LOGGER = logging.getLogger(__name__)


def pricing_config_from_place(place: Mapping[str, Any]) -> PricingConfig:
    """Build a pricing config from a place record."""
    if not isinstance(place, Mapping):
        raise ValidationError("Place must be a mapping.")
    if place.get("price") is None:
        raise ValidationError("Place price is required.")
    try:
        config = PricingConfig(
            hourly_rate=float(place["price"]),
            full_day_hours=int(place.get("fullDayHours") or DEFAULT_FULL_DAY_HOURS),
            full_day_discount_price=float(place.get("fullDayDiscountPrice") or 0),
        )
    except (TypeError, ValueError) as exc:
        raise ValidationError("Place pricing fields must be numeric.") from exc
    return validate_pricing_config(config)


def price_slot(slot: TimeSlot, config: PricingConfig) -> PriceBreakdownLine:
    hours = slot.end_hour - slot.start_hour
    if hours >= config.full_day_hours and config.full_day_discount_price > 0:
        full_days, remaining = divmod(hours, config.full_day_hours)
        price = full_days * config.full_day_discount_price + remaining * config.hourly_rate
        if full_days > 0:
            plural = "s" if full_days > 1 else ""
            price_type = f"{full_days} full day{plural} + {remaining}h"
        else:
            price_type = f"{hours}h"
    else:
        price = hours * config.hourly_rate
        price_type = f"{hours}h"
    return PriceBreakdownLine(
        date=slot.date,
        time_range=format_time_range(slot.start_hour, slot.end_hour),
        hours=hours,
        price=price,
        price_type=price_type,
    )


def calculate_booking_pricing(
    slots: Iterable[TimeSlot],
    config: PricingConfig,
) -> PricingResult:
    """Price each slot independently and total the results.

    All slots are validated before anything is priced, so a malformed slot
    anywhere in the input yields a ValidationError and no partial result.
    """
    validate_pricing_config(config)
    validated = [validate_time_slot(slot) for slot in slots]
    breakdown = [price_slot(slot, config) for slot in validated]
    total_hours = sum(line.hours for line in breakdown)
    total_price = sum(line.price for line in breakdown)
    _LOGGER.debug(
        "Priced %d slots: %d hours, total %s",
        len(breakdown),
        total_hours,
        total_price,
    )
    return PricingResult(total_hours=total_hours, total_price=total_price, breakdown=breakdown)
