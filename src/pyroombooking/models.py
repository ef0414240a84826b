"""Public data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


@dataclass(frozen=True, slots=True)
class TimeSlot:
    date: date
    start_hour: int
    end_hour: int


@dataclass(frozen=True, slots=True)
class BookedSlot:
    date: date
    start_hour: int
    end_hour: int
    cooldown_minutes: int = 0


@dataclass(frozen=True, slots=True)
class PricingConfig:
    hourly_rate: float
    full_day_hours: int = 8
    full_day_discount_price: float = 0


@dataclass(frozen=True, slots=True)
class PriceBreakdownLine:
    date: date
    time_range: str
    hours: int
    price: float
    price_type: str


@dataclass(frozen=True, slots=True)
class PricingResult:
    total_hours: int
    total_price: float
    breakdown: list[PriceBreakdownLine] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WorkingHours:
    start_hour: int
    end_hour: int


@dataclass(frozen=True, slots=True)
class SlotConflict:
    selected: TimeSlot
    booked: BookedSlot


@dataclass(frozen=True, slots=True)
class AvailabilityCheck:
    is_valid: bool
    message: str | None = None
    conflicting_slot: TimeSlot | None = None


@dataclass(frozen=True, slots=True)
class PendingBooking:
    id: str
    slots: list[TimeSlot]


@dataclass(frozen=True, slots=True)
class PaymentStatus:
    """Result of a single payment status check.

    ``success`` is False only when the check itself failed. A completed check
    that found no payment has ``success=True`` and ``is_paid=False``.
    """

    success: bool
    is_paid: bool
    booking_status: str | None = None
    payment_id: str | None = None
    method: str | None = None
    message: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class PollProgress:
    attempts_made: int
    max_attempts: int
    consecutive_not_found: int
    last_message: str | None


class PollOutcome(StrEnum):
    PAID = "paid"
    UNPAID_TIMEOUT = "unpaid_timeout"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class PollResult:
    booking_id: str
    outcome: PollOutcome
    is_paid: bool
    attempts: int
    booking_status: str | None = None
    payment_id: str | None = None
    method: str | None = None
    message: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is not PollOutcome.ERROR


@dataclass(frozen=True, slots=True)
class ProviderInfo:
    id: str
    name: str
    payment_methods: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ProviderHealth:
    healthy: bool
    status: str
    message: str
