"""pyroombooking package."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .availability import are_slots_available, check_booking_slots, find_conflicts
from .client import Client
from .exceptions import (
    AuthError,
    NetworkError,
    NotFoundError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from .models import (
    AvailabilityCheck,
    BookedSlot,
    PaymentStatus,
    PollOutcome,
    PollProgress,
    PollResult,
    PriceBreakdownLine,
    PricingConfig,
    PricingResult,
    ProviderInfo,
    TimeSlot,
    WorkingHours,
)
from .poller import PaymentPoller, PollingStrategy
from .pricing import calculate_booking_pricing

try:
    __version__ = version("pyroombooking")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "AuthError",
    "AvailabilityCheck",
    "BookedSlot",
    "Client",
    "NetworkError",
    "NotFoundError",
    "PaymentPoller",
    "PaymentStatus",
    "PollOutcome",
    "PollProgress",
    "PollResult",
    "PollingStrategy",
    "PriceBreakdownLine",
    "PricingConfig",
    "PricingResult",
    "ProviderError",
    "ProviderInfo",
    "RateLimitError",
    "TimeSlot",
    "ValidationError",
    "WorkingHours",
    "__version__",
    "are_slots_available",
    "calculate_booking_pricing",
    "check_booking_slots",
    "find_conflicts",
]
