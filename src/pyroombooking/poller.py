"""Adaptive payment status polling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

from .const import (
    BATCH_DELAY,
    BATCH_MAX_ATTEMPTS,
    POLL_CANCELLED_MESSAGE,
    POLL_INTERVAL_FINAL,
    POLL_INTERVAL_IMMEDIATE,
    POLL_INTERVAL_NORMAL,
    POLL_INTERVAL_SLOW,
    POLL_MAX_ATTEMPTS,
    POLL_NORMAL_ATTEMPTS,
    POLL_SHORT_ATTEMPTS,
    POLL_SLOW_AFTER_NOT_FOUND,
    POLL_TIMEOUT_MESSAGE,
)
from .exceptions import NotFoundError, ValidationError
from .models import PaymentStatus, PollOutcome, PollProgress, PollResult

_LOGGER = logging.getLogger(__name__)


class StatusChecker(Protocol):
    async def check_status(self, booking_id: str) -> PaymentStatus: ...


ProgressCallback = Callable[[PollProgress], None]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class PollingStrategy:
    immediate: float = POLL_INTERVAL_IMMEDIATE
    normal: float = POLL_INTERVAL_NORMAL
    slow: float = POLL_INTERVAL_SLOW
    final: float = POLL_INTERVAL_FINAL
    max_attempts: int = POLL_MAX_ATTEMPTS
    short_attempts: int = POLL_SHORT_ATTEMPTS
    normal_attempts: int = POLL_NORMAL_ATTEMPTS
    slow_after_not_found: int = POLL_SLOW_AFTER_NOT_FOUND
    batch_max_attempts: int = BATCH_MAX_ATTEMPTS
    batch_delay: float = BATCH_DELAY

    def next_interval(self, attempts: int, consecutive_not_found: int) -> float:
        if attempts <= self.short_attempts:
            return self.immediate
        if attempts <= self.normal_attempts:
            return self.normal
        if consecutive_not_found >= self.slow_after_not_found:
            return self.slow
        return self.final


class PaymentPoller:
    """Poll a status checker until a booking is paid or attempts run out."""

    def __init__(
        self,
        checker: StatusChecker,
        *,
        strategy: PollingStrategy | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        if checker is None:
            raise ValidationError("Status checker is required.")
        self._checker = checker
        self._strategy = strategy or PollingStrategy()
        self._sleep = sleep or asyncio.sleep

    @property
    def strategy(self) -> PollingStrategy:
        return self._strategy

    async def poll(
        self,
        booking_id: str,
        *,
        max_attempts: int | None = None,
        on_progress: ProgressCallback | None = None,
        immediate: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> PollResult:
        if not isinstance(booking_id, str) or not booking_id:
            raise ValidationError("booking_id must be a non-empty string.")
        limit = self._strategy.max_attempts if max_attempts is None else max_attempts
        if limit < 1:
            raise ValidationError("max_attempts must be at least 1.")

        attempts = 0
        consecutive_not_found = 0
        last_status: PaymentStatus | None = None
        last_error: str | None = None
        _LOGGER.debug("Payment polling started for booking %s", booking_id)

        if not immediate and await self._wait(self._strategy.immediate, cancel):
            return self._cancelled(booking_id, attempts, last_status)

        while True:
            if cancel is not None and cancel.is_set():
                return self._cancelled(booking_id, attempts, last_status)
            attempts += 1
            delay: float | None = None
            try:
                status = await self._checker.check_status(booking_id)
            except NotFoundError as exc:
                _LOGGER.warning("Booking %s not found by status provider", booking_id)
                self._report(on_progress, attempts, limit, consecutive_not_found, str(exc))
                return PollResult(
                    booking_id=booking_id,
                    outcome=PollOutcome.ERROR,
                    is_paid=False,
                    attempts=attempts,
                    message=str(exc),
                    error=str(exc),
                )
            except Exception as exc:
                _LOGGER.warning(
                    "Payment check for booking %s failed on attempt %d: %s",
                    booking_id,
                    attempts,
                    exc,
                )
                last_error = str(exc) or exc.__class__.__name__
                delay = self._strategy.slow
                message = last_error
            else:
                last_status = status
                if status.is_paid:
                    _LOGGER.debug(
                        "Payment found for booking %s after %d attempts", booking_id, attempts
                    )
                    self._report(
                        on_progress, attempts, limit, consecutive_not_found, status.message
                    )
                    return PollResult(
                        booking_id=booking_id,
                        outcome=PollOutcome.PAID,
                        is_paid=True,
                        attempts=attempts,
                        booking_status=status.booking_status,
                        payment_id=status.payment_id,
                        method=status.method,
                        message=status.message,
                    )
                if status.success:
                    consecutive_not_found += 1
                    last_error = None
                    _LOGGER.debug(
                        "Attempt %d: payment not found for booking %s", attempts, booking_id
                    )
                else:
                    last_error = status.error or status.message or "Status check failed"
                    _LOGGER.warning(
                        "Attempt %d: status service error for booking %s: %s",
                        attempts,
                        booking_id,
                        last_error,
                    )
                message = status.message or last_error

            self._report(on_progress, attempts, limit, consecutive_not_found, message)

            if attempts >= limit:
                return self._exhausted(booking_id, attempts, last_status, last_error)

            if delay is None:
                delay = self._strategy.next_interval(attempts, consecutive_not_found)
            _LOGGER.debug(
                "Next check for booking %s in %ss (attempt %d/%d)",
                booking_id,
                delay,
                attempts + 1,
                limit,
            )
            if await self._wait(delay, cancel):
                return self._cancelled(booking_id, attempts, last_status)

    async def poll_batch(
        self,
        booking_ids: Iterable[str],
        *,
        cancel: asyncio.Event | None = None,
    ) -> list[PollResult]:
        """Poll bookings one after another with a short attempt budget."""
        results: list[PollResult] = []
        booking_ids = list(booking_ids)
        _LOGGER.debug("Batch payment check started for %d bookings", len(booking_ids))
        for index, booking_id in enumerate(booking_ids):
            result = await self.poll(
                booking_id,
                max_attempts=self._strategy.batch_max_attempts,
                immediate=True,
                cancel=cancel,
            )
            results.append(result)
            if result.outcome is PollOutcome.CANCELLED:
                break
            if index < len(booking_ids) - 1 and await self._wait(
                self._strategy.batch_delay, cancel
            ):
                break
        return results

    async def _wait(self, delay: float, cancel: asyncio.Event | None) -> bool:
        """Sleep for ``delay`` seconds; return True when cancelled first."""
        if cancel is None:
            await self._sleep(delay)
            return False
        if cancel.is_set():
            return True
        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()
        return cancel.is_set()

    def _report(
        self,
        callback: ProgressCallback | None,
        attempts: int,
        limit: int,
        consecutive_not_found: int,
        message: str | None,
    ) -> None:
        if callback is None:
            return
        callback(
            PollProgress(
                attempts_made=attempts,
                max_attempts=limit,
                consecutive_not_found=consecutive_not_found,
                last_message=message,
            )
        )

    def _exhausted(
        self,
        booking_id: str,
        attempts: int,
        last_status: PaymentStatus | None,
        last_error: str | None,
    ) -> PollResult:
        _LOGGER.debug(
            "Payment polling timed out for booking %s after %d attempts", booking_id, attempts
        )
        booking_status = last_status.booking_status if last_status else None
        if last_error is not None:
            return PollResult(
                booking_id=booking_id,
                outcome=PollOutcome.ERROR,
                is_paid=False,
                attempts=attempts,
                booking_status=booking_status,
                message=POLL_TIMEOUT_MESSAGE,
                error=last_error,
            )
        return PollResult(
            booking_id=booking_id,
            outcome=PollOutcome.UNPAID_TIMEOUT,
            is_paid=False,
            attempts=attempts,
            booking_status=booking_status,
            message=POLL_TIMEOUT_MESSAGE,
        )

    def _cancelled(
        self,
        booking_id: str,
        attempts: int,
        last_status: PaymentStatus | None,
    ) -> PollResult:
        _LOGGER.debug("Payment polling cancelled for booking %s", booking_id)
        return PollResult(
            booking_id=booking_id,
            outcome=PollOutcome.CANCELLED,
            is_paid=False,
            attempts=attempts,
            booking_status=last_status.booking_status if last_status else None,
            message=POLL_CANCELLED_MESSAGE,
        )
