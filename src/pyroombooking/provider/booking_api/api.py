"""Booking API provider implementation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from ...exceptions import AuthError, ProviderError, ValidationError
from ...models import PaymentStatus
from ..base import BaseProvider
from ..loader import ProviderManifest
from .const import (
    APPROVED_STATUS,
    AUTH_HEADER,
    AUTH_PREFIX,
    CHECK_PAYMENT_ENDPOINT,
    DEFAULT_HEADERS,
    NOT_FOUND_ERROR_CODE,
)

_LOGGER = logging.getLogger(__name__)


class Provider(BaseProvider):
    """Provider for the booking backend's smart payment check."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        manifest: ProviderManifest,
        *,
        base_url: str | None = None,
        api_uri: str | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
    ) -> None:
        """Initialize the provider."""
        super().__init__(
            session,
            manifest,
            base_url=base_url,
            api_uri=api_uri,
            timeout=timeout,
            retry_count=retry_count,
        )
        self._token: str | None = None

    async def login(self, credentials: Mapping[str, str] | None = None, **kwargs: str) -> None:
        """Store the bearer token used for status checks."""
        merged = self._merge_credentials(credentials, **kwargs)
        token = merged.get("token")
        if not token or not token.strip():
            raise ValidationError("token is required.")
        self._token = token.strip()

    async def check_status(self, booking_id: str) -> PaymentStatus:
        """Ask the booking backend to check and return the payment status."""
        booking_id = self._validate_booking_id(booking_id)
        if self._token is None:
            raise AuthError("Authentication required.")
        _LOGGER.debug("Provider %s check_status started for %s", self.provider_id, booking_id)
        data = await self._request_json(
            "POST",
            CHECK_PAYMENT_ENDPOINT.format(booking_id=booking_id),
            headers={**DEFAULT_HEADERS, AUTH_HEADER: f"{AUTH_PREFIX}{self._token}"},
        )
        status = self._map_status(data)
        _LOGGER.debug(
            "Provider %s check_status completed for %s (paid=%s)",
            self.provider_id,
            booking_id,
            status.is_paid,
        )
        return status

    def _map_status(self, data: Any) -> PaymentStatus:
        if not isinstance(data, dict):
            raise ProviderError("Provider response must be a JSON object.")
        booking = data.get("booking")
        if not isinstance(booking, dict):
            booking = {}
        booking_status = booking.get("status") or data.get("bookingStatus")
        if booking_status is not None:
            booking_status = str(booking_status)
        method = data.get("provider") or data.get("method")
        payment_id = data.get("paymentId")
        message = data.get("message") or data.get("errorNote")

        succeeded = bool(data.get("success"))
        paid = (succeeded and bool(data.get("isPaid"))) or (
            booking_status == APPROVED_STATUS and bool(booking.get("paidAt"))
        )
        if paid:
            return PaymentStatus(
                success=True,
                is_paid=True,
                booking_status=booking_status,
                payment_id=str(payment_id) if payment_id is not None else None,
                method=str(method) if method else None,
                message=message or "Payment confirmed",
            )
        if succeeded or self._parse_int(data.get("errorCode")) == NOT_FOUND_ERROR_CODE:
            return PaymentStatus(
                success=True,
                is_paid=False,
                booking_status=booking_status,
                method=str(method) if method else None,
                message=message or "Payment not completed yet",
            )
        error = data.get("errorNote") or data.get("error") or "Payment status check failed."
        return PaymentStatus(
            success=False,
            is_paid=False,
            booking_status=booking_status,
            method=str(method) if method else None,
            message=message,
            error=str(error),
        )

    def _parse_int(self, value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return None
        return None
