"""Click merchant API provider implementation."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import Mapping
from datetime import UTC, date, datetime, timedelta
from typing import Any

import aiohttp

from ...exceptions import AuthError, ProviderError, PyRoomBookingError, ValidationError
from ...models import PaymentStatus, ProviderHealth
from ..base import BaseProvider
from ..loader import ProviderManifest
from .const import (
    AUTH_HEADER,
    DATE_CHECK_DELAY,
    DEFAULT_API_URI,
    DEFAULT_BASE_URL,
    DEFAULT_HEADERS,
    ERROR_AUTH_FAILED,
    ERROR_NOT_FOUND,
    ERROR_OK,
    HEALTH_CHECK_TRANS_ID,
    PAYMENT_METHOD,
    PAYMENT_STATUS_SUCCESSFUL,
    STATUS_BY_MTI_ENDPOINT,
)

_LOGGER = logging.getLogger(__name__)


class Provider(BaseProvider):
    """Provider for the Click merchant API.

    Bookings are identified by their merchant transaction id. Click only finds
    a payment when queried with the exact payment date, so each check walks
    today, the invoice date and yesterday.
    """

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
            base_url=base_url or DEFAULT_BASE_URL,
            api_uri=api_uri if api_uri is not None else DEFAULT_API_URI,
            timeout=timeout,
            retry_count=retry_count,
        )
        self._service_id: str | None = None
        self._merchant_user_id: str | None = None
        self._secret_key: str | None = None
        self._invoice_dates: dict[str, date] = {}

    async def login(self, credentials: Mapping[str, str] | None = None, **kwargs: str) -> None:
        """Store merchant credentials used to sign requests."""
        merged = self._merge_credentials(credentials, **kwargs)
        for key in ("service_id", "merchant_user_id", "secret_key"):
            if not merged.get(key):
                raise ValidationError(f"{key} is required.")
        self._service_id = merged["service_id"]
        self._merchant_user_id = merged["merchant_user_id"]
        self._secret_key = merged["secret_key"]

    def set_invoice_date(self, booking_id: str, invoice_date: date) -> None:
        """Remember when the invoice for ``booking_id`` was issued.

        Later status checks for the booking also look the payment up on that
        date, including checks made by a :class:`PaymentPoller`.
        """
        if not isinstance(invoice_date, date):
            raise ValidationError("invoice_date must be a date.")
        self._invoice_dates[self._validate_booking_id(booking_id)] = invoice_date

    async def check_status(
        self,
        booking_id: str,
        *,
        invoice_date: date | None = None,
    ) -> PaymentStatus:
        """Look the payment up across the candidate payment dates."""
        merchant_trans_id = self._validate_booking_id(booking_id)
        _LOGGER.debug(
            "Provider %s check_status started for %s", self.provider_id, merchant_trans_id
        )
        if invoice_date is None:
            invoice_date = self._invoice_dates.get(merchant_trans_id)
        payment_dates = self._payment_dates(invoice_date)
        for index, payment_date in enumerate(payment_dates):
            data = await self._fetch_status(merchant_trans_id, payment_date)
            status = self._map_status(data)
            if status.is_paid:
                _LOGGER.debug(
                    "Provider %s found payment for %s on %s",
                    self.provider_id,
                    merchant_trans_id,
                    payment_date,
                )
                return status
            if not status.success:
                return status
            if index < len(payment_dates) - 1:
                await asyncio.sleep(DATE_CHECK_DELAY)
        _LOGGER.debug("Provider %s check_status completed: not found", self.provider_id)
        return PaymentStatus(
            success=True,
            is_paid=False,
            method=PAYMENT_METHOD,
            message="Payment not found on any date",
        )

    async def health_check(self) -> ProviderHealth:
        """Probe the API with a dummy transaction to verify credentials."""
        try:
            data = await self._fetch_status(HEALTH_CHECK_TRANS_ID, self._today())
        except AuthError:
            return ProviderHealth(
                healthy=False,
                status="authentication_failed",
                message="Click API authentication failed",
            )
        except PyRoomBookingError as exc:
            return ProviderHealth(healthy=False, status="error", message=str(exc))
        if self._error_code(data) == ERROR_AUTH_FAILED:
            return ProviderHealth(
                healthy=False,
                status="authentication_failed",
                message="Click API authentication failed",
            )
        return ProviderHealth(
            healthy=True,
            status="healthy",
            message="Click API is responding correctly",
        )

    async def _fetch_status(self, merchant_trans_id: str, payment_date: date) -> dict[str, Any]:
        if self._service_id is None:
            raise AuthError("Authentication required.")
        path = STATUS_BY_MTI_ENDPOINT.format(
            service_id=self._service_id,
            merchant_trans_id=merchant_trans_id,
            payment_date=payment_date.isoformat(),
        )
        data = await self._request_json("GET", path, headers=self._build_auth_headers())
        if not isinstance(data, dict):
            raise ProviderError("Provider response must be a JSON object.")
        return data

    def _build_auth_headers(self, timestamp: int | None = None) -> dict[str, str]:
        if self._merchant_user_id is None or self._secret_key is None:
            raise AuthError("Authentication required.")
        if timestamp is None:
            timestamp = int(time.time())
        digest = hashlib.sha1(f"{timestamp}{self._secret_key}".encode()).hexdigest()
        return {
            **DEFAULT_HEADERS,
            AUTH_HEADER: f"{self._merchant_user_id}:{digest}:{timestamp}",
        }

    def _map_status(self, data: dict[str, Any]) -> PaymentStatus:
        error_code = self._error_code(data)
        error_note = data.get("error_note")
        if error_code == ERROR_OK:
            if data.get("payment_status") == PAYMENT_STATUS_SUCCESSFUL:
                payment_id = data.get("payment_id")
                return PaymentStatus(
                    success=True,
                    is_paid=True,
                    payment_id=str(payment_id) if payment_id is not None else None,
                    method=PAYMENT_METHOD,
                    message="Payment confirmed",
                )
            return PaymentStatus(
                success=True,
                is_paid=False,
                method=PAYMENT_METHOD,
                message="Payment not completed yet",
            )
        if error_code == ERROR_NOT_FOUND:
            return PaymentStatus(
                success=True,
                is_paid=False,
                method=PAYMENT_METHOD,
                message=str(error_note) if error_note else "Payment not found",
            )
        return PaymentStatus(
            success=False,
            is_paid=False,
            method=PAYMENT_METHOD,
            message=str(error_note) if error_note else None,
            error=f"Click error {error_code}: {error_note or 'unknown error'}",
        )

    def _error_code(self, data: dict[str, Any]) -> int | None:
        value = data.get("error_code")
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

    def _today(self) -> date:
        return datetime.now(tz=UTC).date()

    def _payment_dates(self, invoice_date: date | None) -> list[date]:
        today = self._today()
        dates = [today]
        for candidate in (invoice_date, today - timedelta(days=1)):
            if candidate is not None and candidate not in dates:
                dates.append(candidate)
        return dates
