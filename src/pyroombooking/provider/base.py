"""Status provider base class and shared HTTP handling."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import aiohttp

from ..exceptions import (
    AuthError,
    NetworkError,
    NotFoundError,
    ProviderError,
    PyRoomBookingError,
    RateLimitError,
    ValidationError,
)
from ..models import PaymentStatus, ProviderInfo
from .loader import ProviderManifest

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)
_STATUS_ERRORS: dict[int, tuple[type[PyRoomBookingError], str]] = {
    401: (AuthError, "Authentication failed."),
    403: (AuthError, "Authentication failed."),
    404: (NotFoundError, "Booking not found."),
}
RETRY_AFTER_HEADER = "Retry-After"


class BaseProvider(ABC):
    """Base class for payment status providers.

    Subclasses implement :meth:`login` and :meth:`check_status` and talk to
    their service through :meth:`_request_json`, which maps HTTP failures onto
    library exceptions. Only GET requests are retried.
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
        if session is None:
            raise ValidationError("Session is required.")
        self._session = session
        self._manifest = manifest
        self._base_url = self._normalize_base_url(base_url)
        self._api_uri = self._normalize_api_uri(api_uri)
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)

    @property
    def provider_id(self) -> str:
        return self._manifest.id

    @property
    def provider_name(self) -> str:
        return self._manifest.name

    @property
    def info(self) -> ProviderInfo:
        return self._manifest.to_info()

    @abstractmethod
    async def login(self, credentials: Mapping[str, str] | None = None, **kwargs: str) -> None:
        """Store the credentials later requests are signed with."""

    @abstractmethod
    async def check_status(self, booking_id: str) -> PaymentStatus:
        """Return the current payment status for a booking."""

    def _validate_booking_id(self, booking_id: str) -> str:
        if not isinstance(booking_id, str) or not booking_id.strip():
            raise ValidationError("booking_id must be a non-empty string.")
        return booking_id.strip()

    def _merge_credentials(
        self,
        credentials: Mapping[str, str] | None,
        **kwargs: str,
    ) -> dict[str, str]:
        """Combine a credentials mapping with keyword overrides."""
        if credentials is not None and not isinstance(credentials, Mapping):
            raise ValidationError("credentials must be a mapping of strings.")
        pairs = list((credentials or {}).items())
        pairs.extend((key, value) for key, value in kwargs.items() if value is not None)
        merged: dict[str, str] = {}
        for key, value in pairs:
            if not isinstance(key, str) or not isinstance(value, str):
                raise ValidationError("credentials must be a mapping of strings.")
            merged[key] = value
        return merged

    def _build_url(self, path: str) -> str:
        if not isinstance(path, str) or not path:
            raise ValidationError("Path must be a non-empty string.")
        if "://" in path:
            raise ValidationError("Provider request paths must be relative.")
        if self._base_url is None:
            raise ValidationError("base_url is required to build provider requests.")
        return f"{self._base_url}{self._api_uri}/{path.lstrip('/')}"

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._build_url(path)
        method = method.upper()
        attempts = 1 + (self._retry_count if method == "GET" else 0)
        timeout = kwargs.pop("timeout", None) or self._timeout
        for attempt in range(1, attempts + 1):
            final = attempt == attempts
            _LOGGER.debug("%s %s (attempt %d/%d)", method, url, attempt, attempts)
            try:
                async with self._session.request(
                    method, url, timeout=timeout, ssl=True, **kwargs
                ) as response:
                    if response.status == 429:
                        if method != "GET" or final:
                            raise RateLimitError("Provider rate limit exceeded.")
                        await self._wait_retry_after(response)
                        continue
                    self._raise_for_status(response)
                    return await self._read_json(response)
            except (aiohttp.ClientError, TimeoutError) as exc:
                if final:
                    raise NetworkError("Network request failed.") from exc
                _LOGGER.debug("Retrying %s %s after %s", method, url, exc.__class__.__name__)
        raise NetworkError("Network request failed.")

    async def _read_json(self, response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json()
        except (aiohttp.ContentTypeError, ValueError) as exc:
            raise ProviderError("Response did not contain valid JSON.") from exc

    def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        error_cls, message = _STATUS_ERRORS.get(
            response.status,
            (ProviderError, f"Provider request failed with status {response.status}."),
        )
        raise error_cls(message)

    async def _wait_retry_after(self, response: aiohttp.ClientResponse) -> None:
        value = response.headers.get(RETRY_AFTER_HEADER, "")
        delay = int(value) if value.strip().isdigit() else 0
        if delay > 0:
            await asyncio.sleep(delay)

    def _normalize_base_url(self, base_url: str | None) -> str | None:
        if base_url is None:
            return None
        if not isinstance(base_url, str) or not base_url.strip():
            raise ValidationError("base_url must be a non-empty string.")
        return base_url.strip().rstrip("/")

    def _normalize_api_uri(self, api_uri: str | None) -> str:
        if api_uri is None:
            return ""
        if not isinstance(api_uri, str):
            raise ValidationError("api_uri must be a string.")
        segment = api_uri.strip().strip("/")
        return f"/{segment}" if segment else ""
