"""Client facade tying provider discovery to payment polling."""

from __future__ import annotations

import asyncio
import importlib
import logging
from collections.abc import Mapping

import aiohttp

from .exceptions import ProviderError, ValidationError
from .models import ProviderInfo
from .poller import PaymentPoller, PollingStrategy, SleepFunc
from .provider.base import BaseProvider
from .provider.loader import ProviderManifest, get_manifest, list_providers

_LOGGER = logging.getLogger(__name__)
_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=30)
_PROVIDER_PACKAGE = "pyroombooking.provider"


def _import_provider_class(manifest: ProviderManifest) -> type[BaseProvider]:
    try:
        module = importlib.import_module(f"{_PROVIDER_PACKAGE}.{manifest.id}")
    except ModuleNotFoundError as exc:
        raise ProviderError(f"Provider {manifest.id} could not be imported.") from exc
    provider_cls = getattr(module, "Provider", None)
    if not isinstance(provider_cls, type) or not issubclass(provider_cls, BaseProvider):
        raise ProviderError(f"Provider {manifest.id} must export a BaseProvider subclass.")
    return provider_cls


def _resolve_provider(provider_id: str) -> tuple[ProviderManifest, type[BaseProvider]]:
    if not isinstance(provider_id, str) or not provider_id:
        raise ValidationError("provider_id must be a non-empty string.")
    manifest = get_manifest(provider_id)
    return manifest, _import_provider_class(manifest)


class Client:
    """Entry point for status providers and payment pollers.

    The client creates its own ``aiohttp.ClientSession`` on first use unless one
    is passed in; only a session it created is closed by :meth:`aclose`.
    ``base_url``, ``api_uri``, ``timeout`` and ``retry_count`` are handed to every
    provider it builds, and ``strategy`` to every poller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        base_url: str | None = None,
        api_uri: str | None = None,
        timeout: aiohttp.ClientTimeout | None = None,
        retry_count: int = 0,
        strategy: PollingStrategy | None = None,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url
        self._api_uri = api_uri
        self._timeout = timeout or _DEFAULT_TIMEOUT
        self._retry_count = max(0, retry_count)
        self._strategy = strategy

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def list_providers(self) -> list[ProviderInfo]:
        return await asyncio.to_thread(list_providers)

    async def get_provider(
        self,
        provider_id: str,
        *,
        base_url: str | None = None,
        api_uri: str | None = None,
        credentials: Mapping[str, str] | None = None,
    ) -> BaseProvider:
        """Build a provider, logging in first when ``credentials`` are given."""
        manifest, provider_cls = await asyncio.to_thread(_resolve_provider, provider_id)
        provider = provider_cls(
            self._get_session(),
            manifest,
            base_url=self._base_url if base_url is None else base_url,
            api_uri=self._api_uri if api_uri is None else api_uri,
            timeout=self._timeout,
            retry_count=self._retry_count,
        )
        if credentials is not None:
            await provider.login(credentials)
        _LOGGER.debug("Provider %s ready", manifest.id)
        return provider

    def create_poller(
        self,
        provider: BaseProvider,
        *,
        strategy: PollingStrategy | None = None,
        sleep: SleepFunc | None = None,
    ) -> PaymentPoller:
        return PaymentPoller(provider, strategy=strategy or self._strategy, sleep=sleep)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
