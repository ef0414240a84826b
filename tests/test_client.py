import aiohttp
import pytest

from pyroombooking import Client, PaymentPoller, PollingStrategy
from pyroombooking.exceptions import ProviderError
from pyroombooking.provider.booking_api import Provider as BookingApiProvider
from pyroombooking.provider.click import Provider as ClickProvider


@pytest.mark.asyncio
async def test_list_providers_includes_manifests() -> None:
    async with Client() as client:
        providers = await client.list_providers()
    provider_ids = {provider.id for provider in providers}
    assert {"booking_api", "click"} <= provider_ids


@pytest.mark.asyncio
async def test_get_provider_missing() -> None:
    async with Client() as client:
        with pytest.raises(ProviderError):
            await client.get_provider("missing")


@pytest.mark.asyncio
async def test_get_provider_builds_configured_instance() -> None:
    async with Client(base_url="https://rooms.example") as client:
        booking_api = await client.get_provider("booking_api")
        click = await client.get_provider("click")
    assert isinstance(booking_api, BookingApiProvider)
    assert booking_api._build_url("/x") == "https://rooms.example/x"
    assert isinstance(click, ClickProvider)
    assert click._build_url("/x") == "https://rooms.example/v2/merchant/x"


@pytest.mark.asyncio
async def test_create_poller_wraps_provider() -> None:
    strategy = PollingStrategy(max_attempts=4)
    async with Client(base_url="https://rooms.example") as client:
        provider = await client.get_provider("booking_api")
        poller = client.create_poller(provider, strategy=strategy)
    assert isinstance(poller, PaymentPoller)
    assert poller.strategy is strategy


@pytest.mark.asyncio
async def test_client_does_not_close_injected_session() -> None:
    session = aiohttp.ClientSession()
    client = Client(session=session)
    await client.aclose()

    assert session.closed is False
    await session.close()


@pytest.mark.asyncio
async def test_get_provider_logs_in_with_credentials() -> None:
    async with Client(base_url="https://rooms.example") as client:
        provider = await client.get_provider("booking_api", credentials={"token": "secret"})
        assert provider._token == "secret"  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_client_strategy_is_poller_default() -> None:
    strategy = PollingStrategy(max_attempts=2)
    async with Client(base_url="https://rooms.example", strategy=strategy) as client:
        provider = await client.get_provider("booking_api")
        assert client.create_poller(provider).strategy is strategy
