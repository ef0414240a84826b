from __future__ import annotations

import asyncio

import aiohttp
import pytest

from pyroombooking.exceptions import (
    AuthError,
    NetworkError,
    NotFoundError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from pyroombooking.models import PaymentStatus
from pyroombooking.provider.base import RETRY_AFTER_HEADER, BaseProvider
from pyroombooking.provider.loader import ProviderManifest


class _FakeResponse:
    def __init__(
        self,
        *,
        status: int = 200,
        headers: dict[str, str] | None = None,
        json_data: object | None = None,
        json_error: Exception | None = None,
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self._json_data = json_data
        self._json_error = json_error

    async def json(self) -> object:
        if self._json_error is not None:
            raise self._json_error
        return self._json_data


class _FakeRequestContext:
    def __init__(self, response: _FakeResponse) -> None:
        self._response = response

    async def __aenter__(self) -> _FakeResponse:
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _SequenceSession:
    def __init__(self, results: list[object]) -> None:
        self._results = results
        self.calls = 0
        self.requests: list[dict[str, object]] = []

    def request(self, method: str, url: str, **kwargs) -> _FakeRequestContext:
        self.requests.append({"method": method, "url": url, "kwargs": kwargs})
        self.calls += 1
        result = self._results[self.calls - 1]
        if isinstance(result, Exception):
            raise result
        return _FakeRequestContext(result)


class _DummyProvider(BaseProvider):
    async def login(self, credentials=None, **kwargs):  # type: ignore[override]
        return None

    async def check_status(self, booking_id: str) -> PaymentStatus:
        self._validate_booking_id(booking_id)
        return PaymentStatus(success=True, is_paid=False)


def _manifest() -> ProviderManifest:
    return ProviderManifest(id="dummy", name="Dummy", payment_methods=("click",))


def _provider(session: object, **kwargs) -> _DummyProvider:
    kwargs.setdefault("base_url", "https://example.com")
    return _DummyProvider(session, _manifest(), **kwargs)  # type: ignore[arg-type]


def test_session_is_required() -> None:
    with pytest.raises(ValidationError):
        _DummyProvider(None, _manifest())  # type: ignore[arg-type]


def test_provider_info_comes_from_manifest() -> None:
    provider = _provider(_SequenceSession([]))
    assert provider.provider_id == "dummy"
    assert provider.provider_name == "Dummy"
    assert provider.info.payment_methods == ("click",)


def test_build_url_validation() -> None:
    provider = _provider(_SequenceSession([]))
    assert provider._build_url("/path") == "https://example.com/path"
    assert provider._build_url("path") == "https://example.com/path"
    with pytest.raises(ValidationError):
        provider._build_url("")
    with pytest.raises(ValidationError):
        provider._build_url("https://example.com/absolute")


def test_build_url_includes_api_uri() -> None:
    provider = _provider(
        _SequenceSession([]),
        base_url="https://example.com/",
        api_uri="/api/v1/",
    )
    assert provider._build_url("/bookings") == "https://example.com/api/v1/bookings"


def test_build_url_requires_base_url() -> None:
    provider = _provider(_SequenceSession([]), base_url=None)
    with pytest.raises(ValidationError):
        provider._build_url("path")


def test_normalize_api_uri() -> None:
    provider = _provider(_SequenceSession([]))
    assert provider._normalize_api_uri(None) == ""
    assert provider._normalize_api_uri(" /api/v1/ ") == "/api/v1"
    with pytest.raises(ValidationError):
        provider._normalize_api_uri(123)  # type: ignore[arg-type]


def test_merge_credentials() -> None:
    provider = _provider(_SequenceSession([]))
    merged = provider._merge_credentials({"user": "a"}, token="b")
    assert merged == {"user": "a", "token": "b"}
    with pytest.raises(ValidationError):
        provider._merge_credentials(["invalid"])  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        provider._merge_credentials({"user": 1})  # type: ignore[dict-item]


@pytest.mark.asyncio
async def test_booking_id_is_validated() -> None:
    provider = _provider(_SequenceSession([]))
    with pytest.raises(ValidationError):
        await provider.check_status("  ")


@pytest.mark.asyncio
async def test_request_json_retries_get() -> None:
    session = _SequenceSession(
        [
            aiohttp.ClientError("boom"),
            _FakeResponse(json_data={"ok": True}),
        ]
    )
    provider = _provider(session, retry_count=1)
    result = await provider._request_json("GET", "/path")
    assert result == {"ok": True}
    assert session.calls == 2


@pytest.mark.asyncio
async def test_request_json_no_retry_on_post() -> None:
    session = _SequenceSession([aiohttp.ClientError("boom")])
    provider = _provider(session, retry_count=2)
    with pytest.raises(NetworkError):
        await provider._request_json("POST", "/path")
    assert session.calls == 1


@pytest.mark.asyncio
async def test_request_json_timeout_is_network_error() -> None:
    session = _SequenceSession([TimeoutError()])
    provider = _provider(session)
    with pytest.raises(NetworkError):
        await provider._request_json("GET", "/path")


@pytest.mark.asyncio
async def test_request_json_invalid_response() -> None:
    session = _SequenceSession([_FakeResponse(json_error=ValueError("bad"))])
    provider = _provider(session)
    with pytest.raises(ProviderError):
        await provider._request_json("GET", "/path")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_request_json_auth_error(status: int) -> None:
    session = _SequenceSession([_FakeResponse(status=status)])
    provider = _provider(session)
    with pytest.raises(AuthError):
        await provider._request_json("GET", "/path")


@pytest.mark.asyncio
async def test_request_json_not_found() -> None:
    session = _SequenceSession([_FakeResponse(status=404)])
    provider = _provider(session)
    with pytest.raises(NotFoundError):
        await provider._request_json("POST", "/path")


@pytest.mark.asyncio
async def test_request_json_provider_error() -> None:
    session = _SequenceSession([_FakeResponse(status=500)])
    provider = _provider(session)
    with pytest.raises(ProviderError):
        await provider._request_json("GET", "/path")


@pytest.mark.asyncio
async def test_rate_limit_honors_retry_after(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[float] = []

    async def _fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", _fake_sleep)
    session = _SequenceSession(
        [
            _FakeResponse(status=429, headers={RETRY_AFTER_HEADER: "3"}),
            _FakeResponse(json_data={"ok": True}),
        ]
    )
    provider = _provider(session, retry_count=1)
    assert await provider._request_json("GET", "/path") == {"ok": True}
    assert delays == [3]


@pytest.mark.asyncio
async def test_rate_limit_raises_on_post() -> None:
    session = _SequenceSession([_FakeResponse(status=429)])
    provider = _provider(session, retry_count=3)
    with pytest.raises(RateLimitError):
        await provider._request_json("POST", "/path")
    assert session.calls == 1


@pytest.mark.asyncio
async def test_rate_limit_raises_after_last_attempt() -> None:
    session = _SequenceSession([_FakeResponse(status=429), _FakeResponse(status=429)])
    provider = _provider(session, retry_count=1)
    with pytest.raises(RateLimitError):
        await provider._request_json("GET", "/path")
    assert session.calls == 2
