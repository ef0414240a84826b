from datetime import date

from pyroombooking.provider.click.api import Provider
from pyroombooking.provider.loader import ProviderManifest


def _provider() -> Provider:
    return Provider(
        object(),  # type: ignore[arg-type]
        ProviderManifest(id="click", name="Click Merchant API", payment_methods=("click",)),
    )


def test_map_successful_payment() -> None:
    status = _provider()._map_status({"error_code": 0, "payment_status": 1, "payment_id": 42})
    assert status.success is True
    assert status.is_paid is True
    assert status.payment_id == "42"
    assert status.message == "Payment confirmed"


def test_map_incomplete_payment() -> None:
    status = _provider()._map_status({"error_code": 0, "payment_status": 0})
    assert status.success is True
    assert status.is_paid is False
    assert status.message == "Payment not completed yet"


def test_map_not_found() -> None:
    status = _provider()._map_status({"error_code": "-16"})
    assert status.success is True
    assert status.is_paid is False
    assert status.message == "Payment not found"


def test_map_other_error_codes() -> None:
    status = _provider()._map_status({"error_code": -15, "error_note": "Sign check failed"})
    assert status.success is False
    assert status.error == "Click error -15: Sign check failed"
    missing = _provider()._map_status({})
    assert missing.success is False
    assert missing.error == "Click error None: unknown error"


def test_payment_dates_skip_duplicates() -> None:
    provider = _provider()
    provider._today = lambda: date(2025, 3, 10)  # type: ignore[method-assign]
    assert provider._payment_dates(None) == [date(2025, 3, 10), date(2025, 3, 9)]
    assert provider._payment_dates(date(2025, 3, 9)) == [date(2025, 3, 10), date(2025, 3, 9)]
    assert provider._payment_dates(date(2025, 3, 1)) == [
        date(2025, 3, 10),
        date(2025, 3, 1),
        date(2025, 3, 9),
    ]
