import pytest

from pyroombooking.exceptions import (
    AuthError,
    NetworkError,
    NotFoundError,
    ProviderError,
    PyRoomBookingError,
    RateLimitError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error_cls",
    [AuthError, NetworkError, ValidationError, ProviderError, NotFoundError, RateLimitError],
)
def test_errors_share_base(error_cls) -> None:
    with pytest.raises(PyRoomBookingError):
        raise error_cls("nope")


def test_provider_error_subclasses() -> None:
    assert issubclass(NotFoundError, ProviderError)
    assert issubclass(RateLimitError, ProviderError)
    assert not issubclass(AuthError, ProviderError)
    assert str(NotFoundError("Booking not found.")) == "Booking not found."
