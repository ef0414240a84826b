"""Library exceptions."""


class PyRoomBookingError(Exception):
    """Base exception for the library."""


class ValidationError(PyRoomBookingError):
    """Raised when inputs fail validation."""


class AuthError(PyRoomBookingError):
    """Raised when authentication fails."""


class NetworkError(PyRoomBookingError):
    """Raised when network communication fails."""


class ProviderError(PyRoomBookingError):
    """Raised when a provider returns an error or is misconfigured."""


class NotFoundError(ProviderError):
    """Raised when a provider does not know the requested booking."""


class RateLimitError(ProviderError):
    """Raised when a provider keeps rejecting requests with HTTP 429."""
