"""Constants for the booking API provider."""

CHECK_PAYMENT_ENDPOINT = "/bookings/{booking_id}/check-payment-smart"

AUTH_HEADER = "Authorization"
AUTH_PREFIX = "Bearer "

APPROVED_STATUS = "approved"
NOT_FOUND_ERROR_CODE = -16

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "pyroombooking-booking-api",
}
