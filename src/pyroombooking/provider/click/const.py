"""Constants for the Click merchant API provider."""

DEFAULT_BASE_URL = "https://api.click.uz"
DEFAULT_API_URI = "/v2/merchant"
STATUS_BY_MTI_ENDPOINT = "/payment/status_by_mti/{service_id}/{merchant_trans_id}/{payment_date}"

AUTH_HEADER = "Auth"

ERROR_OK = 0
ERROR_INVALID_PARAMS = -1
ERROR_AUTH_FAILED = -15
ERROR_NOT_FOUND = -16

PAYMENT_STATUS_SUCCESSFUL = 1
PAYMENT_METHOD = "click"

# Delay between per-date lookups, in seconds.
DATE_CHECK_DELAY = 0.2
HEALTH_CHECK_TRANS_ID = "HEALTH-CHECK-123"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": "pyroombooking-click",
}
