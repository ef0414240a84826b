"""Library-wide defaults."""

DEFAULT_TIMEZONE = "Asia/Tashkent"

DEFAULT_FULL_DAY_HOURS = 8
DEFAULT_MINIMUM_HOURS = 1

# Payment polling intervals, in seconds.
POLL_INTERVAL_IMMEDIATE = 10
POLL_INTERVAL_NORMAL = 30
POLL_INTERVAL_SLOW = 60
POLL_INTERVAL_FINAL = 120

POLL_MAX_ATTEMPTS = 15
POLL_SHORT_ATTEMPTS = 3
POLL_NORMAL_ATTEMPTS = 8
POLL_SLOW_AFTER_NOT_FOUND = 5

BATCH_MAX_ATTEMPTS = 3
BATCH_DELAY = 1

POLL_TIMEOUT_MESSAGE = "Polling timeout - payment not detected"
POLL_CANCELLED_MESSAGE = "Polling cancelled"
