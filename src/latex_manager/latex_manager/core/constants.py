"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_RECENT_TASKS = 50
MAX_RECENT_TASKS = 200
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_WORKDAY_START = "09:00"
DEFAULT_TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600
BILL_NUMBER_PREFIX = "BILL"
BILL_NUMBER_ATTEMPTS = 5
MIN_PASSWORD_LENGTH = 6
