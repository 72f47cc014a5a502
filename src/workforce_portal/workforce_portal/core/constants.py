"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOKEN_MINUTES = 60 * 24
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_ATTENDANCE_LIMIT = 200
MIN_PASSWORD_LENGTH = 6
MIN_RATING = 0
MAX_RATING = 5
