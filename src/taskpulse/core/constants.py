"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_CACHE_TTL_SECONDS = 300

# A user whose last login is at most this many hours old counts as present.
ATTENDANCE_GRACE_HOURS = 24

ATTENDANCE_INTERVAL_HOURS = 24
OVERDUE_INTERVAL_MINUTES = 60

USER_ROOM_PREFIX = "user:"
EVENTS_CACHE_PREFIX = "events:"

ABSENCE_REMINDER = "You were marked absent today. Please log in to maintain your streak!"
ABSENCE_PUSH_MESSAGE = "You were marked absent. Please log in regularly!"

# MySQL truncates GROUP_CONCAT at 1024 bytes by default; target/reader id lists can be longer.
GROUP_CONCAT_MAX_LEN = 1024 * 1024
