import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "taskpulse_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

ADMIN_JOIN_CODE = "test-admin-code"
TIMEZONE = "UTC"
CACHE_TTL_SECONDS = 0

# Tests drive the jobs directly.
ENABLE_SCHEDULER = False
ATTENDANCE_INTERVAL_HOURS = 24
OVERDUE_INTERVAL_MINUTES = 60

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
