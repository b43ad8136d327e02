import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "taskpulse"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Sign-ups presenting this code become admins; empty disables admin sign-up.
ADMIN_JOIN_CODE = os.getenv("ADMIN_JOIN_CODE", "dev-admin-code")

# Reference timezone for calendar days (streaks, attendance dates)
TIMEZONE = os.getenv("TIMEZONE", "UTC")

CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "60"))

ENABLE_SCHEDULER = bool(int(os.getenv("ENABLE_SCHEDULER", "1")))
ATTENDANCE_INTERVAL_HOURS = float(os.getenv("ATTENDANCE_INTERVAL_HOURS", "24"))
OVERDUE_INTERVAL_MINUTES = float(os.getenv("OVERDUE_INTERVAL_MINUTES", "60"))

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
