import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_test"),
}

STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")

DEBOUNCE_SECONDS = 1.0
BADGE_CASE_INSENSITIVE = True
READER_DEVICE = "-"

LOCK_TIMEOUT_SECONDS = 5

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
