import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "timeclock"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_db"),
}

STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DEBOUNCE_SECONDS = float(os.getenv("DEBOUNCE_SECONDS", "1.0"))
BADGE_CASE_INSENSITIVE = bool(int(os.getenv("BADGE_CASE_INSENSITIVE", "1")))
READER_DEVICE = os.getenv("READER_DEVICE", "/dev/ttyUSB0")

LOCK_TIMEOUT_SECONDS = int(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
