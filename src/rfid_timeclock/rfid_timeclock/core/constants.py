"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Window in which a second delivery of the same badge counts as the same tap.
DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_LOCK_TIMEOUT_SECONDS = 5
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_REPORT_DAYS = 7
MAX_RECORDS_LIMIT = 1000
# Width of employees.badge_id / badge_raw (ASCII, compared byte for byte).
MAX_BADGE_LENGTH = 64
