from __future__ import annotations

from enum import Enum


class EventKind(str, Enum):
    """Kind of transition produced by a badge scan."""

    CLOCK_IN = "CLOCK_IN"
    CLOCK_OUT = "CLOCK_OUT"


class ScanStatus(str, Enum):
    """What Scan Intake did with one delivered scan."""

    APPLIED = "APPLIED"
    REJECTED = "REJECTED"
    DEBOUNCED = "DEBOUNCED"
    INVALID = "INVALID"
    FAILED = "FAILED"


class StoreBackend(str, Enum):
    MYSQL = "mysql"
    MEMORY = "memory"
