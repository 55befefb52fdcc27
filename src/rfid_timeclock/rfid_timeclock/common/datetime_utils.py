from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, or a bare date meaning its midnight."""
    value = value.strip()
    if len(value) == 10:
        return datetime.combine(parse_iso_date(value), time.min)
    return datetime.fromisoformat(value)


def parse_bound(value: Optional[str], *, end_of_day: bool = False) -> Optional[datetime]:
    """Parse a query-string bound.

    A bare date used as an upper bound covers the whole day.
    """
    if not value:
        return None
    value = value.strip()
    if end_of_day and len(value) == 10:
        return datetime.combine(parse_iso_date(value), time.max).replace(microsecond=0)
    return parse_iso_datetime(value)


def now_local() -> datetime:
    """Current local time, truncated to whole seconds.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)


def to_store_time(value: datetime) -> datetime:
    """Naive local time with whole seconds, the form every stored and
    compared timestamp takes. Aware values are converted to local time first."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(microsecond=0)


def format_duration(value: Optional[timedelta]) -> str:
    if value is None:
        return "-"
    total = int(value.total_seconds())
    return f"{total // 3600:02d}:{(total % 3600) // 60:02d}:{total % 60:02d}"
