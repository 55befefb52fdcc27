from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..ledger.model import TimeRecord


@dataclass(frozen=True)
class PresentEmployee:
    """Read-model for the "who is in" board."""

    employee_id: int
    name: str
    since: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "name": self.name,
            "since": self.since.isoformat() if self.since else None,
        }


@dataclass(frozen=True)
class RecordFilter:
    employee_id: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class DailyTotal:
    employee_id: int
    work_date: date
    total: timedelta
    records: int

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "total_seconds": int(self.total.total_seconds()),
            "records": self.records,
        }


@dataclass(frozen=True)
class RecordRow:
    """A time record joined with its holder's name, for the logs view."""

    record: TimeRecord
    name: Optional[str]

    def to_dict(self) -> dict:
        return {**self.record.to_dict(), "name": self.name}
