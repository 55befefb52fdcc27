from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class TimeRecord:
    """One clock-in/clock-out interval.

    Open while ``clock_out`` is None; never changes once closed.
    """

    record_id: int
    employee_id: int
    clock_in: datetime
    clock_out: Optional[datetime] = None
    total_duration: Optional[timedelta] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "employee_id": self.employee_id,
            "clock_in": self.clock_in.isoformat(),
            "clock_out": self.clock_out.isoformat() if self.clock_out else None,
            "total_seconds": int(self.total_duration.total_seconds()) if self.total_duration is not None else None,
        }


def closed(record: TimeRecord, clock_out: datetime) -> TimeRecord:
    """Close ``record`` at ``clock_out``; duration is derived from the two timestamps."""
    return TimeRecord(
        record_id=record.record_id,
        employee_id=record.employee_id,
        clock_in=record.clock_in,
        clock_out=clock_out,
        total_duration=clock_out - record.clock_in,
    )
