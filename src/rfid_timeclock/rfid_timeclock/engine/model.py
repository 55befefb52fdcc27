from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import EventKind


@dataclass(frozen=True)
class ScanResult:
    employee_id: int
    employee_name: str
    event_kind: EventKind
    event_time: datetime
    record_id: int
    total_duration: Optional[timedelta] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "event_kind": self.event_kind.value,
            "event_time": self.event_time.isoformat(),
            "record_id": self.record_id,
            "total_seconds": int(self.total_duration.total_seconds()) if self.total_duration is not None else None,
        }
