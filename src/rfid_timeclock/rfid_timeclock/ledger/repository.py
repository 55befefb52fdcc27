from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import TimeRecord


class TimeLedger(Protocol):
    def open_record(self, employee_id: int, clock_in: datetime) -> int:
        """Create an open record. Raises OpenRecordExists if one is already open."""

        raise NotImplementedError

    def close_record(self, employee_id: int, clock_out: datetime) -> TimeRecord:
        """Close the employee's open record. Raises NoOpenRecord if there is none."""

        raise NotImplementedError

    def get_open(self, employee_id: int) -> Optional[TimeRecord]:
        raise NotImplementedError

    def count_open(self, employee_id: int) -> int:
        raise NotImplementedError

    def query_records(
        self,
        *,
        employee_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Sequence[TimeRecord]:
        """Records ordered by clock_in descending; bounds are inclusive on clock_in."""

        raise NotImplementedError
