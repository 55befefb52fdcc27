from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..core.constants import MAX_RECORDS_LIMIT
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository
from ..ledger.model import TimeRecord
from ..ledger.repository import TimeLedger
from .model import DailyTotal, PresentEmployee, RecordFilter, RecordRow


class QueryService:
    """Read-only projections for dashboards and reports."""

    def __init__(self, employees: EmployeeRepository, ledger: TimeLedger):
        self._employees = employees
        self._ledger = ledger

    def list_present(self) -> Sequence[PresentEmployee]:
        out: list[PresentEmployee] = []
        for e in self._employees.list_present():
            open_record = self._ledger.get_open(e.employee_id)
            out.append(
                PresentEmployee(
                    employee_id=e.employee_id,
                    name=e.name,
                    since=open_record.clock_in if open_record else None,
                )
            )
        return out

    def list_records(self, record_filter: Optional[RecordFilter] = None) -> Sequence[TimeRecord]:
        f = record_filter or RecordFilter()
        if f.start and f.end and f.start > f.end:
            raise ValidationError("Start must not be after end")
        limit = f.limit
        if limit is not None and not (0 < int(limit) <= MAX_RECORDS_LIMIT):
            raise ValidationError(f"Limit must be between 1 and {MAX_RECORDS_LIMIT}")
        return self._ledger.query_records(employee_id=f.employee_id, start=f.start, end=f.end, limit=limit)

    def list_record_rows(self, record_filter: Optional[RecordFilter] = None) -> Sequence[RecordRow]:
        """Same rows as ``list_records``, each carrying the employee name."""
        records = self.list_records(record_filter)
        if not records:
            return []
        names = {e.employee_id: e.name for e in self._employees.list_all()}
        return [RecordRow(record=r, name=names.get(r.employee_id)) for r in records]

    def daily_totals(self, *, start: date, end: date, employee_id: Optional[int] = None) -> Sequence[DailyTotal]:
        """Closed time per employee per day, bucketed by the clock-in date."""
        if start > end:
            raise ValidationError("Start must not be after end")

        records = self._ledger.query_records(
            employee_id=employee_id,
            start=datetime.combine(start, time.min),
            end=datetime.combine(end, time.max),
        )

        totals: dict[tuple[int, date], list] = defaultdict(lambda: [timedelta(0), 0])
        for r in records:
            if r.total_duration is None:
                continue
            bucket = totals[(r.employee_id, r.clock_in.date())]
            bucket[0] += r.total_duration
            bucket[1] += 1

        return [
            DailyTotal(employee_id=emp_id, work_date=work_date, total=total, records=count)
            for (emp_id, work_date), (total, count) in sorted(totals.items(), key=lambda kv: (kv[0][1], kv[0][0]))
        ]
