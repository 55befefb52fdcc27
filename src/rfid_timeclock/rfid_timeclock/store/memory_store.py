from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Sequence

from ..core.exceptions import (
    DuplicateBadge,
    InvariantViolation,
    NoOpenRecord,
    OpenRecordExists,
    StoreUnavailable,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..ledger.model import TimeRecord, closed
from ..ledger.repository import TimeLedger
from .base import StoreTransaction, TimeclockStore


class InMemoryTransaction:
    """Staged writes over the committed tables of an ``InMemoryTimeclockStore``.

    Reads see committed data plus this transaction's own writes (read
    committed). Employee row locks are held until ``release()``.
    """

    def __init__(self, store: "InMemoryTimeclockStore"):
        self._store = store
        self._employees: Dict[int, Employee] = {}
        self._records: Dict[int, TimeRecord] = {}
        self._held: Dict[int, threading.Lock] = {}

    def employee(self, employee_id: int) -> Optional[Employee]:
        if employee_id in self._employees:
            return self._employees[employee_id]
        with self._store._data_lock:
            return self._store._employees.get(employee_id)

    def employee_id_for_badge(self, badge_id: str) -> Optional[int]:
        for e in self._employees.values():
            if e.badge_id == badge_id:
                return e.employee_id
        with self._store._data_lock:
            return self._store._badge_index.get(badge_id)

    def employees(self) -> List[Employee]:
        with self._store._data_lock:
            merged = dict(self._store._employees)
        merged.update(self._employees)
        return list(merged.values())

    def records(self) -> List[TimeRecord]:
        with self._store._data_lock:
            merged = dict(self._store._records)
        merged.update(self._records)
        return list(merged.values())

    def put_employee(self, employee: Employee) -> None:
        self._employees[employee.employee_id] = employee

    def put_record(self, record: TimeRecord) -> None:
        self._records[record.record_id] = record

    def lock_employee(self, employee_id: int) -> None:
        if employee_id in self._held:
            return
        lock = self._store._row_lock(employee_id)
        timeout = self._store.lock_timeout_seconds
        acquired = lock.acquire(timeout=timeout) if timeout is not None else lock.acquire()
        if not acquired:
            raise StoreUnavailable(f"Lock wait timeout on employee {employee_id}")
        self._held[employee_id] = lock

    def commit(self) -> None:
        self._store._apply(self._employees, self._records)
        self._employees = {}
        self._records = {}

    def release(self) -> None:
        for lock in self._held.values():
            lock.release()
        self._held.clear()


class _InMemoryRepository:
    def __init__(self, store: "InMemoryTimeclockStore", *, tx: Optional[InMemoryTransaction] = None):
        self._store = store
        self._tx = tx

    @contextmanager
    def _session(self) -> Iterator[InMemoryTransaction]:
        if self._tx is not None:
            yield self._tx
            return
        with self._store._session() as tx:
            yield tx


class InMemoryEmployeeRepository(_InMemoryRepository, EmployeeRepository):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with self._session() as tx:
            return tx.employee(int(employee_id))

    def get_by_badge(self, badge_id: str) -> Optional[Employee]:
        with self._session() as tx:
            employee_id = tx.employee_id_for_badge(badge_id)
            return tx.employee(employee_id) if employee_id is not None else None

    def lock_by_badge(self, badge_id: str) -> Optional[Employee]:
        with self._session() as tx:
            employee_id = tx.employee_id_for_badge(badge_id)
            if employee_id is None:
                return None
            tx.lock_employee(employee_id)
            # Re-read: the previous holder may have committed a new flag.
            return tx.employee(employee_id)

    def set_presence(self, employee_id: int, *, is_present: bool) -> bool:
        with self._session() as tx:
            employee = tx.employee(int(employee_id))
            if employee is None:
                return False
            tx.put_employee(employee.with_presence(is_present))
            return True

    def create(self, *, name: str, badge_id: str, badge_raw: Optional[str] = None) -> int:
        with self._session() as tx:
            if tx.employee_id_for_badge(badge_id) is not None:
                raise DuplicateBadge(f"Badge {badge_id} is already enrolled")
            employee_id = self._store._next_employee_id()
            tx.put_employee(
                Employee(employee_id=employee_id, name=name, badge_id=badge_id, is_present=False, badge_raw=badge_raw)
            )
            return employee_id

    def list_present(self) -> Sequence[Employee]:
        with self._session() as tx:
            return sorted((e for e in tx.employees() if e.is_present), key=lambda e: e.name)

    def list_all(self) -> Sequence[Employee]:
        with self._session() as tx:
            return sorted(tx.employees(), key=lambda e: e.name)


class InMemoryTimeLedger(_InMemoryRepository, TimeLedger):
    @staticmethod
    def _open_for(tx: InMemoryTransaction, employee_id: int) -> List[TimeRecord]:
        rows = [r for r in tx.records() if r.employee_id == employee_id and r.is_open]
        rows.sort(key=lambda r: r.clock_in, reverse=True)
        return rows

    def open_record(self, employee_id: int, clock_in: datetime) -> int:
        with self._session() as tx:
            if self._open_for(tx, int(employee_id)):
                raise OpenRecordExists(f"Employee {employee_id} already has an open record")
            record_id = self._store._next_record_id()
            tx.put_record(TimeRecord(record_id=record_id, employee_id=int(employee_id), clock_in=clock_in))
            return record_id

    def close_record(self, employee_id: int, clock_out: datetime) -> TimeRecord:
        with self._session() as tx:
            rows = self._open_for(tx, int(employee_id))
            if not rows:
                raise NoOpenRecord(f"Employee {employee_id} has no open record")
            if len(rows) > 1:
                raise InvariantViolation(f"Employee {employee_id} has {len(rows)} open records")

            record = closed(rows[0], clock_out)
            if record.total_duration.total_seconds() < 0:
                raise ValidationError("Clock-out time is earlier than clock-in time")
            tx.put_record(record)
            return record

    def get_open(self, employee_id: int) -> Optional[TimeRecord]:
        with self._session() as tx:
            rows = self._open_for(tx, int(employee_id))
            return rows[0] if rows else None

    def count_open(self, employee_id: int) -> int:
        with self._session() as tx:
            return len(self._open_for(tx, int(employee_id)))

    def query_records(
        self,
        *,
        employee_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Sequence[TimeRecord]:
        with self._session() as tx:
            rows = [
                r
                for r in tx.records()
                if (employee_id is None or r.employee_id == int(employee_id))
                and (start is None or r.clock_in >= start)
                and (end is None or r.clock_in <= end)
            ]
        rows.sort(key=lambda r: (r.clock_in, r.record_id), reverse=True)
        return rows[: int(limit)] if limit is not None else rows


class InMemoryTimeclockStore(TimeclockStore):
    """Embedded single-process store.

    Serialises scans per employee with one ``threading.Lock`` per employee
    row; ``_data_lock`` only guards the dictionaries for the instant a
    read or a commit touches them.
    """

    def __init__(self, *, lock_timeout_seconds: Optional[float] = None):
        self.lock_timeout_seconds = lock_timeout_seconds
        self._data_lock = threading.RLock()
        self._row_locks: Dict[int, threading.Lock] = {}
        self._employees: Dict[int, Employee] = {}
        self._badge_index: Dict[str, int] = {}
        self._records: Dict[int, TimeRecord] = {}
        self._employee_ids = itertools.count(1)
        self._record_ids = itertools.count(1)

        self.employees = self._employee_repository(None)
        self.ledger = self._ledger(None)

    def _employee_repository(self, tx: Optional[InMemoryTransaction]) -> EmployeeRepository:
        return InMemoryEmployeeRepository(self, tx=tx)

    def _ledger(self, tx: Optional[InMemoryTransaction]) -> TimeLedger:
        return InMemoryTimeLedger(self, tx=tx)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        with self._session() as tx:
            yield StoreTransaction(employees=self._employee_repository(tx), ledger=self._ledger(tx))

    @contextmanager
    def _session(self) -> Iterator[InMemoryTransaction]:
        tx = InMemoryTransaction(self)
        try:
            yield tx
            tx.commit()
        finally:
            # Uncommitted staged writes are simply dropped (rollback).
            tx.release()

    def _row_lock(self, employee_id: int) -> threading.Lock:
        with self._data_lock:
            return self._row_locks.setdefault(employee_id, threading.Lock())

    def _next_employee_id(self) -> int:
        with self._data_lock:
            return next(self._employee_ids)

    def _next_record_id(self) -> int:
        with self._data_lock:
            return next(self._record_ids)

    def _apply(self, employees: Dict[int, Employee], records: Dict[int, TimeRecord]) -> None:
        with self._data_lock:
            for e in employees.values():
                owner = self._badge_index.get(e.badge_id)
                if owner is not None and owner != e.employee_id:
                    raise DuplicateBadge(f"Badge {e.badge_id} is already enrolled")

            for r in records.values():
                current = self._records.get(r.record_id)
                if current is not None and not current.is_open and current != r:
                    raise InvariantViolation(f"Record {r.record_id} is closed and cannot change")

            # Store-level equivalent of the one-open-record unique index.
            touched = {r.employee_id for r in records.values()}
            for employee_id in touched:
                open_ids = {
                    rid for rid, r in self._records.items() if r.employee_id == employee_id and r.is_open
                }
                for rid, r in records.items():
                    if r.employee_id != employee_id:
                        continue
                    if r.is_open:
                        open_ids.add(rid)
                    else:
                        open_ids.discard(rid)
                if len(open_ids) > 1:
                    raise OpenRecordExists(f"Employee {employee_id} would have {len(open_ids)} open records")

            for e in employees.values():
                self._employees[e.employee_id] = e
                self._badge_index[e.badge_id] = e.employee_id
            self._records.update(records)
