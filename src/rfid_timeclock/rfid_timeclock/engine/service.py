from __future__ import annotations

import logging
from datetime import datetime

from ..common.datetime_utils import to_store_time
from ..core.enums import EventKind
from ..core.exceptions import InvariantViolation, StoreUnavailable, UnknownBadge
from ..employees.model import Employee
from ..store.base import StoreTransaction, TimeclockStore
from .model import ScanResult

logger = logging.getLogger(__name__)


class TransitionEngine:
    """Decide ClockIn vs ClockOut for one scan and persist it atomically.

    The employee row is locked for the whole read-decide-write sequence, so
    two scans of the same badge are serialised while scans of different
    badges run in parallel.
    """

    def __init__(self, store: TimeclockStore):
        self._store = store

    def handle_scan(self, badge_id: str, event_time: datetime) -> ScanResult:
        event_time = to_store_time(event_time)
        try:
            with self._store.transaction() as tx:
                employee = tx.employees.lock_by_badge(badge_id)
                if employee is None:
                    raise UnknownBadge(badge_id)

                self._check_consistency(tx, employee)
                if employee.is_present:
                    result = self._clock_out(tx, employee, event_time)
                else:
                    result = self._clock_in(tx, employee, event_time)
        except UnknownBadge:
            logger.info("Rejected scan: badge %s is not enrolled", badge_id)
            raise
        except InvariantViolation as e:
            logger.error("Integrity fault on badge %s: %s", badge_id, e)
            raise
        except StoreUnavailable as e:
            logger.warning("Scan for badge %s not applied: %s", badge_id, e)
            raise

        logger.info(
            "%s employee_id=%s name=%r at %s (record %s)",
            result.event_kind.value,
            result.employee_id,
            result.employee_name,
            result.event_time.isoformat(),
            result.record_id,
        )
        return result

    @staticmethod
    def _check_consistency(tx: StoreTransaction, employee: Employee) -> None:
        open_count = tx.ledger.count_open(employee.employee_id)
        expected = 1 if employee.is_present else 0
        if open_count != expected:
            raise InvariantViolation(
                f"Employee {employee.employee_id} is_present={employee.is_present} "
                f"but has {open_count} open record(s)"
            )

    @staticmethod
    def _clock_in(tx: StoreTransaction, employee: Employee, event_time: datetime) -> ScanResult:
        record_id = tx.ledger.open_record(employee.employee_id, event_time)
        tx.employees.set_presence(employee.employee_id, is_present=True)
        return ScanResult(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            event_kind=EventKind.CLOCK_IN,
            event_time=event_time,
            record_id=record_id,
        )

    @staticmethod
    def _clock_out(tx: StoreTransaction, employee: Employee, event_time: datetime) -> ScanResult:
        record = tx.ledger.close_record(employee.employee_id, event_time)
        tx.employees.set_presence(employee.employee_id, is_present=False)
        return ScanResult(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            event_kind=EventKind.CLOCK_OUT,
            event_time=event_time,
            record_id=record.record_id,
            total_duration=record.total_duration,
        )
