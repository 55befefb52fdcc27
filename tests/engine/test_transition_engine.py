from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.rfid_timeclock.rfid_timeclock.core.enums import EventKind
from src.rfid_timeclock.rfid_timeclock.core.exceptions import (
    InvariantViolation,
    StoreUnavailable,
    UnknownBadge,
    ValidationError,
)
from src.rfid_timeclock.rfid_timeclock.engine.service import TransitionEngine
from src.rfid_timeclock.rfid_timeclock.store.memory_store import InMemoryEmployeeRepository, InMemoryTimeclockStore


def _open_count(store, employee_id: int) -> int:
    return sum(1 for r in store.ledger.query_records(employee_id=employee_id) if r.is_open)


def test_alice_clock_in_then_out(store, alice):
    engine = TransitionEngine(store)

    first = engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0))
    assert first.employee_name == "Alice"
    assert first.event_kind == EventKind.CLOCK_IN
    assert store.employees.get_by_id(alice.employee_id).is_present is True

    second = engine.handle_scan("AB12", datetime(2026, 2, 2, 17, 0))
    assert second.event_kind == EventKind.CLOCK_OUT
    assert second.total_duration == timedelta(hours=8)
    assert store.employees.get_by_id(alice.employee_id).is_present is False

    (record,) = store.ledger.query_records(employee_id=alice.employee_id)
    assert record.clock_in == datetime(2026, 2, 2, 9, 0)
    assert record.clock_out == datetime(2026, 2, 2, 17, 0)
    assert record.total_duration == timedelta(hours=8)


def test_unknown_badge_writes_nothing(store, alice):
    engine = TransitionEngine(store)

    with pytest.raises(UnknownBadge):
        engine.handle_scan("ZZ99", datetime(2026, 2, 2, 9, 0))

    assert store.ledger.query_records() == []
    assert store.employees.get_by_id(alice.employee_id).is_present is False


def test_duration_is_exact_difference(store, alice):
    engine = TransitionEngine(store)
    engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0, 0))
    result = engine.handle_scan("AB12", datetime(2026, 2, 2, 17, 30, 0))

    assert result.total_duration == timedelta(hours=8, minutes=30)


def test_event_kinds_alternate_starting_with_clock_in(store, alice):
    engine = TransitionEngine(store)
    start = datetime(2026, 2, 2, 8, 0)

    kinds = [engine.handle_scan("AB12", start + timedelta(minutes=10 * i)).event_kind for i in range(7)]

    assert kinds == [EventKind.CLOCK_IN, EventKind.CLOCK_OUT] * 3 + [EventKind.CLOCK_IN]
    # Presence always agrees with the ledger: one record still open.
    assert _open_count(store, alice.employee_id) == 1
    assert store.employees.get_by_id(alice.employee_id).is_present is True


def test_event_time_truncated_to_seconds_and_made_naive(store, alice):
    engine = TransitionEngine(store)
    aware = datetime(2026, 2, 2, 9, 0, 0, 750000, tzinfo=timezone.utc)

    result = engine.handle_scan("AB12", aware)

    assert result.event_time.tzinfo is None
    assert result.event_time.microsecond == 0


def test_clock_out_before_clock_in_is_rejected_and_rolled_back(store, alice):
    engine = TransitionEngine(store)
    engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0))

    with pytest.raises(ValidationError):
        engine.handle_scan("AB12", datetime(2026, 2, 2, 8, 0))

    assert store.employees.get_by_id(alice.employee_id).is_present is True
    assert _open_count(store, alice.employee_id) == 1


def test_flag_without_open_record_is_an_invariant_violation(store, alice):
    store.employees.set_presence(alice.employee_id, is_present=True)
    engine = TransitionEngine(store)

    with pytest.raises(InvariantViolation):
        engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0))

    # Not auto-corrected.
    assert store.employees.get_by_id(alice.employee_id).is_present is True
    assert store.ledger.query_records() == []


def test_open_record_without_flag_is_an_invariant_violation(store, alice):
    store.ledger.open_record(alice.employee_id, datetime(2026, 2, 2, 8, 0))
    engine = TransitionEngine(store)

    with pytest.raises(InvariantViolation):
        engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0))

    assert _open_count(store, alice.employee_id) == 1


class _PresenceWriteFails(InMemoryEmployeeRepository):
    def set_presence(self, employee_id, *, is_present):
        raise StoreUnavailable("disk full")


class _FailingPresenceStore(InMemoryTimeclockStore):
    fail = False

    def _employee_repository(self, tx):
        if self.fail and tx is not None:
            return _PresenceWriteFails(self, tx=tx)
        return super()._employee_repository(tx)


def test_failed_presence_write_rolls_back_ledger_row():
    store = _FailingPresenceStore()
    employee_id = store.employees.create(name="Bob", badge_id="B0B")
    engine = TransitionEngine(store)

    store.fail = True
    with pytest.raises(StoreUnavailable):
        engine.handle_scan("B0B", datetime(2026, 2, 2, 9, 0))

    assert store.ledger.query_records() == []
    assert store.employees.get_by_id(employee_id).is_present is False

    store.fail = False
    result = engine.handle_scan("B0B", datetime(2026, 2, 2, 9, 1))
    assert result.event_kind == EventKind.CLOCK_IN


def test_failed_clock_out_keeps_record_open():
    store = _FailingPresenceStore()
    employee_id = store.employees.create(name="Bob", badge_id="B0B")
    engine = TransitionEngine(store)
    engine.handle_scan("B0B", datetime(2026, 2, 2, 9, 0))

    store.fail = True
    with pytest.raises(StoreUnavailable):
        engine.handle_scan("B0B", datetime(2026, 2, 2, 17, 0))

    (record,) = store.ledger.query_records(employee_id=employee_id)
    assert record.is_open
    assert store.employees.get_by_id(employee_id).is_present is True
