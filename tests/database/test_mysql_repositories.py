from __future__ import annotations

from datetime import datetime, timedelta

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.rfid_timeclock.rfid_timeclock.core.exceptions import (
    DuplicateBadge,
    InvariantViolation,
    NoOpenRecord,
    OpenRecordExists,
    StoreUnavailable,
    UnknownBadge,
)
from src.rfid_timeclock.rfid_timeclock.database.bootstrap import SQL_DIR
from src.rfid_timeclock.rfid_timeclock.employees.mysql_employee_repository import MySQLEmployeeRepository
from src.rfid_timeclock.rfid_timeclock.engine.service import TransitionEngine
from src.rfid_timeclock.rfid_timeclock.ledger.mysql_time_ledger import MySQLTimeLedger
from src.rfid_timeclock.rfid_timeclock.store.mysql_store import MySQLTimeclockStore


class FakeCursor:
    """Replays queued results in order and records every statement."""

    def __init__(self, results=None, *, fail_on=None):
        self._results = list(results or [])
        self._fail_on = fail_on
        self._current = None
        self.executed: list[tuple[str, tuple]] = []
        self.rowcount = 0
        self.lastrowid = 0

    def execute(self, sql, params=()):
        sql = " ".join(sql.split())
        self.executed.append((sql, tuple(params or ())))
        if self._fail_on and self._fail_on[0] in sql:
            raise self._fail_on[1]
        if sql.startswith("SET SESSION"):
            return
        result = self._results.pop(0) if self._results else {}
        self._current = result.get("rows", [])
        self.rowcount = result.get("rowcount", len(self._current))
        self.lastrowid = result.get("lastrowid", 0)

    def fetchone(self):
        return self._current[0] if self._current else None

    def fetchall(self):
        return list(self._current or [])

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.isolation_level = None

    def cursor(self, dictionary=False):
        return self._cursor

    def start_transaction(self, isolation_level=None):
        self.isolation_level = isolation_level

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeFactory:
    def __init__(self, conn: FakeConnection):
        self._conn = conn

    def connect(self):
        return self._conn


def _open_row(record_id=7, employee_id=1, clock_in=datetime(2026, 2, 2, 9, 0)):
    return {"record_id": record_id, "employee_id": employee_id, "clock_in": clock_in, "clock_out": None, "total_seconds": None}


def test_close_record_updates_with_total_seconds():
    cur = FakeCursor([{"rows": [_open_row()]}, {"rowcount": 1}])
    ledger = MySQLTimeLedger(None, cur=cur)

    record = ledger.close_record(1, datetime(2026, 2, 2, 17, 30))

    assert record.total_duration == timedelta(hours=8, minutes=30)
    select_sql, _ = cur.executed[0]
    assert "FOR UPDATE" in select_sql
    update_sql, params = cur.executed[1]
    assert update_sql.startswith("UPDATE time_records")
    assert params == (datetime(2026, 2, 2, 17, 30), 8 * 3600 + 30 * 60, 7)


def test_close_record_without_open_row():
    ledger = MySQLTimeLedger(None, cur=FakeCursor([{"rows": []}]))

    with pytest.raises(NoOpenRecord):
        ledger.close_record(1, datetime(2026, 2, 2, 17, 0))


def test_close_record_with_two_open_rows():
    rows = [_open_row(8, clock_in=datetime(2026, 2, 2, 10, 0)), _open_row(7)]
    ledger = MySQLTimeLedger(None, cur=FakeCursor([{"rows": rows}]))

    with pytest.raises(InvariantViolation):
        ledger.close_record(1, datetime(2026, 2, 2, 17, 0))


def test_open_record_maps_unique_index_hit():
    dup = mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)
    cur = FakeCursor([{"rows": [{"n": 0}]}], fail_on=("INSERT INTO time_records", dup))
    ledger = MySQLTimeLedger(None, cur=cur)

    with pytest.raises(OpenRecordExists):
        ledger.open_record(1, datetime(2026, 2, 2, 9, 0))


def test_query_records_builds_inclusive_filters():
    cur = FakeCursor([{"rows": []}])
    ledger = MySQLTimeLedger(None, cur=cur)

    ledger.query_records(employee_id=3, start=datetime(2026, 2, 1), end=datetime(2026, 2, 2), limit=5)

    sql, params = cur.executed[0]
    assert "employee_id=%s AND clock_in >= %s AND clock_in <= %s" in sql
    assert "ORDER BY clock_in DESC" in sql
    assert params == (3, datetime(2026, 2, 1), datetime(2026, 2, 2), 5)


def test_engine_clock_in_runs_in_one_locked_transaction():
    employee = {"employee_id": 1, "name": "Alice", "badge_id": "AB12", "badge_raw": "AB12", "is_present": 0}
    cur = FakeCursor(
        [
            {"rows": [employee]},  # lock_by_badge
            {"rows": [{"n": 0}]},  # count_open (consistency check)
            {"rows": [{"n": 0}]},  # count_open (open_record guard)
            {"lastrowid": 42},  # INSERT
            {"rowcount": 1},  # UPDATE employees
        ]
    )
    conn = FakeConnection(cur)
    engine = TransitionEngine(MySQLTimeclockStore(FakeFactory(conn), lock_timeout_seconds=3))

    result = engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0))

    assert result.record_id == 42
    assert conn.committed and not conn.rolled_back
    assert conn.isolation_level == "READ COMMITTED"
    statements = [sql for sql, _ in cur.executed]
    assert statements[0].startswith("SET SESSION innodb_lock_wait_timeout")
    assert statements[1].endswith("FOR UPDATE")
    assert statements[-1].startswith("UPDATE employees SET is_present")


def test_unknown_badge_rolls_back():
    conn = FakeConnection(FakeCursor([{"rows": []}]))
    engine = TransitionEngine(MySQLTimeclockStore(FakeFactory(conn)))

    with pytest.raises(UnknownBadge):
        engine.handle_scan("ZZ99", datetime(2026, 2, 2, 9, 0))

    assert conn.rolled_back and not conn.committed


def test_lock_wait_timeout_becomes_store_unavailable():
    timeout = mysql.connector.DatabaseError(msg="Lock wait timeout exceeded", errno=errorcode.ER_LOCK_WAIT_TIMEOUT)
    conn = FakeConnection(FakeCursor(fail_on=("FOR UPDATE", timeout)))
    engine = TransitionEngine(MySQLTimeclockStore(FakeFactory(conn), lock_timeout_seconds=1))

    with pytest.raises(StoreUnavailable):
        engine.handle_scan("AB12", datetime(2026, 2, 2, 9, 0))

    assert conn.rolled_back and not conn.committed


def test_enroll_duplicate_on_own_connection_is_duplicate_badge():
    dup = mysql.connector.IntegrityError(msg="Duplicate entry 'AB12'", errno=errorcode.ER_DUP_ENTRY)
    conn = FakeConnection(FakeCursor(fail_on=("INSERT INTO employees", dup)))
    employees = MySQLEmployeeRepository(FakeFactory(conn))

    with pytest.raises(DuplicateBadge):
        employees.create(name="Mallory", badge_id="AB12", badge_raw="ab12")

    assert conn.rolled_back and not conn.committed


def test_driver_error_on_read_becomes_store_unavailable():
    gone = mysql.connector.OperationalError(msg="MySQL server has gone away", errno=errorcode.CR_SERVER_GONE_ERROR)
    conn = FakeConnection(FakeCursor(fail_on=("FROM employees", gone)))
    employees = MySQLEmployeeRepository(FakeFactory(conn))

    with pytest.raises(StoreUnavailable):
        employees.list_all()

    assert conn.rolled_back and not conn.committed


def test_schema_ships_with_package_and_compares_badges_exactly():
    schema = (SQL_DIR / "schema.sql").read_text(encoding="utf-8")

    assert (SQL_DIR / "seed.sql").is_file()
    badge_columns = [line.strip() for line in schema.splitlines() if line.strip().startswith(("badge_id ", "badge_raw "))]
    assert len(badge_columns) == 2
    assert all("COLLATE ascii_bin" in line for line in badge_columns)
