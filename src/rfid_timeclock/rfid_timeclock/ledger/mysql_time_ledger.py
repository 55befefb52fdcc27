from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import InvariantViolation, NoOpenRecord, OpenRecordExists, ValidationError
from ..database.mysql_base import MySQLRepository, fetchall, fetchone, seconds_to_timedelta
from .model import TimeRecord, closed
from .repository import TimeLedger

_COLUMNS = "record_id, employee_id, clock_in, clock_out, total_seconds"


def _to_record(row: dict) -> TimeRecord:
    return TimeRecord(
        record_id=int(row["record_id"]),
        employee_id=int(row["employee_id"]),
        clock_in=row["clock_in"],
        clock_out=row.get("clock_out"),
        total_duration=seconds_to_timedelta(row.get("total_seconds")),
    )


class MySQLTimeLedger(MySQLRepository, TimeLedger):
    def open_record(self, employee_id: int, clock_in: datetime) -> int:
        if self.count_open(employee_id):
            raise OpenRecordExists(f"Employee {employee_id} already has an open record")
        with self._cursor() as cur:
            try:
                cur.execute(
                    "INSERT INTO time_records(employee_id, clock_in) VALUES(%s,%s)",
                    (int(employee_id), clock_in),
                )
            except mysql.connector.IntegrityError as e:
                # uq_time_records_one_open: another open row slipped in.
                if e.errno == errorcode.ER_DUP_ENTRY:
                    raise OpenRecordExists(f"Employee {employee_id} already has an open record") from e
                raise
            return int(cur.lastrowid)

    def close_record(self, employee_id: int, clock_out: datetime) -> TimeRecord:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_records
                WHERE employee_id=%s AND clock_out IS NULL
                ORDER BY clock_in DESC
                FOR UPDATE
                """,
                (int(employee_id),),
            )
            rows = fetchall(cur)
            if not rows:
                raise NoOpenRecord(f"Employee {employee_id} has no open record")
            if len(rows) > 1:
                raise InvariantViolation(f"Employee {employee_id} has {len(rows)} open records")

            record = closed(_to_record(rows[0]), clock_out)
            if record.total_duration.total_seconds() < 0:
                raise ValidationError("Clock-out time is earlier than clock-in time")

            cur.execute(
                """
                UPDATE time_records
                SET clock_out=%s, total_seconds=%s
                WHERE record_id=%s AND clock_out IS NULL
                """,
                (clock_out, int(record.total_duration.total_seconds()), record.record_id),
            )
            if cur.rowcount != 1:
                raise NoOpenRecord(f"Record {record.record_id} was closed concurrently")
            return record

    def get_open(self, employee_id: int) -> Optional[TimeRecord]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_records
                WHERE employee_id=%s AND clock_out IS NULL
                ORDER BY clock_in DESC
                LIMIT 1
                """,
                (int(employee_id),),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def count_open(self, employee_id: int) -> int:
        with self._cursor() as cur:
            cur.execute(
                "SELECT COUNT(*) AS n FROM time_records WHERE employee_id=%s AND clock_out IS NULL",
                (int(employee_id),),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def query_records(
        self,
        *,
        employee_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Sequence[TimeRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if start is not None:
            clauses.append("clock_in >= %s")
            params.append(start)
        if end is not None:
            clauses.append("clock_in <= %s")
            params.append(end)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        tail = ""
        if limit is not None:
            tail = "LIMIT %s"
            params.append(int(limit))

        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_records
                {where}
                ORDER BY clock_in DESC, record_id DESC
                {tail}
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
