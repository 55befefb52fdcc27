from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateBadge
from ..database.mysql_base import MySQLRepository, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "employee_id, name, badge_id, badge_raw, is_present"


def _to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        name=row["name"],
        badge_id=row["badge_id"],
        is_present=bool(row["is_present"]),
        badge_raw=row.get("badge_raw"),
    )


class MySQLEmployeeRepository(MySQLRepository, EmployeeRepository):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_badge(self, badge_id: str) -> Optional[Employee]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE badge_id=%s", (badge_id,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def lock_by_badge(self, badge_id: str) -> Optional[Employee]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE badge_id=%s FOR UPDATE", (badge_id,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def set_presence(self, employee_id: int, *, is_present: bool) -> bool:
        with self._cursor() as cur:
            cur.execute(
                "UPDATE employees SET is_present=%s WHERE employee_id=%s",
                (1 if is_present else 0, int(employee_id)),
            )
            return cur.rowcount > 0

    def create(self, *, name: str, badge_id: str, badge_raw: Optional[str] = None) -> int:
        with self._cursor() as cur:
            try:
                cur.execute(
                    """
                    INSERT INTO employees(name, badge_id, badge_raw, is_present)
                    VALUES(%s,%s,%s,0)
                    """,
                    (name, badge_id, badge_raw),
                )
            except mysql.connector.IntegrityError as e:
                if e.errno == errorcode.ER_DUP_ENTRY:
                    raise DuplicateBadge(f"Badge {badge_id} is already enrolled") from e
                raise
            return int(cur.lastrowid)

    def list_present(self) -> Sequence[Employee]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE is_present=1 ORDER BY name")
            return [_to_employee(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Employee]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM employees ORDER BY name")
            return [_to_employee(r) for r in fetchall(cur)]
