from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import mysql.connector

from ..core.exceptions import StoreUnavailable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_transaction, is_transient
from ..employees.mysql_employee_repository import MySQLEmployeeRepository
from ..ledger.mysql_time_ledger import MySQLTimeLedger
from .base import StoreTransaction, TimeclockStore


class MySQLTimeclockStore(TimeclockStore):
    def __init__(self, conn_factory: DatabaseConnection, *, lock_timeout_seconds: Optional[int] = None):
        self._conn_factory = conn_factory
        self._lock_timeout_seconds = lock_timeout_seconds
        self.employees = MySQLEmployeeRepository(conn_factory)
        self.ledger = MySQLTimeLedger(conn_factory)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        try:
            with db_transaction(self._conn_factory, lock_timeout_seconds=self._lock_timeout_seconds) as (_, cur):
                yield StoreTransaction(
                    employees=MySQLEmployeeRepository(self._conn_factory, cur=cur),
                    ledger=MySQLTimeLedger(self._conn_factory, cur=cur),
                )
        except mysql.connector.Error as e:
            kind = "transient" if is_transient(e) else "database"
            raise StoreUnavailable(f"Transaction rolled back ({kind} error {e.errno})") from e
