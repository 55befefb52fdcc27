from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreUnavailable
from .connection import DatabaseConnection

# Errors after which a retry of the whole transaction is reasonable.
TRANSIENT_ERRNOS = frozenset(
    {
        errorcode.ER_LOCK_WAIT_TIMEOUT,
        errorcode.ER_LOCK_DEADLOCK,
        errorcode.CR_CONNECTION_ERROR,
        errorcode.CR_CONN_HOST_ERROR,
        errorcode.CR_SERVER_GONE_ERROR,
        errorcode.CR_SERVER_LOST,
    }
)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Short-lived connection + cursor; commits on success, rolls back on error.

    Driver errors leave as ``StoreUnavailable``; callers that map specific
    errors (duplicate keys) must catch them inside the block.
    """
    conn = _connect(conn_factory)
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        _safe_rollback(conn)
        raise StoreUnavailable(f"Database error {e.errno}: {e.msg}") from e
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


@contextmanager
def db_transaction(
    conn_factory: DatabaseConnection,
    *,
    lock_timeout_seconds: Optional[int] = None,
    isolation_level: str = "READ COMMITTED",
) -> Iterator[tuple[Any, Any]]:
    """Explicit transaction: everything executed on the yielded cursor
    commits together or not at all.

    Row locks taken with ``SELECT ... FOR UPDATE`` are held until the block
    exits. ``lock_timeout_seconds`` bounds how long a statement waits on such a
    lock (InnoDB ``innodb_lock_wait_timeout``).
    """
    conn = _connect(conn_factory)
    try:
        cur = conn.cursor(dictionary=True)
        try:
            if lock_timeout_seconds is not None:
                cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (int(lock_timeout_seconds),))
            conn.start_transaction(isolation_level=isolation_level)
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _connect(conn_factory: DatabaseConnection):
    try:
        return conn_factory.connect()
    except mysql.connector.Error as e:
        raise StoreUnavailable(f"Cannot connect to database: {e.msg}") from e


def _safe_rollback(conn) -> None:
    # A dropped connection cannot roll back; the server discards the
    # uncommitted transaction on its side.
    try:
        conn.rollback()
    except mysql.connector.Error:
        pass


def is_transient(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) in TRANSIENT_ERRNOS


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def seconds_to_timedelta(value: Any) -> Optional[timedelta]:
    if value is None:
        return None
    return timedelta(seconds=int(value))


class MySQLRepository:
    """Base for repositories that either own short-lived connections or run
    on a cursor borrowed from an enclosing transaction."""

    def __init__(self, conn_factory: DatabaseConnection, *, cur=None):
        self._conn_factory = conn_factory
        self._cur = cur

    @contextmanager
    def _cursor(self):
        if self._cur is not None:
            yield self._cur
            return
        with db_cursor(self._conn_factory) as (_, cur):
            yield cur
