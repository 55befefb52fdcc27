from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.constants import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_LOCK_TIMEOUT_SECONDS
from .core.enums import StoreBackend
from .database.connection import DatabaseConnection, DBConfig
from .employees.service import EmployeeService
from .engine.service import TransitionEngine
from .intake.service import ScanIntake
from .reports.service import QueryService
from .store.base import TimeclockStore
from .store.memory_store import InMemoryTimeclockStore
from .store.mysql_store import MySQLTimeclockStore


@dataclass(frozen=True)
class Container:
    store: TimeclockStore

    engine: TransitionEngine
    intake: ScanIntake
    employee_service: EmployeeService
    query_service: QueryService


def build_store(
    *,
    backend: StoreBackend | str = StoreBackend.MYSQL,
    db_config: Optional[dict] = None,
    lock_timeout_seconds: Optional[int] = DEFAULT_LOCK_TIMEOUT_SECONDS,
) -> TimeclockStore:
    backend = StoreBackend(backend)
    if backend == StoreBackend.MEMORY:
        return InMemoryTimeclockStore(lock_timeout_seconds=lock_timeout_seconds)

    if not db_config:
        raise ValueError("db_config is required for the mysql store")
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    return MySQLTimeclockStore(conn, lock_timeout_seconds=lock_timeout_seconds)


def build_container(
    *,
    store: Optional[TimeclockStore] = None,
    db_config: Optional[dict] = None,
    backend: StoreBackend | str = StoreBackend.MYSQL,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    case_insensitive: bool = True,
    lock_timeout_seconds: Optional[int] = DEFAULT_LOCK_TIMEOUT_SECONDS,
) -> Container:
    if store is None:
        store = build_store(backend=backend, db_config=db_config, lock_timeout_seconds=lock_timeout_seconds)

    engine = TransitionEngine(store)
    intake = ScanIntake(engine, debounce_seconds=debounce_seconds, case_insensitive=case_insensitive)
    employee_service = EmployeeService(store.employees, case_insensitive=case_insensitive)
    query_service = QueryService(store.employees, store.ledger)

    return Container(
        store=store,
        engine=engine,
        intake=intake,
        employee_service=employee_service,
        query_service=query_service,
    )


def build_container_from_settings(settings) -> Container:
    return build_container(
        db_config=getattr(settings, "DB_CONFIG", None),
        backend=getattr(settings, "STORE_BACKEND", StoreBackend.MYSQL.value),
        debounce_seconds=float(getattr(settings, "DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS)),
        case_insensitive=bool(getattr(settings, "BADGE_CASE_INSENSITIVE", True)),
        lock_timeout_seconds=getattr(settings, "LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS),
    )
