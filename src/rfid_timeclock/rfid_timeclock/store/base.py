from __future__ import annotations

from dataclasses import dataclass
from typing import ContextManager, Protocol

from ..employees.repository import EmployeeRepository
from ..ledger.repository import TimeLedger


@dataclass(frozen=True)
class StoreTransaction:
    """Repositories bound to one atomic unit: all writes made through them
    commit together or not at all."""

    employees: EmployeeRepository
    ledger: TimeLedger


class TimeclockStore(Protocol):
    """The one shared mutable resource.

    ``employees`` and ``ledger`` run each call in its own short transaction
    (reads, enrollment). ``transaction()`` opens an atomic unit; leaving the
    block normally commits, leaving it by an exception rolls back.
    """

    employees: EmployeeRepository
    ledger: TimeLedger

    def transaction(self) -> ContextManager[StoreTransaction]:
        raise NotImplementedError
