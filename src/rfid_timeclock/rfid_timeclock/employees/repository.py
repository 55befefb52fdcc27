from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Identity store: badge identifier -> employee and presence flag.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_badge(self, badge_id: str) -> Optional[Employee]:
        """Plain lookup. ``None`` means the badge is not enrolled."""

        raise NotImplementedError

    def lock_by_badge(self, badge_id: str) -> Optional[Employee]:
        """Lookup that also locks the employee row until the enclosing
        transaction ends. Only meaningful inside ``store.transaction()``."""

        raise NotImplementedError

    def set_presence(self, employee_id: int, *, is_present: bool) -> bool:
        raise NotImplementedError

    def create(self, *, name: str, badge_id: str, badge_raw: Optional[str] = None) -> int:
        raise NotImplementedError

    def list_present(self) -> Sequence[Employee]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Employee]:
        raise NotImplementedError
