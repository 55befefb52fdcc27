from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: an enrolled badge holder.

    Only ``is_present`` ever changes after enrollment.
    """

    employee_id: int
    name: str
    badge_id: str
    is_present: bool = False
    badge_raw: Optional[str] = None

    def with_presence(self, is_present: bool) -> "Employee":
        return replace(self, is_present=bool(is_present))
