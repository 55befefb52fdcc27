from __future__ import annotations

import logging
from typing import Sequence

from ..common.validators import normalize_badge_id, require_non_empty
from ..core.constants import MAX_BADGE_LENGTH
from ..core.exceptions import DuplicateBadge, ValidationError
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


class EmployeeService:
    """Use case: administrative enrollment of badge holders."""

    def __init__(self, employees: EmployeeRepository, *, case_insensitive: bool = True):
        self._employees = employees
        self._case_insensitive = bool(case_insensitive)

    def enroll(self, name: str, badge_id: str) -> Employee:
        name = require_non_empty(name, "Name")
        raw = require_non_empty(badge_id, "Badge")
        normalized = normalize_badge_id(raw, case_insensitive=self._case_insensitive)
        if not normalized:
            raise ValidationError("Badge is required")
        if not raw.isascii() or len(raw) > MAX_BADGE_LENGTH:
            raise ValidationError(f"Badge must be ASCII and at most {MAX_BADGE_LENGTH} characters")

        if self._employees.get_by_badge(normalized):
            raise DuplicateBadge(f"Badge {normalized} is already enrolled")

        employee_id = self._employees.create(name=name, badge_id=normalized, badge_raw=raw)
        logger.info("Enrolled employee_id=%s name=%r badge=%s", employee_id, name, normalized)
        return Employee(employee_id=employee_id, name=name, badge_id=normalized, is_present=False, badge_raw=raw)

    def list_employees(self) -> Sequence[Employee]:
        return self._employees.list_all()
