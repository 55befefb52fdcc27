from __future__ import annotations

import pytest

from src.rfid_timeclock.rfid_timeclock.core.exceptions import DuplicateBadge, ValidationError
from src.rfid_timeclock.rfid_timeclock.employees.service import EmployeeService


def test_enroll_normalizes_badge_and_starts_absent(container):
    employee = container.employee_service.enroll("  Bob ", "04 a3 1f 7c")

    assert employee.name == "Bob"
    assert employee.badge_id == "04A31F7C"
    assert employee.badge_raw == "04 a3 1f 7c"
    assert employee.is_present is False
    assert container.store.employees.get_by_badge("04A31F7C").employee_id == employee.employee_id


def test_enroll_rejects_duplicate_badge_in_any_spelling(container, alice):
    with pytest.raises(DuplicateBadge):
        container.employee_service.enroll("Mallory", "ab 12")


@pytest.mark.parametrize("name,badge", [("", "X1"), ("Bob", "  "), ("   ", "X1")])
def test_enroll_requires_name_and_badge(container, name, badge):
    with pytest.raises(ValidationError):
        container.employee_service.enroll(name, badge)


def test_case_sensitive_enrollment_keeps_both_spellings(store):
    service = EmployeeService(store.employees, case_insensitive=False)

    upper = service.enroll("Alice", "AB12")
    lower = service.enroll("Bob", "ab12")

    assert upper.employee_id != lower.employee_id
    assert store.employees.get_by_badge("ab12").name == "Bob"


@pytest.mark.parametrize("badge", ["ABé12", "X" * 65])
def test_enroll_rejects_badges_the_column_cannot_hold(container, badge):
    with pytest.raises(ValidationError):
        container.employee_service.enroll("Bob", badge)
