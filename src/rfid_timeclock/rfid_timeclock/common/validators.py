from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def normalize_badge_id(raw: str, *, case_insensitive: bool = True) -> str:
    """Canonical form of a badge identifier.

    Readers deliver the same UID with stray whitespace ("04 A3 1F") and in
    either case, so spaces are removed and, for case-insensitive sources,
    the value is upper-cased.
    """
    if raw is None:
        return ""
    value = "".join(str(raw).split())
    return value.upper() if case_insensitive else value
