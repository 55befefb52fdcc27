class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateBadge(ValidationError):
    """Raised when enrolling a badge that already belongs to an employee."""


class UnknownBadge(DomainError):
    """Raised when a scanned badge is not enrolled."""

    def __init__(self, badge_id: str):
        super().__init__(f"Unknown badge: {badge_id}")
        self.badge_id = badge_id


class InvariantViolation(DomainError):
    """Presence flag and ledger disagree, or the ledger holds several open records."""


class OpenRecordExists(InvariantViolation):
    """Raised when opening a record for an employee who already has one open."""


class NoOpenRecord(InvariantViolation):
    """Raised when closing a record for an employee who has none open."""


class StoreUnavailable(DomainError):
    """Transient store failure (connection lost, lock wait timeout, ...).

    Nothing was written; the caller may retry.
    """
