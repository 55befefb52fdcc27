from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ScanStatus
from ..engine.model import ScanResult


@dataclass(frozen=True)
class ScanOutcome:
    """What the caller gets back for one delivered scan. Never carries
    internal error detail."""

    status: ScanStatus
    badge_id: str
    message: str
    result: Optional[ScanResult] = None

    @property
    def applied(self) -> bool:
        return self.status == ScanStatus.APPLIED
