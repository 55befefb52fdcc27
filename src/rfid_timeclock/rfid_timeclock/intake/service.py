from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional

from ..common.datetime_utils import now_local, to_store_time
from ..common.validators import normalize_badge_id
from ..core.constants import DEFAULT_DEBOUNCE_SECONDS
from ..core.enums import EventKind, ScanStatus
from ..core.exceptions import DomainError, UnknownBadge
from ..engine.service import TransitionEngine
from .model import ScanOutcome

logger = logging.getLogger(__name__)

TRY_AGAIN_MESSAGE = "Scan not recorded, please try again"

_ACTION_LABELS = {
    EventKind.CLOCK_IN: "Clock-In",
    EventKind.CLOCK_OUT: "Clock-Out",
}

# Prune the debounce table once it grows past this many badges.
_DEBOUNCE_PRUNE_SIZE = 1024


class ScanIntake:
    """Normalise raw scans, collapse duplicate deliveries of one physical
    tap and forward the rest to the engine.

    Never raises for a scan: every delivery ends as a ``ScanOutcome``.
    """

    def __init__(
        self,
        engine: TransitionEngine,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        case_insensitive: bool = True,
        clock: Callable[[], datetime] = now_local,
    ):
        self._engine = engine
        self._debounce_seconds = max(0.0, float(debounce_seconds))
        self._case_insensitive = bool(case_insensitive)
        self._clock = clock
        self._last_accepted: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def normalize(self, raw_badge: str) -> str:
        return normalize_badge_id(raw_badge, case_insensitive=self._case_insensitive)

    def submit_scan(self, raw_badge: str, received_at: Optional[datetime] = None, *, source: str = "http") -> ScanOutcome:
        badge_id = self.normalize(raw_badge)
        if not badge_id:
            return ScanOutcome(status=ScanStatus.INVALID, badge_id="", message="Empty badge identifier")

        received_at = to_store_time(received_at or self._clock())
        accepted, previous = self._claim(badge_id, received_at)
        if not accepted:
            logger.debug("Debounced %s scan of %s at %s", source, badge_id, received_at.isoformat())
            return ScanOutcome(status=ScanStatus.DEBOUNCED, badge_id=badge_id, message="Duplicate scan ignored")

        try:
            result = self._engine.handle_scan(badge_id, received_at)
        except UnknownBadge:
            return ScanOutcome(status=ScanStatus.REJECTED, badge_id=badge_id, message="Unknown RFID card")
        except DomainError as e:
            # Not applied: give the window back so the reader can retry at once.
            self._release(badge_id, received_at, previous)
            logger.warning("Scan of %s from %s not applied: %s", badge_id, source, e)
            return ScanOutcome(status=ScanStatus.FAILED, badge_id=badge_id, message=TRY_AGAIN_MESSAGE)
        except Exception:
            self._release(badge_id, received_at, previous)
            logger.exception("Scan of %s from %s failed", badge_id, source)
            return ScanOutcome(status=ScanStatus.FAILED, badge_id=badge_id, message=TRY_AGAIN_MESSAGE)

        return ScanOutcome(
            status=ScanStatus.APPLIED,
            badge_id=badge_id,
            message=f"{_ACTION_LABELS[result.event_kind]}: {result.employee_name}",
            result=result,
        )

    def _claim(self, badge_id: str, received_at: datetime) -> tuple[bool, Optional[datetime]]:
        """Reserve the debounce window for ``badge_id``.

        Also returns the previous claim so a failed scan can restore it.
        """
        with self._lock:
            previous = self._last_accepted.get(badge_id)
            if (
                previous is not None
                and self._debounce_seconds > 0
                and abs((received_at - previous).total_seconds()) < self._debounce_seconds
            ):
                return False, previous
            self._last_accepted[badge_id] = received_at
            if len(self._last_accepted) > _DEBOUNCE_PRUNE_SIZE:
                self._prune(received_at)
            return True, previous

    def _release(self, badge_id: str, received_at: datetime, previous: Optional[datetime]) -> None:
        with self._lock:
            if self._last_accepted.get(badge_id) != received_at:
                return
            if previous is None:
                del self._last_accepted[badge_id]
            else:
                self._last_accepted[badge_id] = previous

    def _prune(self, now: datetime) -> None:
        stale = [
            badge for badge, seen in self._last_accepted.items()
            if (now - seen).total_seconds() >= self._debounce_seconds
        ]
        for badge in stale:
            del self._last_accepted[badge]
