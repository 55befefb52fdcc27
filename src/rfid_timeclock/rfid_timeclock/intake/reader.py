from __future__ import annotations

import logging
import sys
import threading
import time
from datetime import datetime
from typing import Callable, Iterable, Optional, TextIO

from ..common.datetime_utils import format_duration, now_local
from ..core.enums import ScanStatus
from .model import ScanOutcome
from .service import ScanIntake

logger = logging.getLogger(__name__)


class BadgeReaderStream:
    """Persistent connection to a badge reader that emits one UID per line.

    Works with keyboard-wedge readers (stdin) and serial readers exposed as
    a tty opened in text mode. Each line is stamped with the receive time
    and handed to ``ScanIntake``.
    """

    def __init__(
        self,
        intake: ScanIntake,
        stream: Iterable[str],
        *,
        on_outcome: Optional[Callable[[ScanOutcome], None]] = None,
        clock: Callable[[], datetime] = now_local,
        source: str = "reader",
    ):
        self._intake = intake
        self._stream = stream
        self._on_outcome = on_outcome
        self._clock = clock
        self._source = source
        self._stopped = threading.Event()

    def stop(self) -> None:
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def run(self) -> int:
        """Consume the stream until EOF or ``stop()``; returns scans submitted."""
        submitted = 0
        logger.info("Badge reader %s started", self._source)
        for line in self._stream:
            if self._stopped.is_set():
                break
            uid = line.strip()
            if not uid:
                continue

            outcome = self._intake.submit_scan(uid, self._clock(), source=self._source)
            submitted += 1
            if outcome.status != ScanStatus.DEBOUNCED:
                logger.info("[%s] %s %s: %s", self._source, outcome.status.value, outcome.badge_id, outcome.message)
            if self._on_outcome is not None:
                try:
                    self._on_outcome(outcome)
                except Exception:
                    # A broken display must not stop the reader.
                    logger.exception("Outcome callback failed for %s", outcome.badge_id)
        logger.info("Badge reader %s stopped after %d scans", self._source, submitted)
        return submitted

    def start_in_thread(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name=f"badge-reader-{self._source}", daemon=True)
        thread.start()
        return thread


def display_line(outcome: ScanOutcome) -> str:
    """Text for the reader's display; clock-outs also show the time worked."""
    result = outcome.result
    if result is not None and result.total_duration is not None:
        return f"{outcome.message} ({format_duration(result.total_duration)})"
    return outcome.message


def open_reader_device(path: str, *, retries: int = 5, delay_seconds: float = 2.0) -> TextIO:
    """Open a reader device as a line-buffered text stream, retrying while
    the device is not yet available (USB readers enumerate late).

    ``-`` means stdin.
    """
    if path == "-":
        return sys.stdin

    last_error: Optional[OSError] = None
    for attempt in range(1, retries + 1):
        try:
            return open(path, "r", encoding="ascii", errors="ignore", buffering=1)
        except OSError as e:
            last_error = e
            logger.warning("Failed to open reader %s (attempt %d/%d): %s", path, attempt, retries, e)
            if attempt < retries:
                time.sleep(delay_seconds)
    raise OSError(f"Failed to open reader {path} after {retries} attempts") from last_error
