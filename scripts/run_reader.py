"""Run a badge reader against the time clock store.

Usage: python scripts/run_reader.py [DEVICE]

DEVICE defaults to READER_DEVICE from settings; "-" reads stdin
(keyboard-wedge readers, or typing UIDs by hand).
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.rfid_timeclock.rfid_timeclock.common.logging_utils import configure_logging
from src.rfid_timeclock.rfid_timeclock.container import build_container_from_settings
from src.rfid_timeclock.rfid_timeclock.intake.reader import BadgeReaderStream, display_line, open_reader_device


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    device = sys.argv[1] if len(sys.argv) > 1 else getattr(settings, "READER_DEVICE", "-")
    container = build_container_from_settings(settings)

    stream = open_reader_device(device)
    reader = BadgeReaderStream(
        container.intake,
        stream,
        on_outcome=lambda outcome: print(display_line(outcome), flush=True),
        source=device,
    )
    # Reader runs in the background so Ctrl-C reaches the main thread.
    thread = reader.start_in_thread()
    try:
        while thread.is_alive():
            thread.join(timeout=0.5)
    except KeyboardInterrupt:
        reader.stop()
    finally:
        if stream is not sys.stdin:
            stream.close()


if __name__ == "__main__":
    main()
