"""Example: drive the service layer directly (no Flask).

Uses the embedded in-memory store, so it runs without a database.
"""

from datetime import datetime

from src.rfid_timeclock.rfid_timeclock.container import build_container


def main():
    container = build_container(backend="memory")
    container.employee_service.enroll("Alice", "AB12")

    for uid, at in [("ab12", datetime(2026, 2, 2, 9, 0)), ("ZZ99", datetime(2026, 2, 2, 9, 1)), ("AB12", datetime(2026, 2, 2, 17, 0))]:
        print(container.intake.submit_scan(uid, at).message)

    for r in container.query_service.list_records():
        print(r.to_dict())


if __name__ == "__main__":
    main()
