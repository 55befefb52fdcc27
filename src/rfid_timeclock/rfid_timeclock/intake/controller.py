from __future__ import annotations

from flask import Flask, jsonify, request

from ..core.enums import ScanStatus
from ..container import Container

_HTTP_STATUS = {
    ScanStatus.APPLIED: 200,
    ScanStatus.INVALID: 400,
    ScanStatus.REJECTED: 404,
    ScanStatus.DEBOUNCED: 429,
    ScanStatus.FAILED: 503,
}


def register(app: Flask, container: Container) -> None:
    @app.route("/scan", methods=["POST"], endpoint="scan")
    def scan():
        """Badge scan from a networked reader: JSON ``{"uid": "..."}``."""
        data = request.get_json(silent=True) or {}
        uid = data.get("uid")
        if not isinstance(uid, str) or not uid.strip():
            return jsonify({"success": False, "message": "Invalid request payload"}), 400

        outcome = container.intake.submit_scan(uid, source="http")
        body = {
            "success": outcome.applied,
            "status": outcome.status.value,
            "message": outcome.message,
        }
        if outcome.result is not None:
            body.update(
                {
                    "action": outcome.result.event_kind.value,
                    "employee_name": outcome.result.employee_name,
                    "event_time": outcome.result.event_time.isoformat(),
                }
            )
        return jsonify(body), _HTTP_STATUS[outcome.status]
