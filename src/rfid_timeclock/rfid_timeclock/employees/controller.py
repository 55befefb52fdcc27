from __future__ import annotations

from flask import Flask, jsonify, request

from ..core.exceptions import DuplicateBadge, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/employees", methods=["GET"], endpoint="api_employees")
    def api_employees():
        rows = container.employee_service.list_employees()
        return jsonify(
            {
                "success": True,
                "employees": [
                    {
                        "employee_id": e.employee_id,
                        "name": e.name,
                        "badge_id": e.badge_id,
                        "is_present": e.is_present,
                    }
                    for e in rows
                ],
            }
        )

    @app.route("/api/employees", methods=["POST"], endpoint="api_enroll_employee")
    def api_enroll_employee():
        data = request.get_json(silent=True) or {}
        try:
            employee = container.employee_service.enroll(str(data.get("name") or ""), str(data.get("badge_id") or ""))
        except DuplicateBadge as e:
            return jsonify({"success": False, "message": str(e)}), 409
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        return (
            jsonify(
                {
                    "success": True,
                    "employee": {
                        "employee_id": employee.employee_id,
                        "name": employee.name,
                        "badge_id": employee.badge_id,
                        "is_present": employee.is_present,
                    },
                }
            ),
            201,
        )
