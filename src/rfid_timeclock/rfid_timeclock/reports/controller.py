from __future__ import annotations

from datetime import date, timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_bound, parse_iso_date
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_REPORT_DAYS
from ..core.exceptions import ValidationError
from ..container import Container
from .model import RecordFilter


def register(app: Flask, container: Container) -> None:
    def _bad_request(message: str):
        return jsonify({"success": False, "message": message}), 400

    @app.route("/api/present", methods=["GET"], endpoint="api_present")
    def api_present():
        rows = container.query_service.list_present()
        return jsonify({"success": True, "present": [r.to_dict() for r in rows]})

    @app.route("/api/time-records", methods=["GET"], endpoint="api_time_records")
    def api_time_records():
        try:
            employee_id = request.args.get("employee_id", type=int)
            limit = request.args.get("limit", default=DEFAULT_HISTORY_LIMIT, type=int)
            record_filter = RecordFilter(
                employee_id=employee_id,
                start=parse_bound(request.args.get("start")),
                end=parse_bound(request.args.get("end"), end_of_day=True),
                limit=limit,
            )
            rows = container.query_service.list_record_rows(record_filter)
        except ValueError:
            return _bad_request("Invalid date format")
        except ValidationError as e:
            return _bad_request(str(e))
        return jsonify({"success": True, "records": [r.to_dict() for r in rows]})

    @app.route("/api/daily-totals", methods=["GET"], endpoint="api_daily_totals")
    def api_daily_totals():
        try:
            end = parse_iso_date(request.args["end"]) if request.args.get("end") else date.today()
            start = (
                parse_iso_date(request.args["start"])
                if request.args.get("start")
                else end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
            )
            totals = container.query_service.daily_totals(
                start=start, end=end, employee_id=request.args.get("employee_id", type=int)
            )
        except ValueError:
            return _bad_request("Invalid date format")
        except ValidationError as e:
            return _bad_request(str(e))
        return jsonify({"success": True, "totals": [t.to_dict() for t in totals]})
