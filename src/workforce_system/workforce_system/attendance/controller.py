from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.web import current_user_id, handle_errors, json_body, login_required, ok, query_int
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    @handle_errors("clock in")
    def clock_in():
        data = json_body()
        record = container.attendance_service.clock_in(
            current_user_id(),
            location=data.get("work_location") or data.get("location"),
            work_date=parse_optional_date(data.get("work_date"), "work_date"),
        )
        return ok(201, attendance=record.to_dict())

    @app.route("/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    @handle_errors("clock out")
    def clock_out():
        data = json_body()
        record = container.attendance_service.clock_out(
            current_user_id(),
            work_date=parse_optional_date(data.get("work_date"), "work_date"),
        )
        return ok(attendance=record.to_dict())

    @app.route("/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    @handle_errors("load today's attendance")
    def attendance_today():
        record = container.attendance_service.get_today(current_user_id())
        return ok(attendance=record.to_dict() if record else None)

    @app.route("/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    @handle_errors("load attendance history")
    def attendance_history():
        records = container.attendance_service.history(
            current_user_id(),
            start_date=parse_optional_date(request.args.get("start_date"), "start_date"),
            end_date=parse_optional_date(request.args.get("end_date"), "end_date"),
            limit=query_int("limit", DEFAULT_HISTORY_LIMIT),
        )
        return ok(
            records=[r.to_dict() for r in records],
            total_hours=round(sum(r.total_hours for r in records), 2),
        )
