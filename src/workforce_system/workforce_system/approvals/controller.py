from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_optional_date
from ..common.validators import require_positive_int
from ..common.web import admin_required, current_role, current_user_id, handle_errors, json_body, ok, query_int
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    gate = container.approval_gate

    @app.route("/admin/attendance/pending", methods=["GET"], endpoint="pending_attendance")
    @admin_required
    @handle_errors("list pending attendance")
    def pending_attendance():
        records = gate.pending_attendance(current_role=current_role(), limit=query_int("limit", DEFAULT_LIST_LIMIT))
        return ok(records=[r.to_dict() for r in records])

    @app.route("/admin/attendance/<int:attendance_id>/decide", methods=["POST"], endpoint="decide_attendance")
    @admin_required
    @handle_errors("decide the attendance")
    def decide_attendance(attendance_id: int):
        data = json_body()
        record = gate.decide(
            attendance_id,
            outcome=data.get("outcome"),
            current_role=current_role(),
            admin_user_id=current_user_id(),
        )
        return ok(attendance=record.to_dict())

    @app.route("/admin/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @admin_required
    @handle_errors("mark the attendance")
    def mark_attendance():
        data = json_body()
        record = gate.manual_mark(
            require_positive_int(data.get("employee_id"), "employee_id"),
            outcome=data.get("outcome"),
            current_role=current_role(),
            admin_user_id=current_user_id(),
            work_date=parse_optional_date(data.get("work_date"), "work_date"),
        )
        return ok(attendance=record.to_dict())

    @app.route("/admin/attendance/bulk", methods=["POST"], endpoint="bulk_mark_attendance")
    @admin_required
    @handle_errors("bulk mark attendance")
    def bulk_mark_attendance():
        data = json_body()
        employee_ids = data.get("employee_ids")
        if not isinstance(employee_ids, list):
            raise ValidationError("employee_ids must be a list", field="employee_ids")
        results = gate.bulk_mark(
            employee_ids,
            outcome=data.get("outcome"),
            current_role=current_role(),
            admin_user_id=current_user_id(),
            work_date=parse_optional_date(data.get("work_date"), "work_date"),
        )
        return ok(
            results=[r.to_dict() for r in results],
            succeeded=sum(1 for r in results if r.ok),
            failed=sum(1 for r in results if not r.ok),
        )

    @app.route("/admin/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @admin_required
    @handle_errors("delete the attendance record")
    def delete_attendance(attendance_id: int):
        gate.delete_record(attendance_id, current_role=current_role(), admin_user_id=current_user_id())
        return ok(deleted=attendance_id)

    @app.route("/admin/leaves/pending", methods=["GET"], endpoint="pending_leaves")
    @admin_required
    @handle_errors("list pending leave requests")
    def pending_leaves():
        leaves = gate.pending_leaves(current_role=current_role(), limit=query_int("limit", DEFAULT_LIST_LIMIT))
        return ok(leaves=[r.to_dict() for r in leaves])

    @app.route("/admin/leaves/<int:request_id>/approve", methods=["POST"], endpoint="approve_leave")
    @admin_required
    @handle_errors("approve the leave request")
    def approve_leave(request_id: int):
        req = gate.approve_leave(request_id, current_role=current_role(), admin_user_id=current_user_id())
        return ok(leave=req.to_dict())

    @app.route("/admin/leaves/<int:request_id>/reject", methods=["POST"], endpoint="reject_leave")
    @admin_required
    @handle_errors("reject the leave request")
    def reject_leave(request_id: int):
        data = json_body()
        req = gate.reject_leave(
            request_id,
            current_role=current_role(),
            admin_user_id=current_user_id(),
            rejection_reason=data.get("rejection_reason"),
        )
        return ok(leave=req.to_dict())

    @app.route("/admin/employees/<int:employee_id>/balance", methods=["GET"], endpoint="employee_balance")
    @admin_required
    @handle_errors("load the leave balance")
    def employee_balance(employee_id: int):
        snapshot = gate.employee_balance(employee_id, current_role=current_role(), period=query_int("period"))
        return ok(balance=snapshot.to_dict())

    @app.route("/admin/employees/<int:employee_id>/balance/reset", methods=["POST"], endpoint="reset_balance")
    @admin_required
    @handle_errors("reset the leave balance")
    def reset_balance(employee_id: int):
        data = json_body()
        allocations = data.get("allocations") or {}
        if not isinstance(allocations, dict):
            raise ValidationError("allocations must be an object", field="allocations")
        snapshot = gate.reset_balance(
            employee_id,
            current_role=current_role(),
            admin_user_id=current_user_id(),
            period=data.get("period"),
            allocations=allocations,
        )
        return ok(balance=snapshot.to_dict())
