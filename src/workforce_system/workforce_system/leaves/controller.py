from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.web import current_role, current_user_id, handle_errors, json_body, login_required, ok, query_int
from ..core.constants import DEFAULT_LIST_LIMIT
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/leaves", methods=["POST"], endpoint="apply_leave")
    @login_required
    @handle_errors("submit the leave request")
    def apply_leave():
        data = json_body()
        req = container.leave_service.apply(
            current_user_id(),
            category=data.get("category"),
            start_date=parse_optional_date(data.get("start_date"), "start_date"),
            end_date=parse_optional_date(data.get("end_date"), "end_date"),
            reason=data.get("reason"),
        )
        balance = container.leave_service.balance(current_user_id(), period=req.period)
        return ok(201, leave=req.to_dict(), balance=balance[req.category].to_dict())

    @app.route("/leaves/<int:request_id>", methods=["GET"], endpoint="view_leave")
    @login_required
    @handle_errors("load the leave request")
    def view_leave(request_id: int):
        req = container.leave_service.view(request_id, viewer_id=current_user_id(), viewer_role=current_role())
        return ok(leave=req.to_dict())

    @app.route("/leaves/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_leave")
    @login_required
    @handle_errors("cancel the leave request")
    def cancel_leave(request_id: int):
        req = container.leave_service.cancel(request_id, acting_employee_id=current_user_id())
        return ok(leave=req.to_dict())

    @app.route("/leaves", methods=["GET"], endpoint="my_leaves")
    @login_required
    @handle_errors("list leave requests")
    def my_leaves():
        leaves = container.leave_service.list_mine(
            current_user_id(),
            status=request.args.get("status") or None,
            limit=query_int("limit", DEFAULT_LIST_LIMIT),
        )
        return ok(leaves=[r.to_dict() for r in leaves])

    @app.route("/leaves/balance", methods=["GET"], endpoint="my_balance")
    @login_required
    @handle_errors("load the leave balance")
    def my_balance():
        snapshot = container.leave_service.balance(current_user_id(), period=query_int("period"))
        return ok(balance=snapshot.to_dict())
