from __future__ import annotations

from datetime import timedelta

from flask import Flask, session

from ..common.web import admin_required, current_role, handle_errors, json_body, login_required, ok
from ..common.validators import require_enum, require_positive_int
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    @app.route("/auth/login", methods=["POST"], endpoint="login")
    @handle_errors("sign in")
    def login():
        data = json_body()
        challenge = container.auth_service.begin_sign_in(data.get("email", ""), data.get("password", ""))
        return ok(challenge=challenge.to_dict(container.clock.now()))

    @app.route("/auth/otp/verify", methods=["POST"], endpoint="verify_otp")
    @handle_errors("verify the code")
    def verify_otp():
        data = json_body()
        challenge_id = require_positive_int(data.get("challenge_id"), "challenge_id")
        s_user = container.auth_service.complete_sign_in(challenge_id, str(data.get("code") or ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        return ok(user={"user_id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role.value})

    @app.route("/auth/otp/resend", methods=["POST"], endpoint="resend_otp")
    @handle_errors("resend the code")
    def resend_otp():
        data = json_body()
        challenge = container.auth_service.resend_code(data.get("email", ""))
        return ok(challenge=challenge.to_dict(container.clock.now()))

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok(user={"user_id": session["user_id"], "full_name": session.get("name"), "role": session.get("role")})

    @app.route("/admin/employees", methods=["GET"], endpoint="admin_employees")
    @admin_required
    @handle_errors("list employees")
    def admin_employees():
        return ok(employees=[u.to_dict() for u in container.user_service.list_all()])

    @app.route("/admin/employees", methods=["POST"], endpoint="add_employee")
    @admin_required
    @handle_errors("add the employee")
    def add_employee():
        data = json_body()
        user_id = container.user_service.create_account(
            current_role=current_role(),
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=require_enum(Role, data.get("role") or Role.EMPLOYEE.value, "role"),
        )
        return ok(201, employee=container.user_service.get_employee(user_id).to_dict())

    @app.route("/admin/employees/<int:user_id>/deactivate", methods=["POST"], endpoint="deactivate_employee")
    @admin_required
    @handle_errors("deactivate the employee")
    def deactivate_employee(user_id: int):
        container.user_service.deactivate(current_role=current_role(), user_id=user_id)
        return ok(employee=container.user_service.get_employee(user_id).to_dict())
