from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CodeMismatch,
    ConflictError,
    DomainError,
    Expired,
    InsufficientBalance,
    NotFoundError,
    ValidationError,
)
from ..core.logging import get_logger

logger = get_logger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (CodeMismatch, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InsufficientBalance, 409),
    (Expired, 410),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def ok(status: int = 200, **payload: Any):
    return jsonify({"success": True, **payload}), status


def error_response(error: DomainError):
    body = {"success": False, "error": error.kind, "message": str(error), "field": error.field}
    if isinstance(error, InsufficientBalance):
        body["available"] = error.available
        body["requested"] = error.requested
    return jsonify(body), status_for(error)


def handle_errors(action: str) -> Callable:
    """Render domain errors as JSON; anything else is logged and becomes a 500."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                return error_response(e)
            except Exception:
                logger.exception("Unexpected error while trying to %s", action)
                return jsonify({"success": False, "error": "server_error", "message": f"Failed to {action}"}), 500

        return wrapper

    return decorator


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Please sign in to continue"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Please sign in to continue"))
        if session.get("role") != Role.ADMIN.value:
            return error_response(AuthorizationError("Administrator access required"))
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {name}", field=name)
