from __future__ import annotations

import pytest

from workforce_system.core.enums import Role
from workforce_system.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CodeMismatch,
    NotFoundError,
    ValidationError,
)

from tests.fakes import ADMIN_ID, EMPLOYEE_ID, MISSING_EMPLOYEE_ID


def test_sign_in_takes_password_then_code(auth_service, code_sender):
    challenge = auth_service.begin_sign_in("user2@example.com", "employee-pass")
    assert code_sender.sent[-1][0] == "user2@example.com"

    s_user = auth_service.complete_sign_in(challenge.challenge_id, code_sender.last_code)

    assert s_user.user_id == EMPLOYEE_ID
    assert s_user.role == Role.EMPLOYEE
    assert s_user.full_name == "Employee One"


def test_email_is_case_insensitive(auth_service):
    challenge = auth_service.begin_sign_in("  USER1@Example.com ", "admin-pass")

    assert challenge.identity == "user1@example.com"


@pytest.mark.parametrize("email, password", [("user2@example.com", "wrong"), ("nobody@example.com", "x"), ("", "")])
def test_bad_credentials_send_no_code(auth_service, code_sender, email, password):
    with pytest.raises(AuthenticationError):
        auth_service.begin_sign_in(email, password)
    assert code_sender.sent == []


def test_inactive_account_cannot_sign_in(auth_service, users):
    users.set_active(EMPLOYEE_ID, is_active=False)

    with pytest.raises(AuthenticationError):
        auth_service.begin_sign_in("user2@example.com", "employee-pass")


def test_wrong_code_does_not_sign_in(auth_service, code_sender):
    challenge = auth_service.begin_sign_in("user2@example.com", "employee-pass")

    with pytest.raises(CodeMismatch):
        auth_service.complete_sign_in(challenge.challenge_id, "000000" if code_sender.last_code != "000000" else "111111")


def test_admin_creates_employee_account(user_service, auth_service, code_sender):
    user_id = user_service.create_account(
        current_role=Role.ADMIN,
        full_name="New Hire",
        email="New.Hire@Example.com",
        password="welcome-123",
    )

    created = user_service.get_employee(user_id)
    assert created.email == "new.hire@example.com"
    assert created.role == Role.EMPLOYEE
    assert created.password_hash != "welcome-123"

    challenge = auth_service.begin_sign_in("new.hire@example.com", "welcome-123")
    assert auth_service.complete_sign_in(challenge.challenge_id, code_sender.last_code).user_id == user_id


def test_only_admin_creates_accounts(user_service):
    with pytest.raises(AuthorizationError):
        user_service.create_account(
            current_role=Role.EMPLOYEE, full_name="X", email="x@example.com", password="long-enough"
        )


@pytest.mark.parametrize(
    "email, password, field",
    [("bad-email", "long-enough", "email"), ("a@example.com", "short", "password"), ("user2@example.com", "long-enough", "email")],
)
def test_create_account_validation(user_service, email, password, field):
    with pytest.raises(ValidationError) as exc:
        user_service.create_account(current_role=Role.ADMIN, full_name="Someone", email=email, password=password)
    assert exc.value.field == field


def test_deactivate(user_service):
    user_service.deactivate(current_role=Role.ADMIN, user_id=EMPLOYEE_ID)

    assert not user_service.get_employee(EMPLOYEE_ID).is_active
    with pytest.raises(ValidationError):
        user_service.deactivate(current_role=Role.ADMIN, user_id=ADMIN_ID)
    with pytest.raises(NotFoundError):
        user_service.get_employee(MISSING_EMPLOYEE_ID)
