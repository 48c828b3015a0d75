from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..otp.model import OTPChallenge
from ..otp.service import OTPService
from .model import User
from .repository import UserRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after sign-in."""

    user_id: int
    full_name: str
    role: Role


class AuthService:
    """Use case: two-step sign-in (password, then one-time code)."""

    def __init__(self, users: UserRepository, otp: OTPService):
        self._users = users
        self._otp = otp

    def authenticate(self, email: str, password: str) -> User:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")
        return user

    def begin_sign_in(self, email: str, password: str) -> OTPChallenge:
        user = self.authenticate(email, password)
        return self._otp.issue(user.email)

    def resend_code(self, email: str) -> OTPChallenge:
        return self._otp.resend(email)

    def complete_sign_in(self, challenge_id: int, code: str) -> SessionUser:
        challenge = self._otp.submit(challenge_id, code)
        user = self._users.get_by_email(challenge.identity)
        if not user or not user.is_active:
            raise AuthenticationError("Account is not available")

        logger.info("User %s signed in", user.user_id)
        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role)


class UserService:
    """Use case: manage employee accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get_employee(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError(f"Employee {user_id} does not exist", field="employee_id")
        return user

    def create_account(
        self,
        *,
        current_role: Role,
        full_name: str,
        email: str,
        password: str,
        role: Role = Role.EMPLOYEE,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can create accounts")

        full_name = require_non_empty(full_name, "full_name")
        email = require_email(email)
        require_min_length(password, "password", 8)

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered", field="email")

        user_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        )
        logger.info("Created %s account %s", role.value, user_id)
        return user_id

    def deactivate(self, *, current_role: Role, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can deactivate accounts")

        user = self.get_employee(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Administrator accounts cannot be deactivated here")
        if not self._users.set_active(user.user_id, is_active=False):
            raise ValidationError("Deactivation failed")

    def list_all(self) -> Sequence[User]:
        return self._users.list_all()
