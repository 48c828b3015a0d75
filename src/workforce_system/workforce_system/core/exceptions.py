from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is the stable error name reported to API callers.
    """

    kind = "domain_error"

    def __init__(self, message: str = "", *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    kind = "authentication_error"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "authorization_error"


class NotFoundError(DomainError):
    kind = "not_found"


class ConflictError(DomainError):
    """The entity is not in a state that allows the requested action."""

    kind = "conflict"


class AlreadyClockedIn(ConflictError):
    kind = "already_clocked_in"


class AlreadyClockedOut(ConflictError):
    kind = "already_clocked_out"


class NotClockedIn(ConflictError):
    kind = "not_clocked_in"


class AlreadyMarked(ConflictError):
    """The day was already resolved by an administrator."""

    kind = "already_marked"


class NotPending(ConflictError):
    kind = "not_pending"


class InvalidTransition(ConflictError):
    kind = "invalid_transition"


class OverlappingLeave(ConflictError):
    kind = "overlapping_leave"


class ChallengeConsumed(ConflictError):
    kind = "challenge_consumed"


class ChallengeSuperseded(ConflictError):
    kind = "challenge_superseded"


class ResendTooEarly(ConflictError):
    kind = "resend_too_early"


class InsufficientBalance(DomainError):
    kind = "insufficient_balance"

    def __init__(self, message: str = "", *, available: int = 0, requested: int = 0):
        super().__init__(message, field="category")
        self.available = available
        self.requested = requested


class Expired(DomainError):
    kind = "expired"


class CodeMismatch(DomainError):
    kind = "code_mismatch"
