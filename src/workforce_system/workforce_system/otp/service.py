from __future__ import annotations

import secrets
from datetime import timedelta

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.clock import Clock
from ..common.validators import require_email
from ..core.constants import OTP_CODE_LENGTH, OTP_VALIDITY_SECONDS
from ..core.enums import OTPState
from ..core.exceptions import (
    ChallengeConsumed,
    ChallengeSuperseded,
    CodeMismatch,
    Expired,
    NotFoundError,
    ResendTooEarly,
    ValidationError,
)
from ..core.logging import get_logger
from .model import OTPChallenge
from .repository import OTPChallengeRepository
from .sender import CodeSender

logger = get_logger(__name__)


class OTPService:
    """Use case: one-time code challenge guarding a sensitive identity step.

    States: awaiting-input -> verifying -> verified | failed, plus a passive
    expiry (``now > expires_at`` is checked when a code is submitted).
    A failed code may be retried until the challenge expires.
    """

    def __init__(
        self,
        challenges: OTPChallengeRepository,
        sender: CodeSender,
        clock: Clock,
        *,
        validity_seconds: int = OTP_VALIDITY_SECONDS,
        code_length: int = OTP_CODE_LENGTH,
    ):
        self._challenges = challenges
        self._sender = sender
        self._clock = clock
        self._validity = timedelta(seconds=int(validity_seconds))
        self._code_length = int(code_length)

    def _generate_code(self) -> str:
        return "".join(secrets.choice("0123456789") for _ in range(self._code_length))

    def issue(self, identity: str) -> OTPChallenge:
        identity = require_email(identity, "identity")

        superseded = self._challenges.supersede_live(identity)
        if superseded:
            logger.info("Superseded %d live challenge(s) for %s", superseded, identity)

        code = self._generate_code()
        issued_at = self._clock.now()
        expires_at = issued_at + self._validity
        challenge_id = self._challenges.create(
            identity=identity,
            code_hash=generate_password_hash(code),
            code_length=self._code_length,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        self._sender.send_code(identity, code, expires_at=expires_at)
        logger.info("Issued challenge %s for %s", challenge_id, identity)
        return self.get(challenge_id)

    def get(self, challenge_id: int) -> OTPChallenge:
        challenge = self._challenges.get(int(challenge_id))
        if not challenge:
            raise NotFoundError("Challenge does not exist", field="challenge_id")
        return challenge

    def submit(self, challenge_id: int, code: str) -> OTPChallenge:
        challenge = self.get(challenge_id)

        if challenge.superseded:
            raise ChallengeSuperseded("A newer code was sent; use the latest one")
        if challenge.consumed:
            raise ChallengeConsumed("This code has already been used")

        code = (code or "").strip()
        if len(code) != challenge.code_length or not code.isdigit():
            raise ValidationError(f"Code must be {challenge.code_length} digits", field="code")

        now = self._clock.now()
        if challenge.is_expired_at(now):
            self._challenges.update_state(challenge.challenge_id, state=OTPState.EXPIRED, attempts=challenge.attempts)
            logger.warning("Challenge %s submitted after expiry", challenge.challenge_id)
            raise Expired("Code expired. Please request a new one")

        attempts = challenge.attempts + 1
        self._challenges.update_state(challenge.challenge_id, state=OTPState.VERIFYING, attempts=attempts)

        if not check_password_hash(challenge.code_hash, code):
            self._challenges.update_state(challenge.challenge_id, state=OTPState.FAILED, attempts=attempts)
            logger.warning("Code mismatch on challenge %s (attempt %d)", challenge.challenge_id, attempts)
            raise CodeMismatch("Invalid code", field="code")

        if not self._challenges.consume(challenge.challenge_id):
            # Lost a race against another submit or a resend.
            raise ChallengeConsumed("This code has already been used")

        logger.info("Challenge %s verified", challenge.challenge_id)
        return self.get(challenge.challenge_id)

    def can_resend(self, identity: str) -> bool:
        latest = self._challenges.latest_for_identity(require_email(identity, "identity"))
        if latest is None:
            return False
        now = self._clock.now()
        return not latest.is_live_at(now) or now >= latest.expires_at

    def resend(self, identity: str) -> OTPChallenge:
        identity = require_email(identity, "identity")
        latest = self._challenges.latest_for_identity(identity)
        if latest is None:
            raise NotFoundError("No code was requested for this identity", field="identity")

        now = self._clock.now()
        if latest.is_live_at(now) and now < latest.expires_at:
            raise ResendTooEarly(f"You can request a new code in {latest.seconds_left(now)} seconds")

        return self.issue(identity)
