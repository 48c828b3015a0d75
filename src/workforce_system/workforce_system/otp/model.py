from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import OTPState


@dataclass(frozen=True)
class OTPChallenge:
    """A short-lived numeric code sent to ``identity``.

    Only a hash of the code is kept; the clear code leaves the service once,
    through the code sender.
    """

    challenge_id: int
    identity: str
    code_hash: str
    code_length: int
    issued_at: datetime
    expires_at: datetime
    state: OTPState = OTPState.AWAITING_INPUT
    attempts: int = 0
    consumed: bool = False
    superseded: bool = False

    def is_expired_at(self, now: datetime) -> bool:
        return self.state == OTPState.EXPIRED or now > self.expires_at

    def is_live_at(self, now: datetime) -> bool:
        return not (self.consumed or self.superseded or self.is_expired_at(now))

    def seconds_left(self, now: datetime) -> int:
        return max(0, int((self.expires_at - now).total_seconds()))

    def to_dict(self, now: datetime) -> dict:
        return {
            "challenge_id": self.challenge_id,
            "identity": self.identity,
            "state": (OTPState.EXPIRED if self.is_expired_at(now) and not self.consumed else self.state).value,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "seconds_left": self.seconds_left(now),
            "attempts": self.attempts,
            "consumed": self.consumed,
        }
