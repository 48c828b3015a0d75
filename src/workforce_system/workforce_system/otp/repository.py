from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import OTPState
from .model import OTPChallenge


class OTPChallengeRepository(Protocol):
    def create(
        self,
        *,
        identity: str,
        code_hash: str,
        code_length: int,
        issued_at: datetime,
        expires_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, challenge_id: int) -> Optional[OTPChallenge]:
        raise NotImplementedError

    def latest_for_identity(self, identity: str) -> Optional[OTPChallenge]:
        raise NotImplementedError

    def supersede_live(self, identity: str) -> int:
        """Mark every unconsumed challenge of ``identity`` as superseded."""

        raise NotImplementedError

    def update_state(self, challenge_id: int, *, state: OTPState, attempts: int) -> bool:
        raise NotImplementedError

    def consume(self, challenge_id: int) -> bool:
        """Compare-and-set: verified + consumed, only if still unconsumed."""

        raise NotImplementedError
