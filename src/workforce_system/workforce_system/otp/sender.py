from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..core.logging import get_logger

logger = get_logger(__name__)


class CodeSender(Protocol):
    """Delivers a one-time code out-of-band (mail, SMS, ...)."""

    def send_code(self, identity: str, code: str, *, expires_at: datetime) -> None:
        raise NotImplementedError


class LoggingCodeSender:
    """Development sender: writes the code to the debug log only."""

    def send_code(self, identity: str, code: str, *, expires_at: datetime) -> None:
        logger.info("One-time code issued for %s (valid until %s)", identity, expires_at.isoformat())
        logger.debug("One-time code for %s: %s", identity, code)
