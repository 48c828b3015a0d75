from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import OTPState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import OTPChallenge
from .repository import OTPChallengeRepository

_COLUMNS = (
    "challenge_id, identity, code_hash, code_length, issued_at, expires_at, "
    "state, attempts, consumed, superseded"
)


def _to_challenge(r: dict) -> OTPChallenge:
    return OTPChallenge(
        challenge_id=int(r["challenge_id"]),
        identity=r["identity"],
        code_hash=r["code_hash"],
        code_length=int(r["code_length"]),
        issued_at=r["issued_at"],
        expires_at=r["expires_at"],
        state=OTPState(r["state"]),
        attempts=int(r.get("attempts") or 0),
        consumed=bool(r.get("consumed")),
        superseded=bool(r.get("superseded")),
    )


class MySQLOTPChallengeRepository(OTPChallengeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        identity: str,
        code_hash: str,
        code_length: int,
        issued_at: datetime,
        expires_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO otp_challenges(identity, code_hash, code_length, issued_at, expires_at, state)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (identity, code_hash, int(code_length), issued_at, expires_at, OTPState.AWAITING_INPUT.value),
            )
            return int(cur.lastrowid)

    def get(self, challenge_id: int) -> Optional[OTPChallenge]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM otp_challenges WHERE challenge_id=%s", (int(challenge_id),))
            r = fetchone(cur)
            return _to_challenge(r) if r else None

    def latest_for_identity(self, identity: str) -> Optional[OTPChallenge]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM otp_challenges
                WHERE identity=%s
                ORDER BY challenge_id DESC
                LIMIT 1
                """,
                (identity,),
            )
            r = fetchone(cur)
            return _to_challenge(r) if r else None

    def supersede_live(self, identity: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE otp_challenges SET superseded=1
                WHERE identity=%s AND consumed=0 AND superseded=0
                """,
                (identity,),
            )
            return int(cur.rowcount)

    def update_state(self, challenge_id: int, *, state: OTPState, attempts: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE otp_challenges SET state=%s, attempts=%s WHERE challenge_id=%s AND consumed=0",
                (state.value, int(attempts), int(challenge_id)),
            )
            return cur.rowcount > 0

    def consume(self, challenge_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE otp_challenges SET state=%s, consumed=1
                WHERE challenge_id=%s AND consumed=0 AND superseded=0
                """,
                (OTPState.VERIFIED.value, int(challenge_id)),
            )
            return cur.rowcount > 0
