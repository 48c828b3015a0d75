from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, WorkLocation
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceDay
from .repository import AttendanceRepository

_COLUMNS = (
    "attendance_id, employee_id, work_date, status, work_location, "
    "clock_in_at, clock_out_at, is_manual, decided_by, decided_at, note"
)


def _to_day(r: dict) -> AttendanceDay:
    return AttendanceDay(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        work_location=WorkLocation(r["work_location"]) if r.get("work_location") else None,
        clock_in_at=r.get("clock_in_at"),
        clock_out_at=r.get("clock_out_at"),
        is_manual=bool(r.get("is_manual")),
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, attendance_id: int) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_days WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_day(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_days
                WHERE employee_id=%s AND work_date=%s
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_day(r) if r else None

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        clock_in_at: Optional[datetime] = None,
        work_location: Optional[WorkLocation] = None,
        is_manual: bool = False,
        decided_by: Optional[int] = None,
        decided_at: Optional[datetime] = None,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_days(
                        employee_id, work_date, status, work_location,
                        clock_in_at, is_manual, decided_by, decided_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        work_date,
                        status.value,
                        work_location.value if work_location else None,
                        clock_in_at,
                        1 if is_manual else 0,
                        decided_by,
                        decided_at,
                    ),
                )
            except mysql.connector.IntegrityError:
                # uq_attendance_employee_date: someone else created the day first
                return None
            return int(cur.lastrowid)

    def record_clock_in(self, attendance_id: int, *, clock_in_at: datetime, work_location: WorkLocation) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_days
                SET clock_in_at=%s, work_location=%s, status=%s
                WHERE attendance_id=%s AND clock_in_at IS NULL
                  AND is_manual=0 AND decided_by IS NULL
                """,
                (clock_in_at, work_location.value, AttendanceStatus.PENDING.value, int(attendance_id)),
            )
            return cur.rowcount > 0

    def record_clock_out(self, attendance_id: int, *, clock_out_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_days
                SET clock_out_at=%s
                WHERE attendance_id=%s
                  AND clock_in_at IS NOT NULL AND clock_in_at <= %s
                  AND clock_out_at IS NULL
                """,
                (clock_out_at, int(attendance_id), clock_out_at),
            )
            return cur.rowcount > 0

    def set_decision(
        self,
        attendance_id: int,
        *,
        expected_status: AttendanceStatus,
        status: AttendanceStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_days
                SET status=%s, decided_by=%s, decided_at=%s, is_manual=0
                WHERE attendance_id=%s AND status=%s
                """,
                (status.value, int(decided_by), decided_at, int(attendance_id), expected_status.value),
            )
            return cur.rowcount > 0

    def mark(
        self,
        attendance_id: int,
        *,
        status: AttendanceStatus,
        marked_by: int,
        marked_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_days
                SET status=%s, decided_by=%s, decided_at=%s, is_manual=1
                WHERE attendance_id=%s
                """,
                (status.value, int(marked_by), marked_at, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_days WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start_date: date,
        end_date: date,
        limit: int,
    ) -> Sequence[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_days
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(employee_id), start_date, end_date, int(limit)),
            )
            return [_to_day(r) for r in fetchall(cur)]

    def list_by_status(self, status: AttendanceStatus, *, limit: int) -> Sequence[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_days
                WHERE status=%s
                ORDER BY work_date ASC, clock_in_at ASC
                LIMIT %s
                """,
                (status.value, int(limit)),
            )
            return [_to_day(r) for r in fetchall(cur)]
