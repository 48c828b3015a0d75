from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LeaveCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveCategoryBalance
from .repository import LeaveBalanceRepository


def _to_balance(r: dict) -> LeaveCategoryBalance:
    return LeaveCategoryBalance(
        employee_id=int(r["employee_id"]),
        category=LeaveCategory(r["category"]),
        period=int(r["period"]),
        total=int(r["total"]),
        used=int(r["used"]),
    )


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int, category: LeaveCategory, period: int) -> Optional[LeaveCategoryBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, category, period, total, used
                FROM leave_balances
                WHERE employee_id=%s AND category=%s AND period=%s
                """,
                (int(employee_id), category.value, int(period)),
            )
            r = fetchone(cur)
            return _to_balance(r) if r else None

    def list_for_employee(self, employee_id: int, period: int) -> Sequence[LeaveCategoryBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, category, period, total, used
                FROM leave_balances
                WHERE employee_id=%s AND period=%s
                """,
                (int(employee_id), int(period)),
            )
            return [_to_balance(r) for r in fetchall(cur)]

    def ensure(self, employee_id: int, category: LeaveCategory, period: int, *, total: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO leave_balances(employee_id, category, period, total, used)
                VALUES(%s,%s,%s,%s,0)
                """,
                (int(employee_id), category.value, int(period), int(total)),
            )

    def try_reserve(
        self,
        employee_id: int,
        category: LeaveCategory,
        period: int,
        *,
        days: int,
        allow_negative: bool,
    ) -> bool:
        # Check and decrement in one statement so concurrent reservations cannot overdraw.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET used = used + %s
                WHERE employee_id=%s AND category=%s AND period=%s
                  AND (%s = 1 OR total - used >= %s)
                """,
                (int(days), int(employee_id), category.value, int(period), 1 if allow_negative else 0, int(days)),
            )
            return cur.rowcount > 0

    def release(self, employee_id: int, category: LeaveCategory, period: int, *, days: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET used = used - %s
                WHERE employee_id=%s AND category=%s AND period=%s AND used >= %s
                """,
                (int(days), int(employee_id), category.value, int(period), int(days)),
            )
            return cur.rowcount > 0

    def set_total(self, employee_id: int, category: LeaveCategory, period: int, *, total: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_balances(employee_id, category, period, total, used)
                VALUES(%s,%s,%s,%s,0)
                ON DUPLICATE KEY UPDATE total=VALUES(total)
                """,
                (int(employee_id), category.value, int(period), int(total)),
            )
