from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import LeaveCategory, LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = (
    "request_id, employee_id, category, start_date, end_date, number_of_days, reason, "
    "status, created_at, approver_id, decided_at, rejection_reason, cancelled_at"
)


def _to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        category=LeaveCategory(r["category"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        number_of_days=int(r["number_of_days"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        approver_id=r.get("approver_id"),
        decided_at=r.get("decided_at"),
        rejection_reason=r.get("rejection_reason"),
        cancelled_at=r.get("cancelled_at"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        category: LeaveCategory,
        start_date: date,
        end_date: date,
        number_of_days: int,
        reason: str,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, category, start_date, end_date, number_of_days, reason, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    category.value,
                    start_date,
                    end_date,
                    int(number_of_days),
                    reason,
                    LeaveStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def transition(
        self,
        request_id: int,
        *,
        expected_status: LeaveStatus,
        status: LeaveStatus,
        approver_id: Optional[int] = None,
        decided_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
        cancelled_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s,
                    approver_id=%s,
                    decided_at=%s,
                    rejection_reason=%s,
                    cancelled_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    approver_id,
                    decided_at,
                    rejection_reason,
                    cancelled_at,
                    int(request_id),
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def find_overlapping(
        self,
        employee_id: int,
        *,
        start_date: date,
        end_date: date,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        status_values = [s.value for s in statuses]
        if not status_values:
            return []
        placeholders = ",".join(["%s"] * len(status_values))
        with db_cursor(self._conn_factory) as (_, cur):
            # FOR UPDATE keeps two concurrent applications from both passing the check.
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE employee_id=%s
                  AND start_date <= %s AND end_date >= %s
                  AND status IN ({placeholders})
                FOR UPDATE
                """,
                tuple([int(employee_id), end_date, start_date] + status_values),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_by_status(self, status: LeaveStatus, *, limit: int = 200) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE status=%s
                ORDER BY created_at ASC
                LIMIT %s
                """,
                (status.value, int(limit)),
            )
            return [_to_request(r) for r in fetchall(cur)]
