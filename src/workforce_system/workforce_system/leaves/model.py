from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import format_dt
from ..core.enums import LeaveCategory, LeaveStatus

# Allowed edges of the leave request state machine.
LEAVE_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.CANCELLED}),
    LeaveStatus.REJECTED: frozenset(),
    LeaveStatus.CANCELLED: frozenset(),
}

# Statuses whose days are held by the ledger.
RESERVING_STATUSES = frozenset({LeaveStatus.PENDING, LeaveStatus.APPROVED})


def can_transition(current: LeaveStatus, target: LeaveStatus) -> bool:
    return target in LEAVE_TRANSITIONS[current]


@dataclass(frozen=True)
class LeaveCategoryBalance:
    employee_id: int
    category: LeaveCategory
    period: int
    total: int
    used: int

    @property
    def remaining(self) -> int:
        return self.total - self.used

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "period": self.period,
            "total": self.total,
            "used": self.used,
            "remaining": self.remaining,
        }


@dataclass(frozen=True)
class BalanceSnapshot:
    """Read-only view of every category for one employee and period."""

    employee_id: int
    period: int
    balances: dict[LeaveCategory, LeaveCategoryBalance]

    def __getitem__(self, category: LeaveCategory) -> LeaveCategoryBalance:
        return self.balances[category]

    def remaining(self, category: LeaveCategory) -> int:
        return self.balances[category].remaining

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "period": self.period,
            "balances": {c.value: b.to_dict() for c, b in self.balances.items()},
        }


@dataclass(frozen=True)
class LeaveRequest:
    """Domain entity: a dated leave application against the ledger."""

    request_id: int
    employee_id: int
    category: LeaveCategory
    start_date: date
    end_date: date
    number_of_days: int
    reason: str
    status: LeaveStatus
    created_at: datetime
    approver_id: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    @property
    def period(self) -> int:
        """Balance period charged: the year the leave starts in."""
        return self.start_date.year

    @property
    def holds_reservation(self) -> bool:
        return self.status in RESERVING_STATUSES

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return self.start_date <= end_date and start_date <= self.end_date

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "employee_id": self.employee_id,
            "category": self.category.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "number_of_days": self.number_of_days,
            "reason": self.reason,
            "status": self.status.value,
            "created_at": format_dt(self.created_at),
            "approver_id": self.approver_id,
            "decided_at": format_dt(self.decided_at),
            "rejection_reason": self.rejection_reason,
            "cancelled_at": format_dt(self.cancelled_at),
        }
