from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LeaveCategory, LeaveStatus
from .model import LeaveCategoryBalance, LeaveRequest


class LeaveRequestRepository(Protocol):
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
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

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
        """Compare-and-set the status; False when it is no longer ``expected_status``."""

        raise NotImplementedError

    def find_overlapping(
        self,
        employee_id: int,
        *,
        start_date: date,
        end_date: date,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_by_status(self, status: LeaveStatus, *, limit: int = 200) -> Sequence[LeaveRequest]:
        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    """Storage of the ledger; only ``LeaveBalanceLedger`` talks to it."""

    def get(self, employee_id: int, category: LeaveCategory, period: int) -> Optional[LeaveCategoryBalance]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, period: int) -> Sequence[LeaveCategoryBalance]:
        raise NotImplementedError

    def ensure(self, employee_id: int, category: LeaveCategory, period: int, *, total: int) -> None:
        """Create the row with ``total`` allocated and nothing used, unless it exists."""

        raise NotImplementedError

    def try_reserve(
        self,
        employee_id: int,
        category: LeaveCategory,
        period: int,
        *,
        days: int,
        allow_negative: bool,
    ) -> bool:
        """Atomically add ``days`` to used, only if remaining covers them (unless allowed)."""

        raise NotImplementedError

    def release(self, employee_id: int, category: LeaveCategory, period: int, *, days: int) -> bool:
        """Atomically give back ``days``; False when fewer than ``days`` are used."""

        raise NotImplementedError

    def set_total(self, employee_id: int, category: LeaveCategory, period: int, *, total: int) -> None:
        raise NotImplementedError
