from __future__ import annotations

from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence

from ..attendance.model import AttendanceDay, BulkMarkItem
from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock
from ..common.locks import KeyedLock
from ..common.transactions import TransactionManager
from ..common.validators import require_enum, require_positive_int
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, LeaveCategory, NotificationKind, Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, NotPending, ValidationError
from ..core.logging import get_logger
from ..leaves.ledger import LeaveBalanceLedger
from ..leaves.model import BalanceSnapshot, LeaveRequest
from ..leaves.service import LeaveService
from ..notifications.sink import Notification, NotificationSink, publish_quietly
from ..users.repository import UserRepository

logger = get_logger(__name__)


class ApprovalGate:
    """Administrator decisions over attendance days and leave requests.

    Every operation takes the acting administrator explicitly. Nobody decides
    or marks their own records.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        leaves: LeaveService,
        ledger: LeaveBalanceLedger,
        clock: Clock,
        transactions: TransactionManager,
        notifications: NotificationSink,
        *,
        locks: Optional[KeyedLock] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._leaves = leaves
        self._ledger = ledger
        self._clock = clock
        self._tx = transactions
        self._notifications = notifications
        self._locks = locks or KeyedLock()

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can perform this action")

    @staticmethod
    def _require_outcome(outcome) -> AttendanceStatus:
        status = require_enum(AttendanceStatus, outcome, "outcome")
        if status not in AttendanceStatus.outcomes():
            raise ValidationError("Outcome must be one of present, late, absent", field="outcome")
        return status

    def _require_employee(self, employee_id: int) -> None:
        user = self._users.get_by_id(int(employee_id))
        if not user or not user.is_active:
            raise NotFoundError(f"Employee {employee_id} does not exist", field="employee_id")

    def _get_record(self, attendance_id: int) -> AttendanceDay:
        record = self._attendance.get(int(attendance_id))
        if not record:
            raise NotFoundError(f"Attendance record {attendance_id} does not exist", field="attendance_id")
        return record

    def _notify(
        self,
        kind: NotificationKind,
        *,
        recipient_id: int,
        subject_id: Optional[int],
        message: str,
        actor_id: int,
        data: Optional[dict] = None,
    ) -> None:
        publish_quietly(
            self._notifications,
            Notification(
                kind=kind,
                recipient_id=recipient_id,
                subject_id=subject_id,
                message=message,
                created_at=self._clock.now(),
                actor_id=actor_id,
                data=data or {},
            ),
        )

    # Attendance

    def pending_attendance(self, *, current_role: Role, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[AttendanceDay]:
        self._require_admin(current_role)
        return self._attendance.list_by_status(AttendanceStatus.PENDING, limit=int(limit))

    def decide(self, attendance_id: int, *, outcome, current_role: Role, admin_user_id: int) -> AttendanceDay:
        """Resolve a clocked-in day.

        A day still ``pending`` takes the outcome. A day that was already
        decided keeps a same-outcome call as a no-op and accepts a different
        outcome as a replacement. Anything else (manually marked, never
        clocked in) is ``NotPending``.
        """
        self._require_admin(current_role)
        status = self._require_outcome(outcome)
        record = self._get_record(attendance_id)
        if record.employee_id == int(admin_user_id):
            raise AuthorizationError("You cannot decide your own attendance")

        if record.status == AttendanceStatus.PENDING:
            expected = AttendanceStatus.PENDING
        elif record.was_decided and record.status in AttendanceStatus.outcomes():
            if record.status == status:
                return record
            expected = record.status
        else:
            raise NotPending(f"Attendance record is {record.status.value}, not pending")

        ok = self._attendance.set_decision(
            record.attendance_id,
            expected_status=expected,
            status=status,
            decided_by=int(admin_user_id),
            decided_at=self._clock.now(),
        )
        if not ok:
            raise NotPending("Attendance record changed concurrently; reload and retry")

        record = self._get_record(record.attendance_id)
        logger.info(
            "Attendance %s of employee %s decided %s by %s",
            record.attendance_id,
            record.employee_id,
            status.value,
            admin_user_id,
        )
        self._notify(
            NotificationKind.ATTENDANCE_DECIDED,
            recipient_id=record.employee_id,
            subject_id=record.attendance_id,
            message=f"Attendance for {record.work_date} marked {status.value}",
            actor_id=int(admin_user_id),
            data={"status": status.value},
        )
        return record

    def _mark_one(self, employee_id: int, work_date: date, status: AttendanceStatus, admin_user_id: int) -> AttendanceDay:
        if int(employee_id) == int(admin_user_id):
            raise AuthorizationError("You cannot mark your own attendance")
        self._require_employee(employee_id)

        now = self._clock.now()
        with self._locks.hold(("attendance", int(employee_id))), self._tx.transaction():
            existing = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
            if existing:
                attendance_id = existing.attendance_id
                self._attendance.mark(attendance_id, status=status, marked_by=int(admin_user_id), marked_at=now)
            else:
                attendance_id = self._attendance.create(
                    employee_id=int(employee_id),
                    work_date=work_date,
                    status=status,
                    is_manual=True,
                    decided_by=int(admin_user_id),
                    decided_at=now,
                )
                if attendance_id is None:
                    # created by a clock-in from another process in between
                    existing = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
                    attendance_id = existing.attendance_id
                    self._attendance.mark(attendance_id, status=status, marked_by=int(admin_user_id), marked_at=now)

        record = self._get_record(attendance_id)
        logger.info("Employee %s marked %s for %s by %s", employee_id, status.value, work_date, admin_user_id)
        self._notify(
            NotificationKind.ATTENDANCE_MARKED,
            recipient_id=int(employee_id),
            subject_id=attendance_id,
            message=f"Attendance for {work_date} set to {status.value} by an administrator",
            actor_id=int(admin_user_id),
            data={"status": status.value},
        )
        return record

    def _resolve_date(self, work_date: Optional[date]) -> date:
        today = self._clock.today()
        work_date = work_date or today
        if work_date > today:
            raise ValidationError("Attendance cannot be marked for a future date", field="work_date")
        return work_date

    def manual_mark(
        self,
        employee_id: int,
        *,
        outcome,
        current_role: Role,
        admin_user_id: int,
        work_date: Optional[date] = None,
    ) -> AttendanceDay:
        self._require_admin(current_role)
        status = self._require_outcome(outcome)
        return self._mark_one(int(employee_id), self._resolve_date(work_date), status, int(admin_user_id))

    def bulk_mark(
        self,
        employee_ids: Iterable[int],
        *,
        outcome,
        current_role: Role,
        admin_user_id: int,
        work_date: Optional[date] = None,
    ) -> List[BulkMarkItem]:
        """Mark each employee on its own; one failure never undoes another."""
        self._require_admin(current_role)
        status = self._require_outcome(outcome)
        work_date = self._resolve_date(work_date)

        raw_ids = list(employee_ids or [])
        if not raw_ids:
            raise ValidationError("Select at least one employee", field="employee_ids")

        results: List[BulkMarkItem] = []
        seen = set()
        for raw in raw_ids:
            try:
                employee_id = require_positive_int(raw, "employee_ids")
                if employee_id in seen:
                    continue
                seen.add(employee_id)
                record = self._mark_one(employee_id, work_date, status, int(admin_user_id))
            except DomainError as e:
                logger.warning("Bulk mark skipped employee %r: %s", raw, e)
                results.append(BulkMarkItem(employee_id=raw, error=e.kind, message=str(e)))
            else:
                results.append(BulkMarkItem(employee_id=employee_id, record=record))

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Bulk marked %d employee(s) %s for %s (%d failed)",
            len(results) - failed,
            status.value,
            work_date,
            failed,
        )
        return results

    def delete_record(self, attendance_id: int, *, current_role: Role, admin_user_id: int) -> None:
        self._require_admin(current_role)
        record = self._get_record(attendance_id)
        if not self._attendance.delete(record.attendance_id):
            raise NotFoundError(f"Attendance record {attendance_id} does not exist", field="attendance_id")

        logger.info("Attendance %s of employee %s deleted by %s", record.attendance_id, record.employee_id, admin_user_id)
        self._notify(
            NotificationKind.ATTENDANCE_DELETED,
            recipient_id=record.employee_id,
            subject_id=record.attendance_id,
            message=f"Attendance for {record.work_date} was removed by an administrator",
            actor_id=int(admin_user_id),
        )

    # Leave

    def pending_leaves(self, *, current_role: Role, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[LeaveRequest]:
        self._require_admin(current_role)
        return self._leaves.list_pending(limit=limit)

    def approve_leave(self, request_id: int, *, current_role: Role, admin_user_id: int) -> LeaveRequest:
        self._require_admin(current_role)
        return self._leaves.approve(request_id, approver_id=int(admin_user_id))

    def reject_leave(
        self,
        request_id: int,
        *,
        current_role: Role,
        admin_user_id: int,
        rejection_reason: Optional[str],
    ) -> LeaveRequest:
        self._require_admin(current_role)
        return self._leaves.reject(request_id, approver_id=int(admin_user_id), rejection_reason=rejection_reason)

    def employee_balance(
        self,
        employee_id: int,
        *,
        current_role: Role,
        period: Optional[int] = None,
    ) -> BalanceSnapshot:
        self._require_admin(current_role)
        self._require_employee(employee_id)
        return self._ledger.query(int(employee_id), period=period)

    def reset_balance(
        self,
        employee_id: int,
        *,
        current_role: Role,
        admin_user_id: int,
        period: Optional[int] = None,
        allocations: Optional[Mapping[str, object]] = None,
    ) -> BalanceSnapshot:
        self._require_admin(current_role)
        self._require_employee(employee_id)
        period = require_positive_int(period, "period") if period is not None else self._clock.today().year

        parsed = {}
        for key, value in (allocations or {}).items():
            category = require_enum(LeaveCategory, key, "allocations")
            try:
                parsed[category] = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Allocation for {category.value} must be a whole number", field=category.value)

        with self._locks.hold(("leave", int(employee_id))), self._tx.transaction():
            snapshot = self._ledger.reset_period(int(employee_id), period, allocations=parsed)

        self._notify(
            NotificationKind.BALANCE_RESET,
            recipient_id=int(employee_id),
            subject_id=None,
            message=f"Leave balances for {period} were allocated",
            actor_id=int(admin_user_id),
            data={"period": period},
        )
        return snapshot
