from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.clock import Clock
from ..common.locks import KeyedLock
from ..common.transactions import TransactionManager
from ..common.validators import require_enum, require_max_length, require_min_length, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, LEAVE_REASON_MAX_LENGTH, LEAVE_REASON_MIN_LENGTH
from ..core.enums import LeaveCategory, LeaveStatus, NotificationKind, Role
from ..core.exceptions import (
    AuthorizationError,
    InvalidTransition,
    NotFoundError,
    NotPending,
    OverlappingLeave,
    ValidationError,
)
from ..core.logging import get_logger
from ..notifications.sink import Notification, NotificationSink, publish_quietly
from ..users.repository import UserRepository
from .ledger import LeaveBalanceLedger
from .model import RESERVING_STATUSES, BalanceSnapshot, LeaveRequest, can_transition
from .repository import LeaveRequestRepository
from .working_days import WorkingDayPolicy

logger = get_logger(__name__)


class LeaveService:
    """Use case: the leave request state machine.

    pending -> approved | rejected, and pending | approved -> cancelled.

    Days are reserved on the ledger when the request is created, so a pending
    request already lowers ``remaining``. Approval does not touch the ledger;
    rejection and cancellation (from either state) release the reservation.
    Each ledger call shares one transaction with its state change.
    """

    def __init__(
        self,
        requests: LeaveRequestRepository,
        ledger: LeaveBalanceLedger,
        users: UserRepository,
        clock: Clock,
        transactions: TransactionManager,
        notifications: NotificationSink,
        *,
        working_days: Optional[WorkingDayPolicy] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self._requests = requests
        self._ledger = ledger
        self._users = users
        self._clock = clock
        self._tx = transactions
        self._notifications = notifications
        self._working_days = working_days or WorkingDayPolicy()
        self._locks = locks or KeyedLock()

    def _lock(self, employee_id: int):
        return self._locks.hold(("leave", int(employee_id)))

    def _notify(self, kind: NotificationKind, req: LeaveRequest, message: str, *, actor_id: int) -> None:
        publish_quietly(
            self._notifications,
            Notification(
                kind=kind,
                recipient_id=req.employee_id,
                subject_id=req.request_id,
                message=message,
                created_at=self._clock.now(),
                actor_id=actor_id,
                data={"category": req.category.value, "number_of_days": req.number_of_days},
            ),
        )

    def get(self, request_id: int) -> LeaveRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError(f"Leave request {request_id} does not exist", field="request_id")
        return req

    def view(self, request_id: int, *, viewer_id: int, viewer_role: Role) -> LeaveRequest:
        """Owner or administrator only."""
        req = self.get(request_id)
        if req.employee_id != int(viewer_id) and viewer_role != Role.ADMIN:
            raise AuthorizationError("You can only view your own leave requests")
        return req

    def count_days(self, start_date: date, end_date: date) -> int:
        return self._working_days.count_working_days(start_date, end_date)

    def apply(
        self,
        employee_id: int,
        *,
        category,
        start_date: Optional[date],
        end_date: Optional[date],
        reason: Optional[str],
    ) -> LeaveRequest:
        category = require_enum(LeaveCategory, category, "category")
        if start_date is None:
            raise ValidationError("Start date is required", field="start_date")
        if end_date is None:
            raise ValidationError("End date is required", field="end_date")
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date", field="end_date")
        if start_date < self._clock.today():
            raise ValidationError("Start date cannot be in the past", field="start_date")

        reason = require_non_empty(reason, "reason")
        require_min_length(reason, "reason", LEAVE_REASON_MIN_LENGTH)
        require_max_length(reason, "reason", LEAVE_REASON_MAX_LENGTH)

        number_of_days = self.count_days(start_date, end_date)
        if number_of_days <= 0:
            raise ValidationError("The selected range has no working days", field="end_date")

        user = self._users.get_by_id(int(employee_id))
        if not user or not user.is_active:
            raise NotFoundError(f"Employee {employee_id} does not exist", field="employee_id")

        with self._lock(employee_id), self._tx.transaction():
            clashes = self._requests.find_overlapping(
                int(employee_id),
                start_date=start_date,
                end_date=end_date,
                statuses=RESERVING_STATUSES,
            )
            if clashes:
                raise OverlappingLeave(
                    f"Overlaps leave request {clashes[0].request_id} "
                    f"({clashes[0].start_date} to {clashes[0].end_date})"
                )

            self._ledger.reserve(int(employee_id), category, number_of_days, period=start_date.year)
            request_id = self._requests.create(
                employee_id=int(employee_id),
                category=category,
                start_date=start_date,
                end_date=end_date,
                number_of_days=number_of_days,
                reason=reason,
                created_at=self._clock.now(),
            )

        req = self.get(request_id)
        logger.info(
            "Employee %s applied for %d %s day(s) (request %s)",
            employee_id,
            number_of_days,
            category.value,
            request_id,
        )
        self._notify(
            NotificationKind.LEAVE_APPLIED,
            req,
            f"Leave request for {number_of_days} day(s) submitted",
            actor_id=int(employee_id),
        )
        return req

    def approve(self, request_id: int, *, approver_id: int) -> LeaveRequest:
        req = self.get(request_id)
        if req.employee_id == int(approver_id):
            raise AuthorizationError("You cannot approve your own leave request")
        if req.status != LeaveStatus.PENDING:
            raise NotPending(f"Leave request is already {req.status.value}")

        ok = self._requests.transition(
            req.request_id,
            expected_status=LeaveStatus.PENDING,
            status=LeaveStatus.APPROVED,
            approver_id=int(approver_id),
            decided_at=self._clock.now(),
        )
        if not ok:
            raise NotPending("Leave request was decided concurrently")

        req = self.get(req.request_id)
        logger.info("Leave request %s approved by %s", req.request_id, approver_id)
        self._notify(NotificationKind.LEAVE_APPROVED, req, "Your leave request was approved", actor_id=int(approver_id))
        return req

    def reject(self, request_id: int, *, approver_id: int, rejection_reason: Optional[str]) -> LeaveRequest:
        rejection_reason = require_non_empty(rejection_reason, "rejection_reason")
        req = self.get(request_id)
        if req.employee_id == int(approver_id):
            raise AuthorizationError("You cannot reject your own leave request")
        if req.status != LeaveStatus.PENDING:
            raise NotPending(f"Leave request is already {req.status.value}")

        with self._lock(req.employee_id), self._tx.transaction():
            ok = self._requests.transition(
                req.request_id,
                expected_status=LeaveStatus.PENDING,
                status=LeaveStatus.REJECTED,
                approver_id=int(approver_id),
                decided_at=self._clock.now(),
                rejection_reason=rejection_reason,
            )
            if not ok:
                raise NotPending("Leave request was decided concurrently")
            self._ledger.release(req.employee_id, req.category, req.number_of_days, period=req.period)

        req = self.get(req.request_id)
        logger.info("Leave request %s rejected by %s", req.request_id, approver_id)
        self._notify(
            NotificationKind.LEAVE_REJECTED,
            req,
            f"Your leave request was rejected: {rejection_reason}",
            actor_id=int(approver_id),
        )
        return req

    def cancel(self, request_id: int, *, acting_employee_id: int) -> LeaveRequest:
        req = self.get(request_id)
        if req.employee_id != int(acting_employee_id):
            raise AuthorizationError("You can only cancel your own leave requests")
        if not can_transition(req.status, LeaveStatus.CANCELLED):
            raise InvalidTransition(f"A {req.status.value} leave request cannot be cancelled")

        with self._lock(req.employee_id), self._tx.transaction():
            ok = self._requests.transition(
                req.request_id,
                expected_status=req.status,
                status=LeaveStatus.CANCELLED,
                cancelled_at=self._clock.now(),
            )
            if not ok:
                raise InvalidTransition("Leave request changed concurrently; reload and retry")
            self._ledger.release(req.employee_id, req.category, req.number_of_days, period=req.period)

        previous = req.status
        req = self.get(req.request_id)
        logger.info("Leave request %s cancelled from %s", req.request_id, previous.value)
        self._notify(
            NotificationKind.LEAVE_CANCELLED,
            req,
            f"Leave request cancelled; {req.number_of_days} day(s) returned",
            actor_id=int(acting_employee_id),
        )
        return req

    def list_mine(
        self,
        employee_id: int,
        *,
        status=None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[LeaveRequest]:
        status = require_enum(LeaveStatus, status, "status") if status else None
        return self._requests.list_for_employee(int(employee_id), status=status, limit=int(limit))

    def list_pending(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[LeaveRequest]:
        return self._requests.list_by_status(LeaveStatus.PENDING, limit=int(limit))

    def balance(self, employee_id: int, *, period: Optional[int] = None) -> BalanceSnapshot:
        return self._ledger.query(int(employee_id), period=period)
