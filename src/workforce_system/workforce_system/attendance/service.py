from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Sequence

from ..common.clock import Clock
from ..common.locks import KeyedLock
from ..common.transactions import TransactionManager
from ..common.validators import require_enum
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, NotificationKind, WorkLocation
from ..core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    AlreadyMarked,
    NotClockedIn,
    NotFoundError,
    ValidationError,
)
from ..core.logging import get_logger
from ..notifications.sink import Notification, NotificationSink, publish_quietly
from ..users.repository import UserRepository
from .model import AttendanceDay
from .repository import AttendanceRepository

logger = get_logger(__name__)


class AttendanceService:
    """Use case: employees clock in and out.

    Every self-reported clock-in is provisional: the day stays ``pending``
    until an administrator decides it (see ``ApprovalGate``). A pending day is
    never timed out to ``absent`` automatically. A day an administrator has
    already marked is final and cannot be clocked into.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        clock: Clock,
        transactions: TransactionManager,
        notifications: NotificationSink,
        *,
        locks: Optional[KeyedLock] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._clock = clock
        self._tx = transactions
        self._notifications = notifications
        self._locks = locks or KeyedLock()

    def _require_employee(self, employee_id: int) -> None:
        user = self._users.get_by_id(int(employee_id))
        if not user or not user.is_active:
            raise NotFoundError(f"Employee {employee_id} does not exist", field="employee_id")

    def clock_in(self, employee_id: int, *, location, work_date: Optional[date] = None) -> AttendanceDay:
        location = require_enum(WorkLocation, location, "work_location")
        self._require_employee(employee_id)

        now = self._clock.now()
        work_date = work_date or now.date()
        if work_date != now.date():
            raise ValidationError("Clock-in is only possible for the current date", field="work_date")

        with self._locks.hold(("attendance", int(employee_id))), self._tx.transaction():
            existing = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
            if existing and existing.clock_in_at is not None:
                if existing.is_open:
                    raise AlreadyClockedIn("You have already clocked in today")
                raise AlreadyClockedOut("You have already clocked out today")
            if existing and (existing.is_manual or existing.decided_by is not None):
                raise AlreadyMarked(f"Attendance for {work_date} was already marked {existing.status.value}")

            if existing:
                if not self._attendance.record_clock_in(existing.attendance_id, clock_in_at=now, work_location=location):
                    raise AlreadyClockedIn("You have already clocked in today")
                attendance_id = existing.attendance_id
            else:
                attendance_id = self._attendance.create(
                    employee_id=int(employee_id),
                    work_date=work_date,
                    status=AttendanceStatus.PENDING,
                    clock_in_at=now,
                    work_location=location,
                )
                if attendance_id is None:
                    raise AlreadyClockedIn("You have already clocked in today")

        record = self._attendance.get(attendance_id)
        logger.info("Employee %s clocked in for %s (%s)", employee_id, work_date, location.value)
        publish_quietly(
            self._notifications,
            Notification(
                kind=NotificationKind.ATTENDANCE_CLOCK_IN,
                recipient_id=int(employee_id),
                subject_id=attendance_id,
                message=f"Clocked in at {now:%H:%M}, awaiting confirmation",
                created_at=now,
                actor_id=int(employee_id),
            ),
        )
        return record

    def clock_out(self, employee_id: int, *, work_date: Optional[date] = None) -> AttendanceDay:
        now = self._clock.now()
        work_date = work_date or now.date()

        with self._locks.hold(("attendance", int(employee_id))), self._tx.transaction():
            record = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
            if not record or record.clock_in_at is None:
                raise NotClockedIn("You have not clocked in for this date")
            if record.clock_out_at is not None:
                raise AlreadyClockedOut("You have already clocked out for this date")
            if now < record.clock_in_at:
                raise ValidationError("Clock-out cannot precede clock-in", field="clock_out_at")

            if not self._attendance.record_clock_out(record.attendance_id, clock_out_at=now):
                raise AlreadyClockedOut("You have already clocked out for this date")

        record = self._attendance.get(record.attendance_id)
        logger.info("Employee %s clocked out for %s after %.2f h", employee_id, work_date, record.total_hours)
        publish_quietly(
            self._notifications,
            Notification(
                kind=NotificationKind.ATTENDANCE_CLOCK_OUT,
                recipient_id=int(employee_id),
                subject_id=record.attendance_id,
                message=f"Clocked out at {now:%H:%M} ({record.total_hours:.2f} h)",
                created_at=now,
                actor_id=int(employee_id),
            ),
        )
        return record

    def get_today(self, employee_id: int) -> Optional[AttendanceDay]:
        return self._attendance.get_for_employee_and_date(int(employee_id), self._clock.today())

    def history(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[AttendanceDay]:
        end_date = end_date or self._clock.today()
        start_date = start_date or (end_date - timedelta(days=DEFAULT_HISTORY_LIMIT - 1))
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date", field="end_date")
        return self._attendance.list_for_employee(
            int(employee_id), start_date=start_date, end_date=end_date, limit=int(limit)
        )
