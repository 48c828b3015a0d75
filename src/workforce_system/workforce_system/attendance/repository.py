from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, WorkLocation
from .model import AttendanceDay


class AttendanceRepository(Protocol):
    def get(self, attendance_id: int) -> Optional[AttendanceDay]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        raise NotImplementedError

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
        """Insert a day; ``None`` when (employee, date) already exists."""

        raise NotImplementedError

    def record_clock_in(self, attendance_id: int, *, clock_in_at: datetime, work_location: WorkLocation) -> bool:
        """Stamp clock-in on an unresolved day (no stamp, no decision, not manually marked)."""

        raise NotImplementedError

    def record_clock_out(self, attendance_id: int, *, clock_out_at: datetime) -> bool:
        """Stamp clock-out only while the day is open."""

        raise NotImplementedError

    def set_decision(
        self,
        attendance_id: int,
        *,
        expected_status: AttendanceStatus,
        status: AttendanceStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> bool:
        """Compare-and-set the status of a day resolved through approval."""

        raise NotImplementedError

    def mark(
        self,
        attendance_id: int,
        *,
        status: AttendanceStatus,
        marked_by: int,
        marked_at: datetime,
    ) -> bool:
        """Administrator override, valid from any status."""

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start_date: date,
        end_date: date,
        limit: int,
    ) -> Sequence[AttendanceDay]:
        raise NotImplementedError

    def list_by_status(self, status: AttendanceStatus, *, limit: int) -> Sequence[AttendanceDay]:
        raise NotImplementedError
