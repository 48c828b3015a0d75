from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import format_dt, hours_between
from ..core.enums import AttendanceStatus, WorkLocation


@dataclass(frozen=True)
class AttendanceDay:
    """Domain entity: one employee's attendance for one calendar date."""

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus
    work_location: Optional[WorkLocation] = None
    clock_in_at: Optional[datetime] = None
    clock_out_at: Optional[datetime] = None
    is_manual: bool = False
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.clock_in_at is not None and self.clock_out_at is None

    @property
    def total_hours(self) -> float:
        """Derived from the two stamps; 0 until the day is closed."""
        if self.clock_in_at is None or self.clock_out_at is None:
            return 0.0
        return max(0.0, hours_between(self.clock_in_at, self.clock_out_at))

    @property
    def was_decided(self) -> bool:
        """Resolved through the approval path (not by manual marking)."""
        return self.decided_by is not None and not self.is_manual

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "employee_id": self.employee_id,
            "work_date": self.work_date.isoformat(),
            "status": self.status.value,
            "work_location": self.work_location.value if self.work_location else None,
            "clock_in_at": format_dt(self.clock_in_at),
            "clock_out_at": format_dt(self.clock_out_at),
            "total_hours": self.total_hours,
            "is_manual": self.is_manual,
            "decided_by": self.decided_by,
            "decided_at": format_dt(self.decided_at),
            "note": self.note,
        }


@dataclass(frozen=True)
class BulkMarkItem:
    """Outcome of marking one employee inside a bulk request."""

    employee_id: Any  # as submitted when the id itself was invalid
    record: Optional[AttendanceDay] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        if self.ok:
            return {"employee_id": self.employee_id, "ok": True, "record": self.record.to_dict() if self.record else None}
        return {"employee_id": self.employee_id, "ok": False, "error": self.error, "message": self.message}
