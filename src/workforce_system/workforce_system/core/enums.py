from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Resolved status of an attendance day as stored in the database."""

    UNMARKED = "unmarked"
    PENDING = "pending"
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"

    @classmethod
    def outcomes(cls) -> frozenset["AttendanceStatus"]:
        """Statuses an administrator may resolve a day to."""
        return frozenset({cls.PRESENT, cls.LATE, cls.ABSENT})


class WorkLocation(str, Enum):
    OFFICE = "office"
    HOME = "home"


class LeaveCategory(str, Enum):
    SICK = "sick"
    CASUAL = "casual"
    VACATION = "vacation"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    UNPAID = "unpaid"
    COMP_OFF = "comp_off"

    @property
    def allows_negative_balance(self) -> bool:
        return self is LeaveCategory.UNPAID


class LeaveStatus(str, Enum):
    """Approval flow of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class OTPState(str, Enum):
    AWAITING_INPUT = "awaiting-input"
    VERIFYING = "verifying"
    EXPIRED = "expired"
    VERIFIED = "verified"
    FAILED = "failed"


class NotificationKind(str, Enum):
    ATTENDANCE_CLOCK_IN = "attendance.clock_in"
    ATTENDANCE_CLOCK_OUT = "attendance.clock_out"
    ATTENDANCE_DECIDED = "attendance.decided"
    ATTENDANCE_MARKED = "attendance.marked"
    ATTENDANCE_DELETED = "attendance.deleted"
    LEAVE_APPLIED = "leave.applied"
    LEAVE_APPROVED = "leave.approved"
    LEAVE_REJECTED = "leave.rejected"
    LEAVE_CANCELLED = "leave.cancelled"
    BALANCE_RESET = "leave.balance_reset"
