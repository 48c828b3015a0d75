from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Tuple

from .approvals.service import ApprovalGate
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.clock import Clock, SystemClock
from .common.datetime_utils import parse_iso_date
from .common.locks import KeyedLock
from .core.constants import OTP_CODE_LENGTH, OTP_VALIDITY_SECONDS
from .core.enums import LeaveCategory
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .leaves.ledger import LeaveBalanceLedger
from .leaves.mysql_balance_repository import MySQLLeaveBalanceRepository
from .leaves.mysql_leave_repository import MySQLLeaveRequestRepository
from .leaves.service import LeaveService
from .leaves.working_days import WorkingDayPolicy
from .notifications.sink import LoggingNotificationSink, NotificationSink
from .otp.mysql_otp_repository import MySQLOTPChallengeRepository
from .otp.sender import CodeSender, LoggingCodeSender
from .otp.service import OTPService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    clock: Clock

    auth_service: AuthService
    user_service: UserService
    otp_service: OTPService
    attendance_service: AttendanceService
    leave_service: LeaveService
    approval_gate: ApprovalGate


def parse_holidays(value: str) -> Tuple[date, ...]:
    items = [v.strip() for v in (value or "").split(",") if v.strip()]
    return tuple(parse_iso_date(v, "PUBLIC_HOLIDAYS") for v in items)


def parse_allocations(value: str) -> Dict[str, int]:
    """``"casual=12,sick=10"`` -> ``{"casual": 12, "sick": 10}``."""
    result: Dict[str, int] = {}
    for item in (value or "").split(","):
        if not item.strip():
            continue
        key, _, days = item.partition("=")
        key = key.strip().lower()
        try:
            LeaveCategory(key)
            result[key] = int(days)
        except ValueError:
            raise ValidationError(f"Invalid LEAVE_ALLOCATIONS entry: {item.strip()}", field="LEAVE_ALLOCATIONS")
    return result


def build_container(
    *,
    db_config: dict,
    settings=None,
    clock: Optional[Clock] = None,
    notifications: Optional[NotificationSink] = None,
    code_sender: Optional[CodeSender] = None,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    clock = clock or SystemClock()
    notifications = notifications or LoggingNotificationSink()
    locks = KeyedLock()

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leave_repo = MySQLLeaveRequestRepository(conn)
    balance_repo = MySQLLeaveBalanceRepository(conn)
    otp_repo = MySQLOTPChallengeRepository(conn)

    otp_service = OTPService(
        otp_repo,
        code_sender or LoggingCodeSender(),
        clock,
        validity_seconds=int(getattr(settings, "OTP_VALIDITY_SECONDS", OTP_VALIDITY_SECONDS)),
        code_length=int(getattr(settings, "OTP_CODE_LENGTH", OTP_CODE_LENGTH)),
    )
    ledger = LeaveBalanceLedger(
        balance_repo,
        clock,
        allocations=parse_allocations(getattr(settings, "LEAVE_ALLOCATIONS", "")),
    )
    working_days = WorkingDayPolicy(parse_holidays(getattr(settings, "PUBLIC_HOLIDAYS", "")))

    attendance_service = AttendanceService(attendance_repo, users_repo, clock, conn, notifications, locks=locks)
    leave_service = LeaveService(
        leave_repo,
        ledger,
        users_repo,
        clock,
        conn,
        notifications,
        working_days=working_days,
        locks=locks,
    )
    approval_gate = ApprovalGate(
        attendance_repo,
        users_repo,
        leave_service,
        ledger,
        clock,
        conn,
        notifications,
        locks=locks,
    )

    return Container(
        clock=clock,
        auth_service=AuthService(users_repo, otp_service),
        user_service=UserService(users_repo),
        otp_service=otp_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        approval_gate=approval_gate,
    )
