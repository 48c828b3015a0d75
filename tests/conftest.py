from __future__ import annotations

import pytest

from workforce_system.approvals.service import ApprovalGate
from workforce_system.attendance.service import AttendanceService
from workforce_system.common.locks import KeyedLock
from workforce_system.core.enums import Role
from workforce_system.leaves.ledger import LeaveBalanceLedger
from workforce_system.leaves.service import LeaveService
from workforce_system.otp.service import OTPService
from workforce_system.users.service import AuthService, UserService

from tests.fakes import (
    ADMIN_ID,
    EMPLOYEE_ID,
    OTHER_EMPLOYEE_ID,
    FakeClock,
    InMemoryAttendance,
    InMemoryBalances,
    InMemoryChallenges,
    InMemoryLeaveRequests,
    InMemoryTransactions,
    InMemoryUsers,
    RecordingCodeSender,
    RecordingSink,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def users():
    repo = InMemoryUsers()
    repo.add(ADMIN_ID, "Admin", Role.ADMIN, password="admin-pass")
    repo.add(EMPLOYEE_ID, "Employee One", password="employee-pass")
    repo.add(OTHER_EMPLOYEE_ID, "Employee Two")
    return repo


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def leave_repo():
    return InMemoryLeaveRequests()


@pytest.fixture
def balance_repo():
    return InMemoryBalances()


@pytest.fixture
def challenge_repo():
    return InMemoryChallenges()


@pytest.fixture
def transactions(users, attendance_repo, leave_repo, balance_repo):
    return InMemoryTransactions(users, attendance_repo, leave_repo, balance_repo)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def code_sender():
    return RecordingCodeSender()


@pytest.fixture
def locks():
    return KeyedLock()


@pytest.fixture
def attendance_service(attendance_repo, users, clock, transactions, sink, locks):
    return AttendanceService(attendance_repo, users, clock, transactions, sink, locks=locks)


@pytest.fixture
def ledger(balance_repo, clock):
    return LeaveBalanceLedger(balance_repo, clock)


@pytest.fixture
def leave_service(leave_repo, ledger, users, clock, transactions, sink, locks):
    return LeaveService(leave_repo, ledger, users, clock, transactions, sink, locks=locks)


@pytest.fixture
def gate(attendance_repo, users, leave_service, ledger, clock, transactions, sink, locks):
    return ApprovalGate(attendance_repo, users, leave_service, ledger, clock, transactions, sink, locks=locks)


@pytest.fixture
def otp_service(challenge_repo, code_sender, clock):
    return OTPService(challenge_repo, code_sender, clock)


@pytest.fixture
def auth_service(users, otp_service):
    return AuthService(users, otp_service)


@pytest.fixture
def user_service(users):
    return UserService(users)
