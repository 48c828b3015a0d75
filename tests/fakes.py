from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from werkzeug.security import generate_password_hash

from workforce_system.attendance.model import AttendanceDay
from workforce_system.core.enums import AttendanceStatus, LeaveCategory, LeaveStatus, OTPState, Role
from workforce_system.leaves.model import LeaveCategoryBalance, LeaveRequest
from workforce_system.otp.model import OTPChallenge
from workforce_system.users.model import User

ADMIN_ID = 1
EMPLOYEE_ID = 2
OTHER_EMPLOYEE_ID = 3
MISSING_EMPLOYEE_ID = 99

# Monday
START = datetime(2026, 3, 2, 9, 0, 0)


class FakeClock:
    def __init__(self, now: datetime = START):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> None:
        self._now = self._now + timedelta(**kwargs)


class _Store:
    def __init__(self):
        self._rows: dict = {}
        self._next_id = 0

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def snapshot(self):
        return copy.copy(self._rows), self._next_id

    def restore(self, state) -> None:
        self._rows, self._next_id = state


class InMemoryUsers(_Store):
    def add(self, user_id: int, full_name: str, role: Role = Role.EMPLOYEE, *, password: str = "secret-pass") -> User:
        user = User(
            user_id=user_id,
            full_name=full_name,
            email=f"user{user_id}@example.com",
            password_hash=generate_password_hash(password),
            role=role,
        )
        self._rows[user_id] = user
        self._next_id = max(self._next_id, user_id)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._rows.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._rows.values() if u.email == email), None)

    def create_user(self, *, full_name: str, email: str, password_hash: str, role: Role) -> int:
        user_id = self._new_id()
        self._rows[user_id] = User(user_id, full_name, email, password_hash, role)
        return user_id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        if user_id not in self._rows:
            return False
        self._rows[user_id] = replace(self._rows[user_id], is_active=is_active)
        return True

    def list_all(self):
        return sorted(self._rows.values(), key=lambda u: u.full_name)


class InMemoryAttendance(_Store):
    def get(self, attendance_id: int) -> Optional[AttendanceDay]:
        return self._rows.get(attendance_id)

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        return next(
            (r for r in self._rows.values() if r.employee_id == employee_id and r.work_date == work_date),
            None,
        )

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        clock_in_at=None,
        work_location=None,
        is_manual: bool = False,
        decided_by=None,
        decided_at=None,
    ) -> Optional[int]:
        if self.get_for_employee_and_date(employee_id, work_date):
            return None
        attendance_id = self._new_id()
        self._rows[attendance_id] = AttendanceDay(
            attendance_id=attendance_id,
            employee_id=employee_id,
            work_date=work_date,
            status=status,
            work_location=work_location,
            clock_in_at=clock_in_at,
            is_manual=is_manual,
            decided_by=decided_by,
            decided_at=decided_at,
        )
        return attendance_id

    def record_clock_in(self, attendance_id: int, *, clock_in_at: datetime, work_location) -> bool:
        r = self._rows.get(attendance_id)
        if not r or r.clock_in_at is not None or r.is_manual or r.decided_by is not None:
            return False
        self._rows[attendance_id] = replace(
            r, clock_in_at=clock_in_at, work_location=work_location, status=AttendanceStatus.PENDING
        )
        return True

    def record_clock_out(self, attendance_id: int, *, clock_out_at: datetime) -> bool:
        r = self._rows.get(attendance_id)
        if not r or r.clock_in_at is None or r.clock_out_at is not None or clock_out_at < r.clock_in_at:
            return False
        self._rows[attendance_id] = replace(r, clock_out_at=clock_out_at)
        return True

    def set_decision(self, attendance_id: int, *, expected_status, status, decided_by: int, decided_at) -> bool:
        r = self._rows.get(attendance_id)
        if not r or r.status != expected_status:
            return False
        self._rows[attendance_id] = replace(
            r, status=status, decided_by=decided_by, decided_at=decided_at, is_manual=False
        )
        return True

    def mark(self, attendance_id: int, *, status, marked_by: int, marked_at) -> bool:
        r = self._rows.get(attendance_id)
        if not r:
            return False
        self._rows[attendance_id] = replace(r, status=status, decided_by=marked_by, decided_at=marked_at, is_manual=True)
        return True

    def delete(self, attendance_id: int) -> bool:
        return self._rows.pop(attendance_id, None) is not None

    def list_for_employee(self, employee_id: int, *, start_date: date, end_date: date, limit: int):
        items = [
            r for r in self._rows.values() if r.employee_id == employee_id and start_date <= r.work_date <= end_date
        ]
        return sorted(items, key=lambda r: r.work_date, reverse=True)[:limit]

    def list_by_status(self, status, *, limit: int):
        items = [r for r in self._rows.values() if r.status == status]
        return sorted(items, key=lambda r: r.work_date)[:limit]


class InMemoryLeaveRequests(_Store):
    def create(self, *, employee_id, category, start_date, end_date, number_of_days, reason, created_at) -> int:
        request_id = self._new_id()
        self._rows[request_id] = LeaveRequest(
            request_id=request_id,
            employee_id=employee_id,
            category=category,
            start_date=start_date,
            end_date=end_date,
            number_of_days=number_of_days,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=created_at,
        )
        return request_id

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        return self._rows.get(request_id)

    def transition(
        self,
        request_id: int,
        *,
        expected_status,
        status,
        approver_id=None,
        decided_at=None,
        rejection_reason=None,
        cancelled_at=None,
    ) -> bool:
        r = self._rows.get(request_id)
        if not r or r.status != expected_status:
            return False
        changes = {"status": status}
        if approver_id is not None:
            changes.update(approver_id=approver_id, decided_at=decided_at)
        if rejection_reason is not None:
            changes["rejection_reason"] = rejection_reason
        if cancelled_at is not None:
            changes["cancelled_at"] = cancelled_at
        self._rows[request_id] = replace(r, **changes)
        return True

    def find_overlapping(self, employee_id: int, *, start_date, end_date, statuses):
        return [
            r
            for r in self._rows.values()
            if r.employee_id == employee_id and r.status in statuses and r.overlaps(start_date, end_date)
        ]

    def list_for_employee(self, employee_id: int, *, status=None, limit: int = 200):
        items = [r for r in self._rows.values() if r.employee_id == employee_id and (status is None or r.status == status)]
        return sorted(items, key=lambda r: r.request_id, reverse=True)[:limit]

    def list_by_status(self, status, *, limit: int = 200):
        return [r for r in self._rows.values() if r.status == status][:limit]


class InMemoryBalances(_Store):
    def get(self, employee_id: int, category: LeaveCategory, period: int) -> Optional[LeaveCategoryBalance]:
        return self._rows.get((employee_id, category, period))

    def list_for_employee(self, employee_id: int, period: int):
        return [b for (e, _, p), b in self._rows.items() if e == employee_id and p == period]

    def ensure(self, employee_id: int, category: LeaveCategory, period: int, *, total: int) -> None:
        self._rows.setdefault(
            (employee_id, category, period),
            LeaveCategoryBalance(employee_id=employee_id, category=category, period=period, total=total, used=0),
        )

    def try_reserve(self, employee_id, category, period, *, days: int, allow_negative: bool) -> bool:
        b = self._rows.get((employee_id, category, period))
        if not b or (not allow_negative and b.remaining < days):
            return False
        self._rows[(employee_id, category, period)] = replace(b, used=b.used + days)
        return True

    def release(self, employee_id, category, period, *, days: int) -> bool:
        b = self._rows.get((employee_id, category, period))
        if not b or b.used < days:
            return False
        self._rows[(employee_id, category, period)] = replace(b, used=b.used - days)
        return True

    def set_total(self, employee_id, category, period, *, total: int) -> None:
        b = self._rows.get((employee_id, category, period))
        if b:
            self._rows[(employee_id, category, period)] = replace(b, total=total)
        else:
            self._rows[(employee_id, category, period)] = LeaveCategoryBalance(employee_id, category, period, total, 0)


class InMemoryChallenges(_Store):
    def create(self, *, identity, code_hash, code_length, issued_at, expires_at) -> int:
        challenge_id = self._new_id()
        self._rows[challenge_id] = OTPChallenge(
            challenge_id=challenge_id,
            identity=identity,
            code_hash=code_hash,
            code_length=code_length,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        return challenge_id

    def get(self, challenge_id: int) -> Optional[OTPChallenge]:
        return self._rows.get(challenge_id)

    def latest_for_identity(self, identity: str) -> Optional[OTPChallenge]:
        items = [c for c in self._rows.values() if c.identity == identity]
        return max(items, key=lambda c: c.challenge_id) if items else None

    def supersede_live(self, identity: str) -> int:
        count = 0
        for cid, c in list(self._rows.items()):
            if c.identity == identity and not c.consumed and not c.superseded:
                self._rows[cid] = replace(c, superseded=True)
                count += 1
        return count

    def update_state(self, challenge_id: int, *, state: OTPState, attempts: int) -> bool:
        c = self._rows.get(challenge_id)
        if not c or c.consumed:
            return False
        self._rows[challenge_id] = replace(c, state=state, attempts=attempts)
        return True

    def consume(self, challenge_id: int) -> bool:
        c = self._rows.get(challenge_id)
        if not c or c.consumed or c.superseded:
            return False
        self._rows[challenge_id] = replace(c, state=OTPState.VERIFIED, consumed=True)
        return True


class InMemoryTransactions:
    """Rolls every store back when the outermost block raises.

    Nesting depth is tracked per thread. Rollback restores whole stores, so
    concurrent callers must serialise on a shared key (the services do).
    """

    def __init__(self, *stores: _Store):
        self._stores = stores
        self._local = threading.local()
        self.committed = 0
        self.rolled_back = 0

    @contextmanager
    def transaction(self):
        depth = getattr(self._local, "depth", 0)
        if depth:
            self._local.depth = depth + 1
            try:
                yield
            finally:
                self._local.depth = depth
            return

        saved = [s.snapshot() for s in self._stores]
        self._local.depth = 1
        try:
            yield
        except BaseException:
            for store, state in zip(self._stores, saved):
                store.restore(state)
            self.rolled_back += 1
            raise
        else:
            self.committed += 1
        finally:
            self._local.depth = 0


class RecordingSink:
    def __init__(self):
        self.published = []

    def publish(self, notification) -> None:
        self.published.append(notification)

    def kinds(self):
        return [n.kind for n in self.published]


class RecordingCodeSender:
    def __init__(self):
        self.sent = []

    def send_code(self, identity: str, code: str, *, expires_at: datetime) -> None:
        self.sent.append((identity, code, expires_at))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


