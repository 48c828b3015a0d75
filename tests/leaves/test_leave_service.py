from __future__ import annotations

import threading
from datetime import date, timedelta

import pytest

from workforce_system.core.enums import LeaveCategory, LeaveStatus, NotificationKind, Role
from workforce_system.core.exceptions import (
    AuthorizationError,
    InsufficientBalance,
    InvalidTransition,
    NotFoundError,
    NotPending,
    OverlappingLeave,
    ValidationError,
)

from tests.fakes import ADMIN_ID, EMPLOYEE_ID, MISSING_EMPLOYEE_ID, OTHER_EMPLOYEE_ID

REASON = "Family function out of town"


def _apply(leave_service, *, category="casual", start=date(2026, 3, 3), end=date(2026, 3, 5), employee_id=EMPLOYEE_ID):
    return leave_service.apply(employee_id, category=category, start_date=start, end_date=end, reason=REASON)


def _remaining(leave_service, category=LeaveCategory.CASUAL, employee_id=EMPLOYEE_ID):
    return leave_service.balance(employee_id).remaining(category)


def test_apply_reserves_working_days(leave_service, sink):
    req = _apply(leave_service)

    assert req.status == LeaveStatus.PENDING
    assert req.number_of_days == 3
    assert req.reason == REASON
    assert _remaining(leave_service) == 9
    assert sink.kinds() == [NotificationKind.LEAVE_APPLIED]


def test_apply_counts_only_working_days(leave_service):
    # Mon 9 .. Sun 15, 2nd Saturday and Sunday off
    req = _apply(leave_service, start=date(2026, 3, 9), end=date(2026, 3, 15))

    assert req.number_of_days == 5


def test_scenario_reject_restores_balance(leave_service, ledger, clock):
    ledger.reset_period(EMPLOYEE_ID, 2026, allocations={LeaveCategory.CASUAL: 10})
    ledger.reserve(EMPLOYEE_ID, LeaveCategory.CASUAL, 2)
    assert _remaining(leave_service) == 8

    req = _apply(leave_service)
    assert _remaining(leave_service) == 5
    assert req.status == LeaveStatus.PENDING

    rejected = leave_service.reject(req.request_id, approver_id=ADMIN_ID, rejection_reason="Team offsite that week")

    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.rejection_reason == "Team offsite that week"
    assert rejected.approver_id == ADMIN_ID
    assert rejected.decided_at == clock.now()
    assert _remaining(leave_service) == 8


def test_approve_does_not_touch_ledger(leave_service, clock):
    req = _apply(leave_service)

    approved = leave_service.approve(req.request_id, approver_id=ADMIN_ID)

    assert approved.status == LeaveStatus.APPROVED
    assert approved.approver_id == ADMIN_ID
    assert approved.decided_at == clock.now()
    assert _remaining(leave_service) == 9


@pytest.mark.parametrize("approve_first", [False, True])
def test_cancel_refunds_exactly_the_reserved_days(leave_service, sink, approve_first):
    req = _apply(leave_service)
    if approve_first:
        leave_service.approve(req.request_id, approver_id=ADMIN_ID)

    cancelled = leave_service.cancel(req.request_id, acting_employee_id=EMPLOYEE_ID)

    assert cancelled.status == LeaveStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert _remaining(leave_service) == 12
    assert sink.kinds()[-1] == NotificationKind.LEAVE_CANCELLED


def test_only_owner_can_cancel(leave_service):
    req = _apply(leave_service)

    with pytest.raises(AuthorizationError):
        leave_service.cancel(req.request_id, acting_employee_id=OTHER_EMPLOYEE_ID)


@pytest.mark.parametrize("final", ["rejected", "cancelled"])
def test_closed_requests_cannot_be_cancelled(leave_service, final):
    req = _apply(leave_service)
    if final == "rejected":
        leave_service.reject(req.request_id, approver_id=ADMIN_ID, rejection_reason="Busy period")
    else:
        leave_service.cancel(req.request_id, acting_employee_id=EMPLOYEE_ID)

    with pytest.raises(InvalidTransition):
        leave_service.cancel(req.request_id, acting_employee_id=EMPLOYEE_ID)
    assert _remaining(leave_service) == 12


def test_approve_and_reject_only_from_pending(leave_service):
    req = _apply(leave_service)
    leave_service.approve(req.request_id, approver_id=ADMIN_ID)

    with pytest.raises(NotPending):
        leave_service.approve(req.request_id, approver_id=ADMIN_ID)
    with pytest.raises(NotPending):
        leave_service.reject(req.request_id, approver_id=ADMIN_ID, rejection_reason="Changed my mind")


def test_reject_requires_reason(leave_service):
    req = _apply(leave_service)

    with pytest.raises(ValidationError) as exc:
        leave_service.reject(req.request_id, approver_id=ADMIN_ID, rejection_reason="   ")

    assert exc.value.field == "rejection_reason"
    assert leave_service.get(req.request_id).status == LeaveStatus.PENDING


def test_no_self_approval(leave_service):
    req = _apply(leave_service, employee_id=ADMIN_ID)

    with pytest.raises(AuthorizationError):
        leave_service.approve(req.request_id, approver_id=ADMIN_ID)


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"category": "holiday"}, "category"),
        ({"start_date": None}, "start_date"),
        ({"end_date": None}, "end_date"),
        ({"start_date": date(2026, 3, 6), "end_date": date(2026, 3, 5)}, "end_date"),
        ({"start_date": date(2026, 3, 1), "end_date": date(2026, 3, 3)}, "start_date"),
        ({"reason": "too short"}, "reason"),
        ({"reason": "x" * 501}, "reason"),
        ({"reason": None}, "reason"),
        ({"start_date": date(2026, 3, 14), "end_date": date(2026, 3, 15)}, "end_date"),
    ],
)
def test_apply_validation_happens_before_any_reservation(leave_service, balance_repo, kwargs, field):
    params = dict(category="casual", start_date=date(2026, 3, 3), end_date=date(2026, 3, 5), reason=REASON)
    params.update(kwargs)

    with pytest.raises(ValidationError) as exc:
        leave_service.apply(EMPLOYEE_ID, **params)

    assert exc.value.field == field
    assert balance_repo.list_for_employee(EMPLOYEE_ID, 2026) == []


def test_reason_is_trimmed(leave_service):
    req = leave_service.apply(
        EMPLOYEE_ID,
        category="casual",
        start_date=date(2026, 3, 3),
        end_date=date(2026, 3, 3),
        reason="   " + REASON + "   ",
    )

    assert req.reason == REASON


def test_apply_for_unknown_employee(leave_service):
    with pytest.raises(NotFoundError):
        _apply(leave_service, employee_id=MISSING_EMPLOYEE_ID)


def test_insufficient_balance_creates_nothing(leave_service, leave_repo):
    with pytest.raises(InsufficientBalance):
        _apply(leave_service, category="personal")

    assert leave_repo.list_for_employee(EMPLOYEE_ID) == []


def test_unpaid_leave_is_never_short(leave_service):
    req = _apply(leave_service, category="unpaid")

    assert req.status == LeaveStatus.PENDING
    assert _remaining(leave_service, LeaveCategory.UNPAID) == -3


def test_overlapping_active_request_is_rejected(leave_service):
    _apply(leave_service)

    with pytest.raises(OverlappingLeave):
        _apply(leave_service, category="sick", start=date(2026, 3, 5), end=date(2026, 3, 6))
    assert _remaining(leave_service, LeaveCategory.SICK) == 12


def test_cancelled_request_no_longer_blocks_the_range(leave_service):
    req = _apply(leave_service)
    leave_service.cancel(req.request_id, acting_employee_id=EMPLOYEE_ID)

    again = _apply(leave_service)

    assert again.status == LeaveStatus.PENDING
    assert _remaining(leave_service) == 9


def test_pending_requests_reduce_remaining_before_approval(leave_service):
    _apply(leave_service, start=date(2026, 3, 3), end=date(2026, 3, 6))
    _apply(leave_service, start=date(2026, 3, 9), end=date(2026, 3, 13))

    with pytest.raises(InsufficientBalance):
        _apply(leave_service, start=date(2026, 3, 16), end=date(2026, 3, 20))
    assert _remaining(leave_service) == 3


def test_period_is_the_start_year(leave_service):
    req = _apply(leave_service, start=date(2027, 1, 4), end=date(2027, 1, 5))

    assert req.period == 2027
    assert leave_service.balance(EMPLOYEE_ID, period=2027).remaining(LeaveCategory.CASUAL) == 10
    assert _remaining(leave_service) == 12


def test_lists(leave_service):
    first = _apply(leave_service)
    second = _apply(leave_service, start=date(2026, 3, 9), end=date(2026, 3, 9))
    leave_service.approve(first.request_id, approver_id=ADMIN_ID)

    assert [r.request_id for r in leave_service.list_mine(EMPLOYEE_ID)] == [second.request_id, first.request_id]
    assert [r.request_id for r in leave_service.list_mine(EMPLOYEE_ID, status="approved")] == [first.request_id]
    assert [r.request_id for r in leave_service.list_pending()] == [second.request_id]


def test_get_unknown_request(leave_service):
    with pytest.raises(NotFoundError):
        leave_service.get(404)


def test_concurrent_applies_never_overspend(leave_service, ledger, leave_repo):
    # room for exactly one Mon-Wed request
    ledger.reset_period(EMPLOYEE_ID, 2026, allocations={LeaveCategory.CASUAL: 3})
    workers = 6
    barrier = threading.Barrier(workers, timeout=5)
    outcomes = []

    def apply(week):
        start = date(2026, 3, 2) + timedelta(weeks=week)
        barrier.wait()
        try:
            _apply(leave_service, start=start, end=start + timedelta(days=2))
        except InsufficientBalance:
            outcomes.append("short")
        else:
            outcomes.append("ok")

    threads = [threading.Thread(target=apply, args=(week,)) for week in range(1, workers + 1)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["ok"] + ["short"] * (workers - 1)
    assert _remaining(leave_service) == 0
    assert len(leave_repo.list_for_employee(EMPLOYEE_ID)) == 1


def test_owner_and_admin_can_view_a_request(leave_service):
    req = _apply(leave_service)

    assert leave_service.view(req.request_id, viewer_id=EMPLOYEE_ID, viewer_role=Role.EMPLOYEE) == req
    assert leave_service.view(req.request_id, viewer_id=ADMIN_ID, viewer_role=Role.ADMIN) == req
    with pytest.raises(AuthorizationError):
        leave_service.view(req.request_id, viewer_id=OTHER_EMPLOYEE_ID, viewer_role=Role.EMPLOYEE)
