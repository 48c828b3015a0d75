from __future__ import annotations

from typing import Mapping, Optional

from ..common.clock import Clock
from ..core.constants import DEFAULT_LEAVE_ALLOCATIONS
from ..core.enums import LeaveCategory
from ..core.exceptions import InsufficientBalance, InvalidTransition, ValidationError
from ..core.logging import get_logger
from .model import BalanceSnapshot, LeaveCategoryBalance
from .repository import LeaveBalanceRepository

logger = get_logger(__name__)


class LeaveBalanceLedger:
    """Per-employee, per-category, per-year running totals of leave days.

    The only writer of ``leave_balances``. ``remaining`` never drops below
    zero except for the unpaid category. Rows are provisioned lazily with the
    configured allocation the first time a period is reserved against.
    """

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        clock: Clock,
        *,
        allocations: Optional[Mapping[str, int]] = None,
    ):
        self._balances = balances
        self._clock = clock
        merged = dict(DEFAULT_LEAVE_ALLOCATIONS)
        merged.update(allocations or {})
        self._allocations = {c: int(merged.get(c.value, 0)) for c in LeaveCategory}

    def default_total(self, category: LeaveCategory) -> int:
        return self._allocations[category]

    def _period(self, period: Optional[int]) -> int:
        return int(period) if period is not None else self._clock.today().year

    @staticmethod
    def _require_days(days: int) -> int:
        days = int(days)
        if days <= 0:
            raise ValidationError("Number of days must be positive", field="number_of_days")
        return days

    def reserve(
        self,
        employee_id: int,
        category: LeaveCategory,
        days: int,
        *,
        period: Optional[int] = None,
    ) -> LeaveCategoryBalance:
        days = self._require_days(days)
        period = self._period(period)

        self._balances.ensure(int(employee_id), category, period, total=self.default_total(category))
        reserved = self._balances.try_reserve(
            int(employee_id),
            category,
            period,
            days=days,
            allow_negative=category.allows_negative_balance,
        )
        balance = self._balances.get(int(employee_id), category, period)
        if not reserved:
            available = balance.remaining if balance else 0
            logger.warning(
                "Insufficient %s balance for employee %s: requested %d, available %d",
                category.value,
                employee_id,
                days,
                available,
            )
            raise InsufficientBalance(
                f"Insufficient balance. You have {available} {category.value} day(s) available",
                available=available,
                requested=days,
            )

        logger.info("Reserved %d %s day(s) for employee %s (%s)", days, category.value, employee_id, period)
        return balance

    def release(
        self,
        employee_id: int,
        category: LeaveCategory,
        days: int,
        *,
        period: Optional[int] = None,
    ) -> LeaveCategoryBalance:
        days = self._require_days(days)
        period = self._period(period)

        if not self._balances.release(int(employee_id), category, period, days=days):
            raise InvalidTransition(f"Cannot release {days} {category.value} day(s): not reserved")

        logger.info("Released %d %s day(s) for employee %s (%s)", days, category.value, employee_id, period)
        return self._balances.get(int(employee_id), category, period)

    def query(self, employee_id: int, *, period: Optional[int] = None) -> BalanceSnapshot:
        """Read-only snapshot; categories without a stored row show their default allocation."""
        period = self._period(period)
        stored = {b.category: b for b in self._balances.list_for_employee(int(employee_id), period)}
        balances = {
            c: stored.get(c)
            or LeaveCategoryBalance(
                employee_id=int(employee_id),
                category=c,
                period=period,
                total=self.default_total(c),
                used=0,
            )
            for c in LeaveCategory
        }
        return BalanceSnapshot(employee_id=int(employee_id), period=period, balances=balances)

    def reset_period(
        self,
        employee_id: int,
        period: int,
        *,
        allocations: Optional[Mapping[LeaveCategory, int]] = None,
    ) -> BalanceSnapshot:
        """Allocate the totals of ``period``; days already reserved stay reserved."""
        period = int(period)
        current = self.query(employee_id, period=period)
        targets = {c: self.default_total(c) for c in LeaveCategory}
        targets.update({c: int(v) for c, v in (allocations or {}).items()})

        for category, total in targets.items():
            if total < 0:
                raise ValidationError(f"Allocation for {category.value} cannot be negative", field=category.value)
            used = current[category].used
            if total < used and not category.allows_negative_balance:
                raise ValidationError(
                    f"Allocation for {category.value} ({total}) is below the {used} day(s) already reserved",
                    field=category.value,
                )

        for category, total in targets.items():
            self._balances.set_total(int(employee_id), category, period, total=total)

        logger.info("Allocated leave period %s for employee %s", period, employee_id)
        return self.query(employee_id, period=period)
