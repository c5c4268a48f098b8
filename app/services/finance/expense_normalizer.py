"""
Recurring expense normalisation.

Every expense is reduced to a daily figure with fixed divisors. Months are
30 days and years 365; the same approximation is used when scaling back up,
so monthly -> daily -> monthly round-trips exactly.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional
from app.core.exceptions import ValidationError
from app.models.shared.enums import ExpenseCategory, ExpenseFrequency
from app.utils.validators.validation_utils import ZERO, to_decimal

FREQUENCY_DIVISORS = {
    ExpenseFrequency.DAILY: Decimal(1),
    ExpenseFrequency.WEEKLY: Decimal(7),
    ExpenseFrequency.MONTHLY: Decimal(30),
    ExpenseFrequency.YEARLY: Decimal(365),
}

DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30


def parse_category(value: Any) -> ExpenseCategory:
    try:
        return value if isinstance(value, ExpenseCategory) else ExpenseCategory(value)
    except ValueError:
        raise ValidationError("Category must be fixed or variable")


def parse_frequency(value: Any) -> ExpenseFrequency:
    try:
        return value if isinstance(value, ExpenseFrequency) else ExpenseFrequency(value)
    except ValueError:
        raise ValidationError("Frequency must be daily, weekly, monthly, or yearly")


def daily_cost(expense: Any) -> Decimal:
    amount = to_decimal(expense.amount, "amount")
    return amount / FREQUENCY_DIVISORS[parse_frequency(expense.frequency)]


def is_contributing(expense: Any, period_end: Optional[int] = None) -> bool:
    if not expense.active:
        return False
    if period_end is not None and expense.start_date is not None and expense.start_date > period_end:
        return False
    return True


@dataclass(frozen=True)
class OperatingCost:
    fixed_daily_cost: Decimal
    variable_daily_cost: Decimal
    expense_count: int
    period_days: int = 1

    @property
    def daily_operating_cost(self) -> Decimal:
        return self.fixed_daily_cost + self.variable_daily_cost

    @property
    def scaled_cost(self) -> Decimal:
        return self.daily_operating_cost * self.period_days


def aggregate(expenses: Iterable[Any], period_days: int = 1, period_end: Optional[int] = None) -> OperatingCost:
    """Sum the daily cost of contributing expenses, split by category"""
    fixed = ZERO
    variable = ZERO
    count = 0
    for expense in expenses:
        if not is_contributing(expense, period_end):
            continue
        cost = daily_cost(expense)
        if parse_category(expense.category) == ExpenseCategory.FIXED:
            fixed += cost
        else:
            variable += cost
        count += 1
    return OperatingCost(
        fixed_daily_cost=fixed,
        variable_daily_cost=variable,
        expense_count=count,
        period_days=period_days,
    )


def summary(expenses: Iterable[Any]) -> dict:
    cost = aggregate(expenses)
    daily = cost.daily_operating_cost
    return {
        "daily_operating_cost": daily,
        "fixed_daily_cost": cost.fixed_daily_cost,
        "variable_daily_cost": cost.variable_daily_cost,
        "weekly_operating_cost": daily * DAYS_PER_WEEK,
        "monthly_operating_cost": daily * DAYS_PER_MONTH,
        "expense_count": cost.expense_count,
    }
