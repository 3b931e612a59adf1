"""
Budget Aggregation Engine

DESIGN DECISION: The dashboard figures are DERIVED, never stored.
compute_snapshot turns the category list, the transaction log, the
savings goal and the current time into one immutable BudgetSnapshot.

GUARANTEES:
- Pure: no I/O, no clock reads (`now` is a parameter), inputs untouched
- Deterministic: same inputs, same snapshot; the order of the log
  does not matter (Decimal sums are exact)
- Never divides by zero: a ratio with a zero denominator is 0
- Ratios are NOT clamped (except the health score): a category at 150%
  must be visible as such, capping a progress bar is the UI's job

"Current month" is the calendar month of `now`, not the last 30 days.
All-time figures (balances) ignore month boundaries entirely.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from dzbudget.models.budget import (
    AccountType,
    BudgetSnapshot,
    Category,
    CategoryMetric,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def ratio_percent(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is not positive."""
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


def clamp(value: Decimal, low: Decimal = ZERO, high: Decimal = HUNDRED) -> Decimal:
    return max(low, min(high, value))


def is_in_month_of(moment: datetime, now: datetime) -> bool:
    """
    Same calendar month and year as `now`.

    An aware `moment` is first converted to `now`'s timezone, so a
    transaction stored in UTC at 23:30 on the 31st counts in the month
    the user saw on their clock.
    """
    if moment.tzinfo is not None and now.tzinfo is not None:
        moment = moment.astimezone(now.tzinfo)
    return moment.year == now.year and moment.month == now.month


def _sum_amounts(transactions: Iterable[Transaction], kind: TransactionType) -> Decimal:
    return sum((t.amount for t in transactions if t.type == kind), ZERO)


def compute_health_score(monthly_income: Decimal, monthly_expense: Decimal) -> Decimal:
    """
    0-100 score of how much of this month's income is left.

    No activity at all is a perfect score; spending without any income
    is the worst.
    """
    if monthly_income <= 0:
        return HUNDRED if monthly_expense <= 0 else ZERO
    return clamp(HUNDRED - ratio_percent(monthly_expense, monthly_income))


def compute_account_balances(
    transactions: Iterable[Transaction],
) -> dict[AccountType, Decimal]:
    """All-time balance of every account type (income adds, expense subtracts)."""
    balances = {account: ZERO for account in AccountType}
    for transaction in transactions:
        if transaction.account_type in balances:
            balances[transaction.account_type] += transaction.signed_amount
    return balances


def compute_category_metrics(
    categories: Iterable[Category],
    month_transactions: list[Transaction],
) -> list[CategoryMetric]:
    """Spending of each category over the given (current-month) transactions."""
    spent_by_category: dict[str, Decimal] = {}
    for transaction in month_transactions:
        if transaction.type == TransactionType.EXPENSE and transaction.category_id:
            spent_by_category[transaction.category_id] = (
                spent_by_category.get(transaction.category_id, ZERO) + transaction.amount
            )

    metrics = []
    for category in categories:
        spent = spent_by_category.get(category.id, ZERO)
        metrics.append(CategoryMetric(
            category_id=category.id,
            name_fr=category.name_fr,
            name_ar=category.name_ar,
            icon=category.icon,
            color=category.color,
            is_savings_category=category.is_savings_category,
            spent=spent,
            limit=category.limit,
            percent=ratio_percent(spent, category.limit),
        ))
    return metrics


def compute_snapshot(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    now: datetime,
    savings_goal: Decimal = ZERO,
) -> BudgetSnapshot:
    """
    Derive every dashboard figure from the current state.

    Args:
        categories: Registry contents, in display order
        transactions: The whole log (any order)
        now: Wall-clock time defining the "current month"
        savings_goal: Target balance of the SAVINGS account

    Returns:
        A frozen BudgetSnapshot
    """
    categories = list(categories)
    all_transactions = list(transactions)
    month_transactions = [t for t in all_transactions if is_in_month_of(t.date, now)]

    total_income = _sum_amounts(all_transactions, TransactionType.INCOME)
    total_expense = _sum_amounts(all_transactions, TransactionType.EXPENSE)

    monthly_income = _sum_amounts(month_transactions, TransactionType.INCOME)
    monthly_expense = _sum_amounts(month_transactions, TransactionType.EXPENSE)

    account_balances = compute_account_balances(all_transactions)
    category_metrics = compute_category_metrics(categories, month_transactions)

    total_limit = sum((c.limit for c in categories), ZERO)
    savings_goal = Decimal(str(savings_goal))

    return BudgetSnapshot(
        computed_at=now,
        total_income=total_income,
        total_expense=total_expense,
        total_balance=total_income - total_expense,
        account_balances=account_balances,
        monthly_income=monthly_income,
        monthly_expense=monthly_expense,
        category_metrics=category_metrics,
        total_limit=total_limit,
        limit_usage_percent=ratio_percent(monthly_expense, total_limit),
        health_score=compute_health_score(monthly_income, monthly_expense),
        savings_goal=savings_goal,
        savings_progress_percent=ratio_percent(
            account_balances[AccountType.SAVINGS], savings_goal
        ),
    )
