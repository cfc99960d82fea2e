"""
Aggregation Engine

Turns a collection of expenses into chart-ready totals. Like the filter
engine it is pure: callers decide whether to pass the full collection or
a filtered one.
"""

from decimal import Decimal
from typing import Iterable

from expense_tracker.models.expense import (
    Category,
    Expense,
    MonthlyTotals,
    PaymentMode,
)


def aggregate_by_month(expenses: Iterable[Expense]) -> list[MonthlyTotals]:
    """
    Group expenses by YYYY-MM month key with per-category totals.

    Every row carries all five categories (zero when unused). Rows are sorted
    by month key; string order equals chronological order for YYYY-MM.
    An empty input gives an empty list.
    """
    months: dict[str, MonthlyTotals] = {}

    for expense in expenses:
        key = expense.month_key
        if key not in months:
            months[key] = MonthlyTotals(month=key)
        months[key].add(expense.category, expense.amount)

    return [months[key] for key in sorted(months)]


def chart_rows(expenses: Iterable[Expense]) -> list[dict]:
    """Monthly totals flattened to {"month": ..., "Rental": ..., ...} dicts."""
    return [row.to_chart_row() for row in aggregate_by_month(expenses)]


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), Decimal("0"))


def totals_by_category(expenses: Iterable[Expense]) -> dict[Category, Decimal]:
    """Total spent per category; every category is present."""
    totals = {category: Decimal("0") for category in Category}
    for expense in expenses:
        totals[expense.category] += expense.amount
    return totals


def totals_by_payment_mode(expenses: Iterable[Expense]) -> dict[PaymentMode, Decimal]:
    """Total spent per payment mode; every payment mode is present."""
    totals = {mode: Decimal("0") for mode in PaymentMode}
    for expense in expenses:
        totals[expense.payment_mode] += expense.amount
    return totals
