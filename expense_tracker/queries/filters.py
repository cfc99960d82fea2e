"""
Filter Engine

DESIGN DECISION: Filtering is a pure function of
(expenses, filter state, now). Nothing is cached, so every read
reflects the current store and filters.

Three independent predicates are ANDed:
- date window (all / calendar month / last 30x24h / last 90x24h)
- category membership (empty selection passes everything)
- payment mode membership (same rule)
"""

from datetime import datetime, time, timedelta
from typing import Iterable, Optional

from expense_tracker.models.expense import DateRange, Expense, FilterState


WINDOW_LENGTHS = {
    DateRange.LAST_30: timedelta(hours=30 * 24),
    DateRange.LAST_90: timedelta(hours=90 * 24),
}


def window_start(date_range: DateRange, now: datetime) -> Optional[datetime]:
    """
    Earliest moment an expense may fall on for a fixed-duration window.

    Returns None for ranges that are not fixed-duration windows.
    """
    length = WINDOW_LENGTHS.get(date_range)
    if length is None:
        return None
    return now - length


def _expense_start(expense: Expense, now: datetime) -> datetime:
    # An expense date counts as midnight at the start of that day,
    # on the same clock as `now`.
    return datetime.combine(expense.expense_date, time.min, tzinfo=now.tzinfo)


def matches_date_range(
    expense: Expense,
    date_range: DateRange,
    now: datetime,
) -> bool:
    if date_range == DateRange.ALL:
        return True

    if date_range == DateRange.THIS_MONTH:
        return (
            expense.expense_date.year == now.year
            and expense.expense_date.month == now.month
        )

    # Boundary-inclusive: exactly N x 24h before now still passes
    return _expense_start(expense, now) >= window_start(date_range, now)


def matches_categories(expense: Expense, filter_state: FilterState) -> bool:
    return not filter_state.categories or expense.category in filter_state.categories


def matches_payment_modes(expense: Expense, filter_state: FilterState) -> bool:
    return (
        not filter_state.payment_modes
        or expense.payment_mode in filter_state.payment_modes
    )


def filter_expenses(
    expenses: Iterable[Expense],
    filter_state: FilterState,
    now: Optional[datetime] = None,
) -> list[Expense]:
    """
    Return the expenses matching every active filter, in their original order.

    Args:
        expenses: Expenses to filter (typically ExpenseStore.expenses)
        filter_state: Active filters
        now: Reference time for date windows; defaults to the local time

    Returns:
        New list; the input is never modified
    """
    now = now or datetime.now()
    return [
        expense
        for expense in expenses
        if matches_date_range(expense, filter_state.date_range, now)
        and matches_categories(expense, filter_state)
        and matches_payment_modes(expense, filter_state)
    ]
