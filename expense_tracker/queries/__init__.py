"""Filtering and aggregation package."""

from expense_tracker.queries.aggregation import (
    aggregate_by_month,
    chart_rows,
    total_amount,
    totals_by_category,
    totals_by_payment_mode,
)
from expense_tracker.queries.filters import (
    filter_expenses,
    matches_categories,
    matches_date_range,
    matches_payment_modes,
    window_start,
)

__all__ = [
    "aggregate_by_month",
    "chart_rows",
    "filter_expenses",
    "matches_categories",
    "matches_date_range",
    "matches_payment_modes",
    "total_amount",
    "totals_by_category",
    "totals_by_payment_mode",
    "window_start",
]
