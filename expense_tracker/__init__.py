"""
Expense Tracker - Source Package

A personal expense tracker: record expenses, keep them between
sessions, filter them and see monthly totals per category.

DESIGN PRINCIPLES:
1. Only validated drafts become expenses
2. Saved expenses are immutable (delete and re-add to correct)
3. Filtering and aggregation are pure functions
4. Storage problems are logged, never fatal
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
