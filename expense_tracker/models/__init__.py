"""
Data Models Package

This package contains all Pydantic models used by the expense tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    Category,
    DateRange,
    Expense,
    ExpenseDraft,
    FilterDimension,
    FilterState,
    MonthlyTotals,
    PaymentMode,
    ValidationIssue,
    ValidationResult,
    View,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Category",
    "DateRange",
    "Expense",
    "ExpenseDraft",
    "FilterDimension",
    "FilterState",
    "MonthlyTotals",
    "PaymentMode",
    "ValidationIssue",
    "ValidationResult",
    "View",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
