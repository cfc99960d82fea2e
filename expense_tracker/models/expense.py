"""
Core Data Models for the Expense Tracker

These models define the schemas for everything the tracker stores,
filters and charts. They are designed to:
1. Keep the category and payment mode sets closed
2. Make a saved expense immutable once created
3. Serialize to the same snapshot structure on every save

DESIGN DECISION: Snapshot field names are camelCase (paymentMode, createdAt,
dateRange, paymentModes) through pydantic aliases, while Python code uses
snake_case attributes. populate_by_name lets both spellings load.
The effective date is stored as "date" but named expense_date in Python.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Supported expense categories.

    The values are the exact strings stored in snapshots and shown
    as chart series names.
    """
    RENTAL = "Rental"
    GROCERIES = "Groceries"
    ENTERTAINMENT = "Entertainment"
    TRAVEL = "Travel"
    OTHERS = "Others"


class PaymentMode(str, Enum):
    """How an expense was paid."""
    UPI = "UPI"
    CREDIT_CARD = "Credit Card"
    NET_BANKING = "Net Banking"
    CASH = "Cash"


class DateRange(str, Enum):
    """
    Date window applied by the filter engine.

    THIS_MONTH is a calendar month. LAST_30 and LAST_90 are fixed-duration
    windows of 30x24h and 90x24h ending at "now".
    """
    ALL = "all"
    THIS_MONTH = "thisMonth"
    LAST_30 = "last30"
    LAST_90 = "last90"


class FilterDimension(str, Enum):
    """Filter sets that support toggling."""
    CATEGORIES = "categories"
    PAYMENT_MODES = "paymentModes"


class View(str, Enum):
    """Active view selector persisted between sessions."""
    LIST = "list"
    ANALYTICS = "analytics"


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    User-entered candidate for a new expense.

    CRITICAL: This is UNTRUSTED input straight from a form.
    Every field is optional and loosely typed; only ExpenseValidator
    decides whether it becomes an Expense.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    amount: Optional[Union[Decimal, int, float, str]] = None
    category: Optional[Union[Category, str]] = None
    payment_mode: Optional[Union[PaymentMode, str]] = Field(
        default=None,
        alias="paymentMode",
    )
    expense_date: Optional[Union[date, str]] = Field(
        default=None,
        alias="date",
    )
    notes: Optional[str] = ""


class Expense(BaseModel):
    """
    A saved expense record.

    Records are frozen. There is no update-in-place: correcting an
    expense means deleting it and adding a new one.

    id and created_at are assigned by ExpenseStore and nowhere else.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )

    id: int = Field(
        ...,
        description="Unique expense ID (millisecond timestamp at creation)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount spent"
    )
    category: Category
    payment_mode: PaymentMode = Field(
        ...,
        alias="paymentMode",
    )
    expense_date: date = Field(
        ...,
        alias="date",
        description="Effective date of the expense (not the creation time)"
    )
    notes: str = Field(
        default="",
        description="Optional free-text annotation"
    )
    created_at: datetime = Field(
        ...,
        alias="createdAt",
        description="When the record was created"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def float_to_exact_decimal(cls, v: Any) -> Any:
        """Snapshots store amounts as JSON numbers (or text when a float can't hold them exactly)."""
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("notes", mode="before")
    @classmethod
    def none_notes_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> Union[int, float, str]:
        if amount == amount.to_integral_value():
            return int(amount)
        as_float = float(amount)
        if Decimal(repr(as_float)) == amount:
            return as_float
        # Too many significant digits for a float; keep it exact as text
        return str(amount)

    @property
    def month_key(self) -> str:
        """YYYY-MM key used to group expenses by calendar month."""
        return f"{self.expense_date.year:04d}-{self.expense_date.month:02d}"


# =============================================================================
# FILTER STATE
# =============================================================================

class FilterState(BaseModel):
    """
    Active filters for the expense list.

    An empty category or payment mode list means "no restriction".
    The three fields are independent of each other.
    """
    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
    )

    date_range: DateRange = Field(
        default=DateRange.ALL,
        alias="dateRange",
    )
    categories: list[Category] = Field(default_factory=list)
    payment_modes: list[PaymentMode] = Field(
        default_factory=list,
        alias="paymentModes",
    )

    @field_validator("categories", "payment_modes")
    @classmethod
    def drop_duplicates(cls, v: list) -> list:
        return list(dict.fromkeys(v))

    def set_date_range(self, value: Union[DateRange, str]) -> None:
        """Overwrite the date range. Raises ValidationError for unknown values."""
        self.date_range = value

    def toggle(
        self,
        dimension: Union[FilterDimension, str],
        value: Union[Category, PaymentMode, str],
    ) -> None:
        """
        Add value to the named set if absent, remove it if present.

        Applying the same toggle twice restores the original state.
        """
        dimension = FilterDimension(dimension)
        if dimension == FilterDimension.CATEGORIES:
            self.categories = _toggled(self.categories, Category(value))
        else:
            self.payment_modes = _toggled(self.payment_modes, PaymentMode(value))

    def reset(self) -> None:
        """Back to date range 'all' with no category or payment restriction."""
        self.date_range = DateRange.ALL
        self.categories = []
        self.payment_modes = []

    @property
    def is_default(self) -> bool:
        return (
            self.date_range == DateRange.ALL
            and not self.categories
            and not self.payment_modes
        )


def _toggled(values: list, value: Enum) -> list:
    if value in values:
        return [item for item in values if item != value]
    return [*values, value]


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class MonthlyTotals(BaseModel):
    """
    One chart row: per-category totals for a single calendar month.

    Every category is always present, zero when nothing was spent.
    """

    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="Month key in YYYY-MM format"
    )
    totals: dict[Category, Decimal] = Field(
        default_factory=lambda: {category: Decimal("0") for category in Category}
    )

    def add(self, category: Category, amount: Decimal) -> None:
        self.totals[category] = self.totals.get(category, Decimal("0")) + amount

    @property
    def total(self) -> Decimal:
        return sum(self.totals.values(), Decimal("0"))

    def to_chart_row(self) -> dict:
        """
        Flatten to {"month": ..., "Rental": ..., ...} for chart widgets.
        """
        row: dict[str, Any] = {"month": self.month}
        for category in Category:
            row[category.value] = self.totals.get(category, Decimal("0"))
        return row


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a draft."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating an ExpenseDraft.

    cleaned_data holds the coerced field values and is only set
    when the draft is valid.
    """

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    cleaned_data: Optional[dict[str, Any]] = None

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]
