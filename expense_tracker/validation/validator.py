"""
Two-Stage Draft Validation

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (amount, category, payment mode, date)
- Amount must be a finite, non-negative number
- Category and payment mode must belong to their closed sets
- Notes must fit within the configured length
Any failure here is an error and the draft is rejected.

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
These only produce warnings. The expense is still created.

IMPORTANT: Validation never raises for bad input and never silently fixes
values. It reports issues; ExpenseStore decides what to do with them.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    Category,
    ExpenseDraft,
    PaymentMode,
    ValidationIssue,
    ValidationResult,
)


class ExpenseValidator:
    """
    Validates an ExpenseDraft and produces its coerced field values.

    Stage 2 only runs when stage 1 passed.
    """

    def __init__(
        self,
        max_amount: Optional[Decimal] = None,
        future_date_tolerance_days: Optional[int] = None,
        max_notes_length: Optional[int] = None,
    ):
        settings = get_settings().app
        self._max_amount = (
            max_amount
            if max_amount is not None
            else Decimal(str(settings.max_expense_amount))
        )
        self._future_tolerance = (
            future_date_tolerance_days
            if future_date_tolerance_days is not None
            else settings.future_date_tolerance_days
        )
        self._max_notes_length = (
            max_notes_length
            if max_notes_length is not None
            else settings.max_notes_length
        )

    def validate(
        self,
        draft: ExpenseDraft,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run the validation pipeline.

        Returns:
            ValidationResult; cleaned_data is set only when is_valid is True
        """
        schema_valid, issues, cleaned = self._validate_schema(draft)

        if schema_valid:
            issues.extend(self._validate_semantic(cleaned, today or date.today()))

        return ValidationResult(
            is_valid=schema_valid,
            issues=issues,
            cleaned_data=cleaned if schema_valid else None,
        )

    def _validate_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue], dict[str, Any]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues, cleaned_values)
        """
        issues = []
        cleaned: dict[str, Any] = {}

        amount, issue = _parse_amount(draft.amount)
        if issue:
            issues.append(issue)
        else:
            cleaned["amount"] = amount

        category, issue = _parse_choice(draft.category, Category, "category")
        if issue:
            issues.append(issue)
        else:
            cleaned["category"] = category

        payment_mode, issue = _parse_choice(
            draft.payment_mode, PaymentMode, "payment_mode"
        )
        if issue:
            issues.append(issue)
        else:
            cleaned["payment_mode"] = payment_mode

        expense_date, issue = _parse_date(draft.expense_date)
        if issue:
            issues.append(issue)
        else:
            cleaned["expense_date"] = expense_date

        notes = draft.notes or ""
        if len(notes) > self._max_notes_length:
            issues.append(ValidationIssue(
                field="notes",
                issue_type="too_long",
                message=f"Notes are {len(notes)} characters; the limit is {self._max_notes_length}",
                severity="error",
                suggested_fix="Shorten the notes",
            ))
        else:
            cleaned["notes"] = notes

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, cleaned

    def _validate_semantic(
        self,
        cleaned: dict[str, Any],
        today: date,
    ) -> list[ValidationIssue]:
        """Stage 2: warnings about values that are valid but suspicious."""
        issues = []

        max_future_date = today + timedelta(days=self._future_tolerance)
        if cleaned["expense_date"] > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({cleaned['expense_date']}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if cleaned["amount"] > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({cleaned['amount']:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues


def _missing(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required",
        severity="error",
    )


def _parse_amount(raw: Any) -> tuple[Optional[Decimal], Optional[ValidationIssue]]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None, _missing("amount", "Amount")

    if isinstance(raw, bool):
        amount = None
    else:
        try:
            amount = Decimal(str(raw).strip())
        except InvalidOperation:
            amount = None

    if amount is None or not amount.is_finite():
        return None, ValidationIssue(
            field="amount",
            issue_type="invalid_format",
            message=f"Amount '{raw}' is not a number",
            severity="error",
            suggested_fix="Enter digits only, e.g. 250 or 99.50",
        )

    if amount < 0:
        return None, ValidationIssue(
            field="amount",
            issue_type="invalid_value",
            message="Amount cannot be negative",
            severity="error",
        )

    return amount, None


def _parse_choice(raw: Any, choices: type, field: str):
    label = field.replace("_", " ").capitalize()
    if raw is None or (isinstance(raw, str) and not raw):
        return None, _missing(field, label)

    try:
        return choices(raw), None
    except ValueError:
        allowed = ", ".join(choice.value for choice in choices)
        return None, ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} '{raw}' is not one of: {allowed}",
            severity="error",
        )


def _parse_date(raw: Any) -> tuple[Optional[date], Optional[ValidationIssue]]:
    if raw is None or (isinstance(raw, str) and not raw):
        return None, _missing("date", "Date")

    if isinstance(raw, datetime):
        return raw.date(), None
    if isinstance(raw, date):
        return raw, None

    try:
        return date.fromisoformat(raw), None
    except ValueError:
        return None, ValidationIssue(
            field="date",
            issue_type="invalid_format",
            message=f"Date '{raw}' is not in YYYY-MM-DD format",
            severity="error",
        )
