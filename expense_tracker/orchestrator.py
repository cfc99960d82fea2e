"""
Main Orchestrator for the Expense Tracker

Ties the store, filter state, engines and persistence together into one
session object that a front end can drive.

Flow:
1. Startup → hydrate store, filters and view from persistence
2. User action → mutate store / filters / view
3. After every mutation → save the affected snapshot
4. Every read → recompute the visible list and chart series

DESIGN DECISION: The orchestrator is the only place that knows a mutation
must be followed by a save. ExpenseStore and FilterState stay free of I/O.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    Category,
    DateRange,
    Expense,
    ExpenseDraft,
    FilterDimension,
    FilterState,
    MonthlyTotals,
    PaymentMode,
    ValidationResult,
    View,
)
from expense_tracker.queries import (
    aggregate_by_month,
    filter_expenses,
    total_amount,
    totals_by_category,
    totals_by_payment_mode,
)
from expense_tracker.services.persistence import PersistenceAdapter
from expense_tracker.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    StorageError,
)
from expense_tracker.store import ExpenseStore
from expense_tracker.validation import ExpenseValidator


class ExpenseTracker:
    """
    A single user's expense tracking session.

    Mutations: add_expense, delete_expense, clear_all, set_date_range,
    toggle_filter, set_view. Each one saves what it changed.
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        store: Optional[ExpenseStore] = None,
        filters: Optional[FilterState] = None,
        view: View = View.LIST,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._persistence = persistence
        self._store = store or ExpenseStore()
        self._filters = filters or FilterState()
        self._view = View(view)
        self._audit_logger = audit_logger or AuditLogger()

    @classmethod
    def load(
        cls,
        persistence: PersistenceAdapter,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ExpenseValidator] = None,
    ) -> "ExpenseTracker":
        """Hydrate a session from stored snapshots (defaults where missing)."""
        return cls(
            persistence=persistence,
            store=ExpenseStore.from_records(
                persistence.load_expenses(),
                validator=validator,
            ),
            filters=persistence.load_filters(),
            view=persistence.load_view(),
            audit_logger=audit_logger,
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def persistence(self) -> PersistenceAdapter:
        return self._persistence

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return self._store.expenses

    @property
    def filters(self) -> FilterState:
        # A copy, so callers cannot change filters without a save
        return self._filters.model_copy(deep=True)

    @property
    def view(self) -> View:
        return self._view

    @property
    def last_validation(self) -> Optional[ValidationResult]:
        return self._store.last_validation

    def visible_expenses(self, now: Optional[datetime] = None) -> list[Expense]:
        """Expenses passing the active filters, in insertion order."""
        return filter_expenses(self._store.expenses, self._filters, now)

    def chart_series(
        self,
        now: Optional[datetime] = None,
        filtered: bool = False,
    ) -> list[MonthlyTotals]:
        """
        Monthly per-category totals.

        The analytics view charts every expense by default; pass
        filtered=True to chart only the visible ones.
        """
        expenses = self.visible_expenses(now) if filtered else self._store.expenses
        return aggregate_by_month(expenses)

    def summary(self, now: Optional[datetime] = None) -> dict:
        """Count and totals of the visible expenses."""
        visible = self.visible_expenses(now)
        return {
            "count": len(visible),
            "total": total_amount(visible),
            "by_category": totals_by_category(visible),
            "by_payment_mode": totals_by_payment_mode(visible),
        }

    # -------------------------------------------------------------------------
    # Expense mutations
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        draft: ExpenseDraft,
        now: Optional[datetime] = None,
    ) -> Optional[Expense]:
        """
        Add an expense from a draft.

        Returns None (and saves nothing) when the draft is rejected;
        see last_validation for the reasons.
        """
        expense = self._store.add(draft, now=now)
        if expense is None:
            self._audit_logger.log_validation_failed([
                issue.model_dump() for issue in self._store.last_validation.issues
            ])
            return None

        self._audit_logger.log_expense_added(
            expense_id=expense.id,
            amount=str(expense.amount),
            category=expense.category.value,
            payment_mode=expense.payment_mode.value,
        )
        self._persistence.save_expenses(self._store.expenses)
        return expense

    def delete_expense(self, expense_id: int) -> bool:
        removed = self._store.remove(expense_id)
        self._audit_logger.log_expense_deleted(expense_id, removed)
        if removed:
            self._persistence.save_expenses(self._store.expenses)
        return removed

    def clear_all(self) -> int:
        """
        Delete every expense, reset filters and remove both snapshots.

        Irreversible. The front end must confirm with the user first.
        """
        count = self._store.clear()
        self._filters.reset()
        self._audit_logger.log_expenses_cleared(count)
        self._persistence.clear()
        return count

    # -------------------------------------------------------------------------
    # Filter and view mutations
    # -------------------------------------------------------------------------

    def set_date_range(self, value: Union[DateRange, str]) -> None:
        self._filters.set_date_range(value)
        self._filters_changed()

    def toggle_filter(
        self,
        dimension: Union[FilterDimension, str],
        value: Union[Category, PaymentMode, str],
    ) -> None:
        self._filters.toggle(dimension, value)
        self._filters_changed()

    def reset_filters(self) -> None:
        self._filters.reset()
        self._filters_changed()

    def set_view(self, view: Union[View, str]) -> None:
        view = View(view)
        if view == self._view:
            return
        self._view = view
        self._audit_logger.log_view_changed(view.value)
        self._persistence.save_view(view)

    def _filters_changed(self) -> None:
        self._audit_logger.log_filters_changed(
            self._filters.model_dump(mode="json", by_alias=True)
        )
        self._persistence.save_filters(self._filters)


def create_storage(
    use_storage: bool = True,
    audit_logger: Optional[AuditLogger] = None,
) -> KeyValueStorageInterface:
    """
    Build the configured storage backend.

    Falls back to in-memory storage when file storage cannot be opened.
    """
    settings = get_settings().storage
    if not use_storage or settings.backend == "memory":
        return InMemoryStorage()

    try:
        return JsonFileStorage(settings.data_dir)
    except StorageError as e:
        # Storage not usable - continue in memory
        if audit_logger:
            audit_logger.log_storage_unavailable("open", str(settings.data_dir), str(e))
        return InMemoryStorage()


def create_app_components(
    use_storage: bool = True,
) -> tuple[ExpenseTracker, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to disk. Set to False for a
                    memory-only session.

    Returns:
        (tracker, audit_logger)
    """
    audit_logger = AuditLogger()
    storage = create_storage(use_storage, audit_logger)
    persistence = PersistenceAdapter(storage, audit_logger=audit_logger)
    tracker = ExpenseTracker.load(persistence, audit_logger=audit_logger)
    return tracker, audit_logger


def format_currency(amount: Decimal, symbol: Optional[str] = None) -> str:
    """
    Format an amount with Indian digit grouping, e.g. ₹1,23,456.5

    Trailing fractional zeros are dropped, matching how the amounts
    were entered.
    """
    symbol = get_settings().app.currency_symbol if symbol is None else symbol
    sign = "-" if amount < 0 else ""
    text = format(abs(amount).normalize(), "f")
    whole, _, fraction = text.partition(".")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}{symbol}{whole}" + (f".{fraction}" if fraction else "")
