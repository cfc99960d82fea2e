"""
Snapshot Persistence Adapter

Loads and saves the three session snapshots (expenses, filters, active
view) through a KeyValueStorageInterface.

DESIGN DECISION: Persistence can never break a session.
- A missing snapshot means "use the default"
- A corrupt snapshot is logged and also means "use the default"
- An unreachable backend is logged; the session keeps running in memory
Every load/save call is guarded on its own, so one failure does not stop
later attempts from succeeding.

Snapshot format is JSON, field names matching the original browser
storage layout:
    expenses: [{"id", "amount", "category", "notes", "date",
                "paymentMode", "createdAt"}, ...]
    filters:  {"dateRange", "categories", "paymentModes"}
    view:     plain string, e.g. "list"
"""

import json
from decimal import Decimal
from typing import Callable, Iterable, Optional, TypeVar

from pydantic import ValidationError

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense, FilterState, View
from expense_tracker.services.storage import (
    CorruptSnapshotError,
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
)


T = TypeVar("T")


class PersistenceAdapter:
    """
    Guarded load/save/clear of session snapshots.

    No public method raises. Loads return defaults on any failure;
    saves return False.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        expenses_key: Optional[str] = None,
        filters_key: Optional[str] = None,
        view_key: Optional[str] = None,
    ):
        settings = get_settings().storage
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self.expenses_key = expenses_key or settings.expenses_key
        self.filters_key = filters_key or settings.filters_key
        self.view_key = view_key or settings.view_key

    @property
    def storage(self) -> KeyValueStorageInterface:
        return self._storage

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    @staticmethod
    def encode_expenses(expenses: Iterable[Expense]) -> str:
        return json.dumps(
            [expense.model_dump(mode="json", by_alias=True) for expense in expenses],
            ensure_ascii=False,
        )

    @staticmethod
    def decode_expenses(raw: str) -> tuple[list[Expense], int]:
        """
        Parse an expense snapshot.

        Returns:
            (expenses, skipped) where skipped counts records that failed
            validation and were dropped

        Raises:
            CorruptSnapshotError: If the text is not a JSON list
        """
        try:
            data = json.loads(raw, parse_float=Decimal)
        except ValueError as e:
            raise CorruptSnapshotError(f"Invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise CorruptSnapshotError(
                f"Expected a list of expenses, got {type(data).__name__}"
            )

        expenses = []
        seen_ids = set()
        skipped = 0
        for item in data:
            try:
                expense = Expense.model_validate(item)
            except ValidationError:
                skipped += 1
                continue
            if expense.id in seen_ids:
                skipped += 1
                continue
            seen_ids.add(expense.id)
            expenses.append(expense)
        return expenses, skipped

    @staticmethod
    def encode_filters(filter_state: FilterState) -> str:
        return filter_state.model_dump_json(by_alias=True)

    @staticmethod
    def decode_filters(raw: str) -> FilterState:
        try:
            return FilterState.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptSnapshotError(str(e)) from e

    @staticmethod
    def decode_view(raw: str) -> View:
        try:
            return View(raw.strip())
        except ValueError as e:
            raise CorruptSnapshotError(f"Unknown view {raw!r}") from e

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load_expenses(self) -> list[Expense]:
        """Load the expense collection; empty list on any failure."""
        raw = self._read(self.expenses_key)
        if raw is None:
            return []
        try:
            expenses, skipped = self.decode_expenses(raw)
        except CorruptSnapshotError as e:
            self._audit_logger.log_snapshot_corrupt(self.expenses_key, str(e))
            return []
        if skipped:
            self._audit_logger.log_snapshot_corrupt(
                self.expenses_key,
                f"Dropped {skipped} invalid or duplicate expense records",
            )
        self._audit_logger.log_snapshot_loaded(self.expenses_key, len(expenses))
        return expenses

    def load_filters(self) -> FilterState:
        """Load the filter state; defaults on any failure."""
        return self._load_value(self.filters_key, self.decode_filters, FilterState)

    def load_view(self) -> View:
        """Load the active view; View.LIST on any failure."""
        return self._load_value(self.view_key, self.decode_view, lambda: View.LIST)

    def _load_value(
        self,
        key: str,
        decode: Callable[[str], T],
        default: Callable[[], T],
    ) -> T:
        raw = self._read(key)
        if raw is None:
            return default()
        try:
            value = decode(raw)
        except CorruptSnapshotError as e:
            self._audit_logger.log_snapshot_corrupt(key, str(e))
            return default()
        self._audit_logger.log_snapshot_loaded(key)
        return value

    def _read(self, key: str) -> Optional[str]:
        """Read raw text; None when missing, unreadable or when the backend fails."""
        try:
            raw = self._storage.get(key)
        except CorruptSnapshotError as e:
            self._audit_logger.log_snapshot_corrupt(key, str(e))
            return None
        except StorageUnavailableError as e:
            self._audit_logger.log_storage_unavailable("load", key, str(e))
            return None
        except StorageError as e:
            self._audit_logger.log_storage_error("load", key, str(e))
            return None

        if raw is None:
            self._audit_logger.log_snapshot_missing(key)
        return raw

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save_expenses(self, expenses: Iterable[Expense]) -> bool:
        expenses = list(expenses)
        return self._write(self.expenses_key, self.encode_expenses(expenses), len(expenses))

    def save_filters(self, filter_state: FilterState) -> bool:
        return self._write(self.filters_key, self.encode_filters(filter_state))

    def save_view(self, view: View) -> bool:
        return self._write(self.view_key, View(view).value)

    def _write(self, key: str, value: str, item_count: Optional[int] = None) -> bool:
        try:
            self._storage.set(key, value)
        except StorageUnavailableError as e:
            self._audit_logger.log_storage_unavailable("save", key, str(e))
            return False
        except StorageError as e:
            self._audit_logger.log_storage_error("save", key, str(e))
            return False
        self._audit_logger.log_snapshot_saved(key, item_count)
        return True

    # -------------------------------------------------------------------------
    # Clear
    # -------------------------------------------------------------------------

    def clear(self) -> bool:
        """
        Remove the expense and filter snapshots from storage.

        The view snapshot is kept. Returns True only if both deletes succeeded.
        """
        keys = [self.expenses_key, self.filters_key]
        ok = True
        for key in keys:
            try:
                self._storage.delete(key)
            except StorageUnavailableError as e:
                self._audit_logger.log_storage_unavailable("clear", key, str(e))
                ok = False
            except StorageError as e:
                self._audit_logger.log_storage_error("clear", key, str(e))
                ok = False
        if ok:
            self._audit_logger.log_snapshots_cleared(keys)
        return ok
