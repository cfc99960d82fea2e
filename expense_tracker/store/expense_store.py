"""
Expense Store

The authoritative, ordered collection of expenses.

GUARANTEES:
- Records are only created through add(), after validation
- Records are only destroyed through remove() or clear()
- No two records share an id
- created_at never goes backwards in insertion order

The store performs no I/O. Persistence happens in the orchestrator after
each mutation.
"""

from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from expense_tracker.models.expense import Expense, ExpenseDraft, ValidationResult
from expense_tracker.validation import ExpenseValidator


class ExpenseStore:
    """
    Owns expense identity and creation timestamps.

    Read access goes through the `expenses` tuple, so callers cannot
    mutate the collection behind the store's back.
    """

    def __init__(
        self,
        expenses: Iterable[Expense] = (),
        validator: Optional[ExpenseValidator] = None,
    ):
        self._validator = validator or ExpenseValidator()
        self._expenses: dict[int, Expense] = {}
        self._last_id = 0
        self._last_created_at: Optional[datetime] = None
        self.last_validation: Optional[ValidationResult] = None

        for expense in expenses:
            if expense.id in self._expenses:
                continue
            self._append(expense)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Expense],
        validator: Optional[ExpenseValidator] = None,
    ) -> "ExpenseStore":
        """Hydrate from persisted records. Duplicate ids keep the first record."""
        return cls(records, validator=validator)

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return tuple(self._expenses.values())

    def __len__(self) -> int:
        return len(self._expenses)

    def __iter__(self) -> Iterator[Expense]:
        return iter(self.expenses)

    def __contains__(self, expense_id: object) -> bool:
        return expense_id in self._expenses

    def get(self, expense_id: int) -> Optional[Expense]:
        return self._expenses.get(expense_id)

    def add(
        self,
        draft: ExpenseDraft,
        now: Optional[datetime] = None,
    ) -> Optional[Expense]:
        """
        Validate a draft and append it as a new expense.

        Returns the created Expense, or None when the draft was rejected.
        A rejected draft leaves the collection untouched; the reasons are
        available in `last_validation`.
        """
        now = now or datetime.now().astimezone()
        result = self._validator.validate(draft, today=now.date())
        self.last_validation = result
        if not result.is_valid:
            return None

        # Naive times are local wall-clock times
        created_at = now.astimezone(timezone.utc)
        expense = Expense(
            id=self._next_id(created_at),
            created_at=self._next_created_at(created_at),
            **result.cleaned_data,
        )
        self._append(expense)
        return expense

    def remove(self, expense_id: int) -> bool:
        """
        Delete the expense with this id.

        Returns True if something was removed. Unknown ids are a no-op.
        """
        return self._expenses.pop(expense_id, None) is not None

    def clear(self) -> int:
        """
        Remove every expense. Returns how many were removed.

        Irreversible. Asking the user for confirmation is the caller's job.
        """
        count = len(self._expenses)
        self._expenses.clear()
        return count

    def _append(self, expense: Expense) -> None:
        self._expenses[expense.id] = expense
        self._last_id = max(self._last_id, expense.id)
        if self._last_created_at is None or expense.created_at > self._last_created_at:
            self._last_created_at = expense.created_at

    def _next_id(self, now: datetime) -> int:
        # Millisecond timestamp, bumped past the highest id ever seen
        candidate = int(now.timestamp() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        return candidate

    def _next_created_at(self, now: datetime) -> datetime:
        if self._last_created_at is not None and now < self._last_created_at:
            return self._last_created_at
        return now
