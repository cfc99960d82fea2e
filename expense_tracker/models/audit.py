"""
Audit Models for the Expense Tracker

Every user action and every persistence attempt is logged as an
AuditEvent. This provides:
1. Traceability of what was added, deleted or cleared
2. Visibility into storage problems that are otherwise silent
3. Debugging information when a snapshot fails to load

DESIGN DECISION: Persistence failures never surface as exceptions to the
user. The audit trail is where they show up instead.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expense store
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSES_CLEARED = "expenses_cleared"
    VALIDATION_FAILED = "validation_failed"

    # Filters and view
    FILTERS_CHANGED = "filters_changed"
    VIEW_CHANGED = "view_changed"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_MISSING = "snapshot_missing"
    SNAPSHOT_CORRUPT = "snapshot_corrupt"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOTS_CLEARED = "snapshots_cleared"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is the expense id for expense events and the
    snapshot key for persistence events.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, amount, category)
        event = AuditEventBuilder.snapshot_corrupt(key, error)
    """

    @staticmethod
    def expense_added(
        expense_id: int,
        amount: str,
        category: str,
        payment_mode: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=str(expense_id),
            description=f"Expense added: {category} - {amount}",
            details={
                "amount": amount,
                "category": category,
                "payment_mode": payment_mode,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(expense_id: int, found: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=str(expense_id),
            description=(
                "Expense deleted" if found else "Delete requested for unknown expense"
            ),
            details={"found": found},
            is_user_action=True,
        )

    @staticmethod
    def expenses_cleared(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            description=f"All expenses cleared ({count} removed)",
            details={"removed_count": count},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            description=f"Expense rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def filters_changed(filters: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FILTERS_CHANGED,
            severity=AuditSeverity.DEBUG,
            entity_type="filters",
            description="Filters changed",
            details={"filters": filters},
            is_user_action=True,
        )

    @staticmethod
    def view_changed(view: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VIEW_CHANGED,
            severity=AuditSeverity.DEBUG,
            entity_type="view",
            entity_id=view,
            description=f"View changed to {view}",
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(key: str, item_count: Optional[int] = None) -> AuditEvent:
        details = {} if item_count is None else {"item_count": item_count}
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            entity_id=key,
            description=f"Loaded snapshot {key}",
            details=details,
        )

    @staticmethod
    def snapshot_missing(key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_MISSING,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            entity_id=key,
            description=f"No stored snapshot for {key}, using defaults",
        )

    @staticmethod
    def snapshot_corrupt(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CORRUPT,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            entity_id=key,
            description=f"Stored snapshot {key} is invalid, using defaults",
            error_message=error_message,
        )

    @staticmethod
    def snapshot_saved(key: str, item_count: Optional[int] = None) -> AuditEvent:
        details = {} if item_count is None else {"item_count": item_count}
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            entity_id=key,
            description=f"Saved snapshot {key}",
            details=details,
        )

    @staticmethod
    def snapshots_cleared(keys: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOTS_CLEARED,
            entity_type="snapshot",
            description="Removed stored snapshots",
            details={"keys": keys},
        )

    @staticmethod
    def storage_unavailable(operation: str, key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_UNAVAILABLE,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            entity_id=key,
            description=f"Storage unavailable during {operation}; continuing in memory",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def storage_error(operation: str, key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            entity_id=key,
            description=f"Storage {operation} failed for {key}",
            error_message=error_message,
            details={"operation": operation},
        )
