"""
Audit Logger

DESIGN DECISION: Every user action and every persistence attempt is logged.
This provides:
1. Traceability of additions, deletions and clears
2. A visible record of storage failures, which never reach the user
3. Debugging capability for corrupt snapshots

The audit logger:
- Is synchronous, like the rest of the tracker
- Never raises (a logging failure must not break a user action)
"""

from typing import Optional

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Keeps the most recent events in memory so the UI and tests
    can inspect what happened during the session.
    """

    def __init__(self, max_events: int = 500):
        self._logger = structlog.get_logger("expense_tracker.audit")
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._events.append(event)
        if len(self._events) > self._max_events:
            del self._events[: len(self._events) - self._max_events]

        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            structlog.get_logger().error("audit_log_failed", error=str(e))

    def log_expense_added(
        self,
        expense_id: int,
        amount: str,
        category: str,
        payment_mode: str,
    ) -> None:
        """Log a successful add."""
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            amount=amount,
            category=category,
            payment_mode=payment_mode,
        ))

    def log_expense_deleted(self, expense_id: int, found: bool) -> None:
        self.log(AuditEventBuilder.expense_deleted(expense_id, found))

    def log_expenses_cleared(self, count: int) -> None:
        self.log(AuditEventBuilder.expenses_cleared(count))

    def log_validation_failed(self, issues: list[dict]) -> None:
        """Log a rejected draft."""
        self.log(AuditEventBuilder.validation_failed(issues))

    def log_filters_changed(self, filters: dict) -> None:
        self.log(AuditEventBuilder.filters_changed(filters))

    def log_view_changed(self, view: str) -> None:
        self.log(AuditEventBuilder.view_changed(view))

    def log_snapshot_loaded(self, key: str, item_count: Optional[int] = None) -> None:
        self.log(AuditEventBuilder.snapshot_loaded(key, item_count))

    def log_snapshot_missing(self, key: str) -> None:
        self.log(AuditEventBuilder.snapshot_missing(key))

    def log_snapshot_corrupt(self, key: str, error_message: str) -> None:
        """Log a snapshot that could not be parsed or validated."""
        self.log(AuditEventBuilder.snapshot_corrupt(key, error_message))

    def log_snapshot_saved(self, key: str, item_count: Optional[int] = None) -> None:
        self.log(AuditEventBuilder.snapshot_saved(key, item_count))

    def log_snapshots_cleared(self, keys: list[str]) -> None:
        self.log(AuditEventBuilder.snapshots_cleared(keys))

    def log_storage_unavailable(
        self,
        operation: str,
        key: str,
        error_message: str,
    ) -> None:
        """Log storage that cannot be reached at all."""
        self.log(AuditEventBuilder.storage_unavailable(operation, key, error_message))

    def log_storage_error(
        self,
        operation: str,
        key: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(operation, key, error_message))
