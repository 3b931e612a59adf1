"""
Audit Logger

DESIGN DECISION: Every change to the budget is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of their interactions

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from dzbudget.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from dzbudget.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
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

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("dzbudget.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, limit: int = 50) -> list[dict]:
        """Newest-first audit history, empty when nothing is persisted."""
        if self._storage is None:
            return []
        return self._storage.get_recent_events(limit=limit)

    def log_state_loaded(
        self,
        category_count: int,
        transaction_count: int,
        defaults_used: list[str],
    ) -> None:
        """Log that the persisted state was read at startup."""
        self.log(AuditEventBuilder.state_loaded(
            category_count=category_count,
            transaction_count=transaction_count,
            defaults_used=defaults_used,
        ))

    def log_state_saved(
        self,
        keys: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.state_saved(keys, correlation_id))

    def log_transaction_added(
        self,
        transaction_id: UUID,
        description: str,
        amount: Decimal,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recorded transaction."""
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            description=description,
            amount=str(amount),
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        ))

    def log_transaction_rejected(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a refused transaction and why."""
        self.log(AuditEventBuilder.transaction_rejected(issues, correlation_id))

    def log_transaction_deleted(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(transaction_id, correlation_id))

    def log_category_limit_updated(
        self,
        category_id: str,
        old_limit: Decimal,
        new_limit: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.category_limit_updated(
            category_id=category_id,
            old_limit=str(old_limit),
            new_limit=str(new_limit),
            correlation_id=correlation_id,
        ))

    def log_savings_goal_updated(
        self,
        goal: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.savings_goal_updated(str(goal), correlation_id))

    def log_not_found(
        self,
        entity_type: str,
        entity_id: str,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a soft not-found (delete/update of an unknown id)."""
        self.log(AuditEventBuilder.entity_not_found(
            entity_type=entity_type,
            entity_id=entity_id,
            operation=operation,
            correlation_id=correlation_id,
        ))

    def log_insight_requested(
        self,
        language: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.insight_requested(
            language, transaction_count, correlation_id
        ))

    def log_insight_generated(
        self,
        language: str,
        length: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.insight_generated(language, length, correlation_id))

    def log_insight_failed(
        self,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an insight failure that was replaced by the fallback text."""
        self.log(AuditEventBuilder.insight_failed(
            error_code, error_message, correlation_id
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding a transaction).
    Pass it through all subsequent operations.
    """
    return uuid4()
