"""
Audit Models for DzBudget

Every change to the budget is logged for audit purposes.
This provides:
1. Traceability of what was added, deleted or changed, and when
2. Debugging information when things go wrong
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


DESCRIPTION_MAX_LENGTH = 500


def _clip(text: str, limit: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Shorten free text so an event can always be built."""
    return text if len(text) <= limit else text[: limit - 3] + "..."


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every kind of state change has its own event type.
    """
    # State lifecycle
    STATE_LOADED = "state_loaded"
    STATE_SAVED = "state_saved"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REJECTED = "transaction_rejected"
    TRANSACTION_DELETED = "transaction_deleted"

    # Settings
    CATEGORY_LIMIT_UPDATED = "category_limit_updated"
    SAVINGS_GOAL_UPDATED = "savings_goal_updated"

    # Soft failures (unknown ids)
    ENTITY_NOT_FOUND = "entity_not_found"

    # AI insights
    INSIGHT_REQUESTED = "insight_requested"
    INSIGHT_GENERATED = "insight_generated"
    INSIGHT_FAILED = "insight_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'insight')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one user action)"
    )

    description: str = Field(
        ...,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
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
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Single-line JSON used by the append-only audit file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx_id, "Courses", "1200", "EXPENSE", cid)
        event = AuditEventBuilder.savings_goal_updated("100000", cid)
    """

    @staticmethod
    def state_loaded(
        category_count: int,
        transaction_count: int,
        defaults_used: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            description=(
                f"State loaded: {category_count} categories, "
                f"{transaction_count} transactions"
            ),
            details={
                "category_count": category_count,
                "transaction_count": transaction_count,
                "defaults_used": defaults_used,
            },
        )

    @staticmethod
    def state_saved(
        keys: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"State saved: {', '.join(keys) or 'nothing changed'}",
            details={"keys": keys},
        )

    @staticmethod
    def transaction_added(
        transaction_id: UUID,
        description: str,
        amount: str,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=_clip(f"Transaction added: {_clip(description, 200)} - {amount} DZD"),
            details={
                "amount": amount,
                "type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def category_limit_updated(
        category_id: str,
        old_limit: str,
        new_limit: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_LIMIT_UPDATED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=_clip(f"Category limit changed: {old_limit} -> {new_limit}"),
            details={
                "old_limit": old_limit,
                "new_limit": new_limit,
            },
            is_user_action=True,
        )

    @staticmethod
    def savings_goal_updated(
        goal: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_GOAL_UPDATED,
            entity_type="savings_goal",
            correlation_id=correlation_id,
            description=_clip(f"Savings goal set to {goal} DZD"),
            details={"goal": goal},
            is_user_action=True,
        )

    @staticmethod
    def entity_not_found(
        entity_type: str,
        entity_id: str,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=_clip(f"{operation} ignored: unknown {entity_type} {entity_id}"),
            details={"operation": operation},
        )

    @staticmethod
    def insight_requested(
        language: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_REQUESTED,
            entity_type="insight",
            correlation_id=correlation_id,
            description=f"Budget insight requested ({language})",
            details={
                "language": language,
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def insight_generated(
        language: str,
        length: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_GENERATED,
            entity_type="insight",
            correlation_id=correlation_id,
            description=f"Budget insight generated ({length} characters)",
            details={"language": language, "length": length},
        )

    @staticmethod
    def insight_failed(
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="insight",
            correlation_id=correlation_id,
            description="Budget insight failed, fallback message shown",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=_clip(f"System error: {error_type}"),
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
