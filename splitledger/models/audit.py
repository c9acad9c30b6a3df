"""
Audit Models for Split Ledger

Every change to the shared ledger is logged. Two people edit the same
data, so "who changed what, when" has to be answerable:
1. Traceability of every expense mutation
2. Visibility into records the balance left out
3. Debugging information when the store misbehaves

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expense lifecycle
    EXPENSE_CREATED = "expense_created"
    EXPENSE_REPLACED = "expense_replaced"
    EXPENSE_SETTLED = "expense_settled"
    EXPENSE_REOPENED = "expense_reopened"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_REJECTED = "expense_rejected"

    # Balance
    BALANCE_COMPUTED = "balance_computed"
    RECORDS_SKIPPED = "records_skipped"

    # Preferences
    PRIMARY_VIEWER_CHANGED = "primary_viewer_changed"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


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
        default_factory=lambda: datetime.now(timezone.utc),
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
        description="Type of entity (e.g., 'expense', 'balance', 'user')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store id of the entity, as text"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one page load)"
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

    def to_row(self) -> dict:
        """
        Convert to a row for the audit table.

        details is stored as JSON text so the table needs no jsonb column.
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
            "details_json": json.dumps(self.details, default=str) if self.details else "",
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    @classmethod
    def from_row(cls, row: dict) -> "AuditEvent":
        """Inverse of to_row."""
        details_json = row.get("details_json") or ""
        return cls(
            event_id=row["event_id"],
            timestamp=row["timestamp"],
            event_type=row["event_type"],
            severity=row.get("severity") or AuditSeverity.INFO,
            entity_type=row.get("entity_type"),
            entity_id=row.get("entity_id"),
            correlation_id=row.get("correlation_id"),
            description=row.get("description") or "",
            details=json.loads(details_json) if details_json else {},
            error_message=row.get("error_message"),
            is_user_action=bool(row.get("is_user_action")),
        )


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, payer_id, "12.50", "50-50", cid)
        event = AuditEventBuilder.expense_deleted(expense_id, cid)
    """

    @staticmethod
    def expense_created(
        expense_id: int,
        payer_id: int,
        amount: str,
        split_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense recorded: {amount} ({split_type})",
            details={
                "payer_id": payer_id,
                "amount": amount,
                "split_type": split_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_replaced(
        expense_id: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REPLACED,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense {expense_id} replaced",
            is_user_action=True,
        )

    @staticmethod
    def expense_settled_changed(
        expense_id: int,
        is_settled: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = (
            AuditEventType.EXPENSE_SETTLED
            if is_settled
            else AuditEventType.EXPENSE_REOPENED
        )
        state = "settled" if is_settled else "unsettled"
        return AuditEvent(
            event_type=event_type,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense {expense_id} marked {state}",
            details={
                "is_settled": is_settled,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense {expense_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected(
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense not saved: {len(issues)} validation issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def balance_computed(
        user1_owes: float,
        user2_owes: float,
        considered_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="balance",
            correlation_id=correlation_id,
            description=f"Balance computed over {considered_count} unsettled expenses",
            details={
                "user1_owes": user1_owes,
                "user2_owes": user2_owes,
                "net_balance": user2_owes - user1_owes,
            },
        )

    @staticmethod
    def records_skipped(
        skipped: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type="balance",
            correlation_id=correlation_id,
            description=f"{len(skipped)} expense records left out of the balance",
            details={
                "skipped": skipped,
            },
        )

    @staticmethod
    def primary_viewer_changed(
        user_id: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRIMARY_VIEWER_CHANGED,
            entity_type="user",
            entity_id=str(user_id),
            correlation_id=correlation_id,
            description=f"Primary viewer set to user {user_id}",
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
