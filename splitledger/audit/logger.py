"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Traceability of who changed which expense
2. Visibility into records the balance had to leave out
3. Debugging capability when the store misbehaves

The audit logger:
- Is async so it fits the storage calls around it
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from splitledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from splitledger.models.ledger import BalanceReport
from splitledger.services.storage import AuditStorageInterface


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (for persistence), when one is configured
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
        self._logger = structlog.get_logger("splitledger.audit")

    async def log(self, event: AuditEvent) -> bool:
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
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_created(
        self,
        expense_id: int,
        payer_id: int,
        amount: str,
        split_type: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.expense_created(
            expense_id=expense_id,
            payer_id=payer_id,
            amount=amount,
            split_type=split_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_replaced(
        self,
        expense_id: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_replaced(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_settled_changed(
        self,
        expense_id: int,
        is_settled: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_settled_changed(
            expense_id=expense_id,
            is_settled=is_settled,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_rejected(
        self,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_rejected(
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_balance(
        self,
        report: BalanceReport,
        correlation_id: UUID,
    ) -> None:
        """Log a computed balance, plus a warning event if records were skipped."""
        summary = report.summary
        await self.log(AuditEventBuilder.balance_computed(
            user1_owes=summary.user1_owes,
            user2_owes=summary.user2_owes,
            considered_count=report.considered_count,
            correlation_id=correlation_id,
        ))
        if report.skipped:
            await self.log(AuditEventBuilder.records_skipped(
                skipped=[s.model_dump(mode="json") for s in report.skipped],
                correlation_id=correlation_id,
            ))

    async def log_primary_viewer_changed(
        self,
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.primary_viewer_changed(
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a page load or
    a form submit). Pass it through all subsequent operations.
    """
    return uuid4()
