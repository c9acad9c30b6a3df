"""
Main Orchestrator for Split Ledger

This module ties together storage, validation, settlement and auditing,
and defines the end-to-end flows for:
1. Loading the ledger (fetch → reconcile → snapshot)
2. Changing it (validate → save → audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The balance is recomputed from the freshly loaded rows every time
- Nothing is saved that failed validation
- The viewer is resolved once per load and carried in the snapshot
- Every mutation is audited
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from splitledger.audit import AuditLogger, create_correlation_id
from splitledger.models.ledger import (
    BalanceReport,
    BalanceSummary,
    Category,
    Expense,
    ExpenseCreate,
    User,
    ValidationResult,
)
from splitledger.queries import sort_newest_first
from splitledger.services.preferences import PrimaryViewerStore
from splitledger.services.storage import (
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    StorageError,
    SupabaseAuditStorage,
    SupabaseClient,
    SupabaseLedgerStorage,
    parse_expense_records,
)
from splitledger.settlement import participants, reconcile
from splitledger.validation import ExpenseValidator


_logger = structlog.get_logger(__name__)


class LedgerSnapshot(BaseModel):
    """Everything one render of the ledger needs, loaded together."""

    users: list[User] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    expenses: list[Expense] = Field(
        default_factory=list,
        description="Parsed expenses, newest recorded first"
    )
    user1_id: Optional[int] = None
    user2_id: Optional[int] = None
    primary_viewer_id: Optional[int] = None
    report: BalanceReport = Field(default_factory=BalanceReport)

    @property
    def balance(self) -> BalanceSummary:
        return self.report.summary

    def user_name(self, user_id: Optional[int]) -> Optional[str]:
        for user in self.users:
            if user.id == user_id:
                return user.name
        return None

    @property
    def primary_viewer_name(self) -> str:
        """Greeting name: the viewer, else the first user, else 'User'."""
        name = self.user_name(self.primary_viewer_id)
        if name:
            return name
        return self.users[0].name if self.users else "User"


class LedgerFlow:
    """
    Orchestrates reads and writes against the shared ledger.

    Flow for every change:
    1. Validate against the current users/categories/expenses
    2. Save to storage
    3. Audit
    The caller reloads afterwards to get a fresh balance.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        preferences: Optional[PrimaryViewerStore] = None,
        validator: Optional[ExpenseValidator] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._preferences = preferences
        self._validator = validator or ExpenseValidator()

    @property
    def storage(self) -> LedgerStorageInterface:
        return self._storage

    @property
    def validator(self) -> ExpenseValidator:
        return self._validator

    async def _report_storage_error(self, error: StorageError, correlation_id: UUID) -> None:
        if self._audit_logger:
            await self._audit_logger.log_external_service_error(
                service="ledger_storage",
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def load(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSnapshot:
        """
        Fetch users, categories and expenses concurrently and reconcile.

        The balance is computed from the raw rows, so rows that fail to
        parse still show up in the report's skipped list.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            users, categories, records = await asyncio.gather(
                self._storage.list_users(),
                self._storage.list_categories(),
                self._storage.list_expense_records(),
            )
        except StorageError as e:
            await self._report_storage_error(e, correlation_id)
            raise

        user1_id, user2_id = participants(users)
        report = reconcile(records, user1_id, user2_id)
        viewer_id = self._preferences.resolve(users) if self._preferences else None

        if self._audit_logger:
            await self._audit_logger.log_balance(report, correlation_id)

        return LedgerSnapshot(
            users=users,
            categories=categories,
            expenses=sort_newest_first(parse_expense_records(records)),
            user1_id=user1_id,
            user2_id=user2_id,
            primary_viewer_id=viewer_id,
            report=report,
        )

    async def _validate(
        self,
        draft: ExpenseCreate,
        exclude_expense_id: Optional[int],
        correlation_id: UUID,
    ) -> ValidationResult:
        try:
            users, categories, existing = await asyncio.gather(
                self._storage.list_users(),
                self._storage.list_categories(),
                self._storage.list_expenses(),
            )
        except StorageError as e:
            await self._report_storage_error(e, correlation_id)
            raise

        existing = [e for e in existing if e.id != exclude_expense_id]
        result = self._validator.validate(draft, users, categories, existing)

        if not result.is_valid and self._audit_logger:
            await self._audit_logger.log_expense_rejected(
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                    if i.severity == "error"
                ],
                correlation_id=correlation_id,
            )
        return result

    async def add_expense(
        self,
        draft: ExpenseCreate,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Expense], ValidationResult]:
        """
        Validate and save a new expense.

        Returns:
            (saved_expense, validation_result). saved_expense is None
            when validation found errors.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = await self._validate(draft, None, correlation_id)
        if not result.is_valid:
            return None, result

        try:
            expense = await self._storage.create_expense(draft)
        except StorageError as e:
            await self._report_storage_error(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_created(
                expense_id=expense.id,
                payer_id=expense.payer_id,
                amount=str(expense.amount),
                split_type=expense.split_type,
                correlation_id=correlation_id,
            )
        return expense, result

    async def replace_expense(
        self,
        expense_id: int,
        draft: ExpenseCreate,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Expense], ValidationResult]:
        """Validate and fully replace an existing expense."""
        correlation_id = correlation_id or create_correlation_id()

        result = await self._validate(draft, expense_id, correlation_id)
        if not result.is_valid:
            return None, result

        try:
            expense = await self._storage.update_expense(expense_id, draft)
        except StorageError as e:
            await self._report_storage_error(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_replaced(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
        return expense, result

    async def toggle_settled(
        self,
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Flip the settled flag of an expense."""
        correlation_id = correlation_id or create_correlation_id()
        is_settled = not expense.is_settled

        try:
            updated = await self._storage.set_expense_settled(expense.id, is_settled)
        except StorageError as e:
            await self._report_storage_error(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_settled_changed(
                expense_id=expense.id,
                is_settled=is_settled,
                correlation_id=correlation_id,
            )
        return updated

    async def delete_expense(
        self,
        expense_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete an expense. Returns False if it was already gone."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            deleted = await self._storage.delete_expense(expense_id)
        except StorageError as e:
            await self._report_storage_error(e, correlation_id)
            raise

        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def set_primary_viewer(
        self,
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Remember which participant is viewing on this device."""
        if self._preferences is None:
            raise RuntimeError("No preference store configured")
        self._preferences.set(user_id)
        if self._audit_logger:
            await self._audit_logger.log_primary_viewer_changed(
                user_id=user_id,
                correlation_id=correlation_id,
            )

    async def add_user(self, name: str, email: Optional[str] = None) -> User:
        return await self._storage.add_user(name, email)

    async def delete_user(self, user_id: int) -> bool:
        return await self._storage.delete_user(user_id)

    async def add_category(self, name: str) -> Category:
        return await self._storage.add_category(name)

    async def delete_category(self, category_id: int) -> bool:
        return await self._storage.delete_category(category_id)


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerFlow, Optional[SupabaseClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to Supabase.
                    Set to False to run against in-memory storage.

    Returns:
        (ledger_flow, supabase_client)
    """
    supabase_client = None
    storage: LedgerStorageInterface

    if use_storage:
        try:
            supabase_client = SupabaseClient()
            storage = SupabaseLedgerStorage(supabase_client)
            audit_logger = AuditLogger(SupabaseAuditStorage(supabase_client))
        except Exception as e:
            # Storage not configured - continue without it
            _logger.warning("storage_not_configured", error=str(e))
            supabase_client = None
            storage = InMemoryLedgerStorage()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger()  # Local-only logging

    ledger_flow = LedgerFlow(
        storage=storage,
        audit_logger=audit_logger,
        preferences=PrimaryViewerStore(),
    )

    return ledger_flow, supabase_client
