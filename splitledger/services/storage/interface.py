"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Use Supabase as the shared store both participants see
2. Use in-memory storage for testing and offline use
3. Keep the balance and validation logic decoupled from the store

The interface is intentionally simple - flat users, categories and
expenses, the operations the ledger actually performs.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from splitledger.models.audit import AuditEvent
from splitledger.models.ledger import Category, Expense, ExpenseCreate, User


_logger = structlog.get_logger(__name__)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    Expense rows are exposed raw (list_expense_records) as well as
    parsed (list_expenses), so the balance can account for rows that
    do not parse.
    """

    # -- users -------------------------------------------------------------

    @abstractmethod
    async def list_users(self) -> list[User]:
        """All users, ascending by id."""
        pass

    @abstractmethod
    async def add_user(self, name: str, email: Optional[str] = None) -> User:
        """
        Create a user.

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool:
        """Delete a user. Returns False if there was nothing to delete."""
        pass

    # -- categories --------------------------------------------------------

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """All categories, ascending by id."""
        pass

    @abstractmethod
    async def add_category(self, name: str) -> Category:
        pass

    @abstractmethod
    async def delete_category(self, category_id: int) -> bool:
        pass

    # -- expenses ----------------------------------------------------------

    @abstractmethod
    async def list_expense_records(self) -> list[dict[str, Any]]:
        """
        Every expense row as stored, newest recorded first.

        Rows carry the store's column names and the embedded
        "users" / "categories" relations.
        """
        pass

    @abstractmethod
    async def create_expense(self, expense: ExpenseCreate) -> Expense:
        """
        Insert an expense.

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_expense(self, expense_id: int, expense: ExpenseCreate) -> Expense:
        """
        Replace every field of an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def set_expense_settled(self, expense_id: int, is_settled: bool) -> Expense:
        """
        Set the settled flag.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: int) -> bool:
        """Delete an expense. Returns False if there was nothing to delete."""
        pass

    async def list_expenses(self) -> list[Expense]:
        """
        Parsed expenses, newest recorded first.

        Rows that don't parse are logged and left out; the settlement
        engine reports them separately from the raw records.
        """
        return parse_expense_records(await self.list_expense_records())


def parse_expense_records(rows: list[dict[str, Any]]) -> list[Expense]:
    """Parse stored expense rows, logging and dropping the ones that don't fit."""
    expenses = []
    for row in rows:
        try:
            expenses.append(Expense.model_validate(row))
        except ValidationError as e:
            _logger.warning(
                "expense_row_unparseable",
                expense_id=row.get("id"),
                error_count=e.error_count(),
            )
    return expenses


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Related events in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
