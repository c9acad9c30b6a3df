"""
Supabase Storage Implementation

DESIGN DECISION: Supabase (PostgREST over HTTP) is the shared store
because both participants use the ledger from their own devices and
the tables are simple and flat:

    users(id, name, email)
    categories(id, name)
    expenses(id, user_id, amount, category_id, created_at, split_type,
             description, paid, added_at)
    audit_events(event_id, timestamp, event_type, ...)

TRADEOFFS:
- The store is shared with other clients, so rows are parsed leniently
- No transactions (every operation is a single-row statement)
- supabase-py is synchronous; the async methods wrap it so the
  storage interface matches the in-memory backend
"""

from typing import Any, Optional
from uuid import UUID

import structlog
from supabase import Client, create_client
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from splitledger.config import SupabaseSettings, get_settings
from splitledger.models.audit import AuditEvent
from splitledger.models.ledger import Category, Expense, ExpenseCreate, User
from splitledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


# Expenses are always read with their payer and category embedded
EXPENSE_SELECT = "*, users(id, name, email), categories(id, name)"

_logger = structlog.get_logger(__name__)


class SupabaseClient:
    """
    Thin wrapper over the supabase-py client.

    Connects lazily and retries the connection with backoff.
    """

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        self._client: Optional[Client] = None
        self._settings = settings or get_settings().supabase

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Client:
        """Create the client on first use."""
        if self._client is None:
            try:
                self._client = create_client(self._settings.url, self._settings.key)
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    def table(self, name: str):
        """Query builder for a table."""
        return self.connect().table(name)

    def check_connection(self) -> bool:
        """Cheap round trip used by the settings page."""
        try:
            self.table(self._settings.users_table).select("id").limit(1).execute()
            return True
        except Exception as e:
            _logger.warning("supabase_connection_check_failed", error=str(e))
            return False


class SupabaseLedgerStorage(LedgerStorageInterface):
    """
    Supabase implementation of ledger storage.

    Inserts are not retried: a timed-out insert may have landed.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._tables = self._client.settings

    # -- users -------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_users(self) -> list[User]:
        try:
            response = (
                self._client.table(self._tables.users_table)
                .select("*")
                .order("id")
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to list users: {e}")
        return [User.model_validate(row) for row in response.data or []]

    async def add_user(self, name: str, email: Optional[str] = None) -> User:
        try:
            response = (
                self._client.table(self._tables.users_table)
                .insert({"name": name, "email": email})
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to add user: {e}")
        return User.model_validate(self._single(response, "user"))

    async def delete_user(self, user_id: int) -> bool:
        return self._delete(self._tables.users_table, user_id)

    # -- categories --------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_categories(self) -> list[Category]:
        try:
            response = (
                self._client.table(self._tables.categories_table)
                .select("*")
                .order("id")
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")
        return [Category.model_validate(row) for row in response.data or []]

    async def add_category(self, name: str) -> Category:
        try:
            response = (
                self._client.table(self._tables.categories_table)
                .insert({"name": name})
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to add category: {e}")
        return Category.model_validate(self._single(response, "category"))

    async def delete_category(self, category_id: int) -> bool:
        return self._delete(self._tables.categories_table, category_id)

    # -- expenses ----------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_expense_records(self) -> list[dict[str, Any]]:
        try:
            response = (
                self._client.table(self._tables.expenses_table)
                .select(EXPENSE_SELECT)
                .order("added_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")
        return list(response.data or [])

    def _fetch_expense(self, expense_id: int) -> Expense:
        """Re-read one expense with its relations embedded."""
        try:
            response = (
                self._client.table(self._tables.expenses_table)
                .select(EXPENSE_SELECT)
                .eq("id", expense_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to read expense: {e}")
        if not response.data:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return Expense.model_validate(response.data[0])

    async def create_expense(self, expense: ExpenseCreate) -> Expense:
        try:
            response = (
                self._client.table(self._tables.expenses_table)
                .insert(expense.to_row())
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to create expense: {e}")
        created = self._single(response, "expense")
        return self._fetch_expense(created["id"])

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(NotFoundError),
        reraise=True,
    )
    async def update_expense(self, expense_id: int, expense: ExpenseCreate) -> Expense:
        self._update_expense_row(expense_id, expense.to_row())
        return self._fetch_expense(expense_id)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(NotFoundError),
        reraise=True,
    )
    async def set_expense_settled(self, expense_id: int, is_settled: bool) -> Expense:
        self._update_expense_row(expense_id, {"paid": is_settled})
        return self._fetch_expense(expense_id)

    async def delete_expense(self, expense_id: int) -> bool:
        return self._delete(self._tables.expenses_table, expense_id)

    def _update_expense_row(self, expense_id: int, fields: dict[str, Any]) -> None:
        try:
            response = (
                self._client.table(self._tables.expenses_table)
                .update(fields)
                .eq("id", expense_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")
        if not response.data:
            raise NotFoundError(f"Expense not found: {expense_id}")

    # -- helpers -----------------------------------------------------------

    def _delete(self, table: str, row_id: int) -> bool:
        try:
            response = self._client.table(table).delete().eq("id", row_id).execute()
        except Exception as e:
            raise StorageError(f"Failed to delete from {table}: {e}")
        return bool(response.data)

    @staticmethod
    def _single(response, entity: str) -> dict[str, Any]:
        if not response.data:
            raise StorageError(f"Store returned no {entity} row after insert")
        return response.data[0]


class SupabaseAuditStorage(AuditStorageInterface):
    """
    Supabase implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._table = self._client.settings.audit_table

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._client.table(self._table).insert(event.to_row()).execute()
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            _logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .eq("correlation_id", str(correlation_id))
                .order("timestamp")
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        return self._rows_to_events(response.data or [])

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        return self._rows_to_events(response.data or [])

    def _rows_to_events(self, rows: list[dict]) -> list[AuditEvent]:
        events = []
        for row in rows:
            try:
                events.append(AuditEvent.from_row(row))
            except Exception:
                continue  # Skip malformed rows
        return events
