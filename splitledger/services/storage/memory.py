"""
In-Memory Storage Implementation

Keeps rows in dicts shaped exactly like the Supabase tables, so the
same parsing and balance code runs against it. Used for tests and
when no store is configured.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from splitledger.models.audit import AuditEvent
from splitledger.models.ledger import Category, Expense, ExpenseCreate, User
from splitledger.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage held in process memory."""

    def __init__(
        self,
        users: Optional[list[User]] = None,
        categories: Optional[list[Category]] = None,
    ):
        self._users: dict[int, dict[str, Any]] = {}
        self._categories: dict[int, dict[str, Any]] = {}
        self._expenses: dict[int, dict[str, Any]] = {}
        self._next_ids = {"users": 1, "categories": 1, "expenses": 1}

        for user in users or []:
            self._users[user.id] = user.model_dump()
            self._bump("users", user.id)
        for category in categories or []:
            self._categories[category.id] = category.model_dump()
            self._bump("categories", category.id)

    def _bump(self, table: str, used_id: int) -> None:
        self._next_ids[table] = max(self._next_ids[table], used_id + 1)

    def _new_id(self, table: str) -> int:
        new_id = self._next_ids[table]
        self._next_ids[table] += 1
        return new_id

    def seed_expense_record(self, row: dict[str, Any]) -> None:
        """
        Insert a row verbatim, bypassing validation.

        Mirrors rows written to the shared store by other clients.
        """
        row = copy.deepcopy(row)
        row.setdefault("id", self._new_id("expenses"))
        if isinstance(row["id"], int):
            self._bump("expenses", row["id"])
        self._expenses[row["id"]] = row

    # -- users -------------------------------------------------------------

    async def list_users(self) -> list[User]:
        return [User.model_validate(self._users[k]) for k in sorted(self._users)]

    async def add_user(self, name: str, email: Optional[str] = None) -> User:
        user = User(id=self._new_id("users"), name=name, email=email)
        self._users[user.id] = user.model_dump()
        return user

    async def delete_user(self, user_id: int) -> bool:
        return self._users.pop(user_id, None) is not None

    # -- categories --------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        return [Category.model_validate(self._categories[k]) for k in sorted(self._categories)]

    async def add_category(self, name: str) -> Category:
        category = Category(id=self._new_id("categories"), name=name)
        self._categories[category.id] = category.model_dump()
        return category

    async def delete_category(self, category_id: int) -> bool:
        return self._categories.pop(category_id, None) is not None

    # -- expenses ----------------------------------------------------------

    def _with_relations(self, row: dict[str, Any]) -> dict[str, Any]:
        """Attach related rows the way the store embeds them."""
        row = copy.deepcopy(row)
        row["users"] = copy.deepcopy(self._users.get(row.get("user_id")))
        row["categories"] = copy.deepcopy(self._categories.get(row.get("category_id")))
        return row

    async def list_expense_records(self) -> list[dict[str, Any]]:
        rows = [self._with_relations(row) for row in self._expenses.values()]
        rows.sort(
            key=lambda r: (str(r.get("added_at") or ""), str(r.get("id"))),
            reverse=True,
        )
        return rows

    def _get_expense(self, expense_id: int) -> Expense:
        row = self._expenses.get(expense_id)
        if row is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return Expense.model_validate(self._with_relations(row))

    async def create_expense(self, expense: ExpenseCreate) -> Expense:
        expense_id = self._new_id("expenses")
        self._expenses[expense_id] = {
            "id": expense_id,
            **expense.to_row(),
            "added_at": datetime.now(timezone.utc).isoformat(),
        }
        return self._get_expense(expense_id)

    async def update_expense(self, expense_id: int, expense: ExpenseCreate) -> Expense:
        if expense_id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense_id}")
        self._expenses[expense_id].update(expense.to_row())
        return self._get_expense(expense_id)

    async def set_expense_settled(self, expense_id: int, is_settled: bool) -> Expense:
        if expense_id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense_id}")
        self._expenses[expense_id]["paid"] = is_settled
        return self._get_expense(expense_id)

    async def delete_expense(self, expense_id: int) -> bool:
        return self._expenses.pop(expense_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
