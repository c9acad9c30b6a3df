"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Supabase is the shared backend; the in-memory backend has the same contract.
"""

from splitledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    parse_expense_records,
)
from splitledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)
from splitledger.services.storage.supabase_store import (
    SupabaseAuditStorage,
    SupabaseClient,
    SupabaseLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Helpers
    "parse_expense_records",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    # Supabase implementation
    "SupabaseAuditStorage",
    "SupabaseClient",
    "SupabaseLedgerStorage",
]
