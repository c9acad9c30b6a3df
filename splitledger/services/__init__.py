"""Services package."""

from splitledger.services.preferences import PrimaryViewerStore
from splitledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    SupabaseAuditStorage,
    SupabaseClient,
    SupabaseLedgerStorage,
)

__all__ = [
    # Preferences
    "PrimaryViewerStore",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
    "SupabaseAuditStorage",
    "SupabaseClient",
    "SupabaseLedgerStorage",
]
