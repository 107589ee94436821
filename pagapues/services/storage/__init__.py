"""
Storage Services Package

Provides the abstract store interfaces and their implementations:
in-memory, a local JSON file and Google Sheets.
"""

from pagapues.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from pagapues.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)
from pagapues.services.storage.json_file import JsonFileLedgerStore
from pagapues.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Local implementations
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
