"""
Abstract Storage Interface

DESIGN DECISION: The ledger state lives behind a store with exactly two
operations, load() and save(). This allows us to:
1. Keep the settlement engine storage-agnostic (it only sees plain data)
2. Use in-memory storage for testing
3. Swap a local JSON file for Google Sheets without touching business logic

The whole state is saved on every change. Ledgers are small (a trip, a
shared flat) so there is no need for per-record updates.
"""

from abc import ABC, abstractmethod

from pagapues.models.audit import AuditEvent
from pagapues.models.ledger import LedgerState


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation (JSON file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load(self) -> LedgerState:
        """
        Load the persisted ledger.

        Returns:
            The stored state, or an empty state if nothing was saved yet

        Raises:
            StorageError: If the backend cannot be read or holds bad data
        """
        pass

    @abstractmethod
    def save(self, state: LedgerState) -> None:
        """
        Replace the persisted ledger with `state`.

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
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
