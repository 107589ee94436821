"""In-memory stores, used by tests and as a fallback when no backend is configured."""

from typing import Optional

from pagapues.models.audit import AuditEvent
from pagapues.models.ledger import LedgerState
from pagapues.services.storage.interface import (
    AuditStorageInterface,
    LedgerStoreInterface,
)


class InMemoryLedgerStore(LedgerStoreInterface):
    """Keeps a private deep copy of the last saved state."""

    def __init__(self, initial: Optional[LedgerState] = None):
        self._state = initial.model_copy(deep=True) if initial else LedgerState()
        self.save_count = 0

    def load(self) -> LedgerState:
        return self._state.model_copy(deep=True)

    def save(self, state: LedgerState) -> None:
        self._state = state.model_copy(deep=True)
        self.save_count += 1


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
