"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. A history the group can consult when someone disputes an expense
2. Debugging capability
3. A trail of resets and deletions, which are otherwise invisible

The audit logger:
- Always writes a structured local log line
- Persists to audit storage when one is configured
- Gracefully handles failures (a broken audit sheet never blocks the ledger)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from pagapues.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from pagapues.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structured logs to stderr at `level`.

    structlog renders the JSON line; the stdlib handler only prints it.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("pagapues").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
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
        self._logger = structlog.get_logger("pagapues.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
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
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_participant_added(
        self,
        participant_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new participant."""
        self.log(AuditEventBuilder.participant_added(
            participant_id=participant_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_participant_removed(
        self,
        participant_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a participant removal."""
        self.log(AuditEventBuilder.participant_removed(
            participant_id=participant_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_expense_added(
        self,
        expense_id: str,
        description: str,
        amount: float,
        payer_id: str,
        involved_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new expense."""
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            description=description,
            amount=amount,
            payer_id=payer_id,
            involved_count=involved_count,
            correlation_id=correlation_id,
        ))

    def log_expense_deleted(
        self,
        expense_id: str,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an expense deletion."""
        self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            description=description,
            correlation_id=correlation_id,
        ))

    def log_ledger_loaded(
        self,
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.ledger_loaded(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    def log_ledger_reset(
        self,
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a full reset of the ledger."""
        self.log(AuditEventBuilder.ledger_reset(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    def log_report_generated(
        self,
        channel: str,
        settlement_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that a shareable report was produced."""
        self.log(AuditEventBuilder.report_generated(
            channel=channel,
            settlement_count=settlement_count,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed load or save."""
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
