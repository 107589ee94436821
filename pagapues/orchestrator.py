"""
Main Orchestrator for PagaPues

This module ties together all the components around the settlement engine:
1. Ledger mutations (participants and expenses): validate -> save -> audit
2. Derived views (balances, settlements, statistics, reports)

DESIGN DECISION: The orchestrator owns the ledger state and is the only
place that writes it. The engine functions only ever receive plain
lists and are re-run from scratch on every summary; nothing is updated
incrementally.

State changes are copy-on-write: a mutation builds a new LedgerState,
saves it, and only then swaps it in. A failed save leaves the session
exactly as it was.
"""

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

import structlog

from pagapues.audit import AuditLogger, configure_logging, create_correlation_id
from pagapues.config import AppSettings, get_settings
from pagapues.engine import (
    calculate_balances,
    calculate_expense_stats,
    calculate_settlements,
)
from pagapues.models.ledger import (
    Expense,
    LedgerState,
    LedgerSummary,
    Participant,
    ValidationResult,
)
from pagapues.reports import (
    ChartData,
    ParticipantProfile,
    build_paid_chart,
    build_profiles,
    format_currency,
    generate_report_text,
    whatsapp_share_url,
)
from pagapues.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    JsonFileLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from pagapues.validation import (
    LedgerValidationError,
    LedgerValidator,
    ParticipantInUseError,
)


logger = structlog.get_logger(__name__)


class LedgerSession:
    """
    Owns one group's ledger.

    Flow for every mutation:
    1. Build the new participant/expense
    2. Validate it against the current state
    3. Save the new state through the store
    4. Record an audit event

    With strict validation (the default) invalid input raises
    LedgerValidationError and nothing is saved. Otherwise the issues are
    logged and the change goes through; the engine tolerates it.

    After a failed load() every mutation raises StorageError until a
    load() succeeds, so the store is never overwritten with partial data.
    """

    def __init__(
        self,
        store: Optional[LedgerStoreInterface] = None,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().app
        self._store = store or InMemoryLedgerStore()
        self._validator = validator or LedgerValidator(
            self._settings.min_participants_for_expense
        )
        self._audit_logger = audit_logger or AuditLogger()
        self._state = LedgerState()
        self._load_error: Optional[str] = None

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    @property
    def validator(self) -> LedgerValidator:
        return self._validator

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def state(self) -> LedgerState:
        """A copy of the current ledger; mutating it has no effect."""
        return self._state.model_copy(deep=True)

    @property
    def participants(self) -> list[Participant]:
        return self.state.participants

    @property
    def expenses(self) -> list[Expense]:
        return self.state.expenses

    def participant_name(self, participant_id: str) -> str:
        return self._state.participant_name(participant_id)

    def recent_expenses(self) -> list[Expense]:
        """Expenses, newest first."""
        return sorted(self.expenses, key=lambda e: e.date.timestamp(), reverse=True)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self, correlation_id: Optional[UUID] = None) -> LedgerState:
        """
        Replace the session state with what the store holds.

        Loaded data is validated but never rejected: it was accepted once
        already, and the engine tolerates whatever slipped through.
        """
        try:
            state = self._store.load()
        except StorageError as e:
            self._audit_logger.log_storage_error("load", str(e), correlation_id)
            self._load_error = str(e)
            raise

        result = self._validator.validate_state(state)
        if result.has_errors:
            self._audit_logger.log_validation_failed(
                entity_type="ledger",
                issues=self._issue_dicts(result),
                correlation_id=correlation_id,
            )

        self._state = state
        self._load_error = None
        self._audit_logger.log_ledger_loaded(
            participant_count=len(state.participants),
            expense_count=len(state.expenses),
            correlation_id=correlation_id,
        )
        return self.state

    def _commit(
        self,
        new_state: LedgerState,
        operation: str,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._load_error is not None:
            # Saving now would overwrite whatever the store failed to read
            message = f"Store could not be loaded, refusing to save: {self._load_error}"
            self._audit_logger.log_storage_error(operation, message, correlation_id)
            raise StorageError(message)

        try:
            self._store.save(new_state)
        except StorageError as e:
            self._audit_logger.log_storage_error(operation, str(e), correlation_id)
            raise
        self._state = new_state

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _issue_dicts(result: ValidationResult) -> list[dict]:
        return [
            {
                "field": i.field,
                "type": i.issue_type,
                "message": i.message,
                "entity_id": i.entity_id,
            }
            for i in result.issues
            if i.severity == "error"
        ]

    def _enforce(
        self,
        result: ValidationResult,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID],
    ) -> None:
        if not result.has_errors:
            return

        self._audit_logger.log_validation_failed(
            entity_type=entity_type,
            issues=self._issue_dicts(result),
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        if self._settings.strict_validation:
            raise LedgerValidationError(result)

        logger.warning(
            "invalid_input_accepted",
            entity_type=entity_type,
            entity_id=entity_id,
            errors=result.error_count,
        )

    # -------------------------------------------------------------------------
    # Participants
    # -------------------------------------------------------------------------

    def add_participant(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Participant:
        """
        Add a participant to the group.

        Raises:
            LedgerValidationError: Blank name (strict mode)
            StorageError: If the new state cannot be saved
        """
        correlation_id = correlation_id or create_correlation_id()

        participant = Participant(name=name)
        result = self._validator.validate_participant(participant, self._state)
        self._enforce(result, "participant", participant.id, correlation_id)

        new_state = LedgerState(
            participants=[*self._state.participants, participant],
            expenses=list(self._state.expenses),
        )
        self._commit(new_state, "add_participant", correlation_id)

        self._audit_logger.log_participant_added(
            participant_id=participant.id,
            name=participant.name,
            correlation_id=correlation_id,
        )
        return participant

    def remove_participant(
        self,
        participant_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Participant:
        """
        Remove a participant who is not part of any expense.

        Raises:
            NotFoundError: Unknown participant
            ParticipantInUseError: They pay for or share an expense
        """
        correlation_id = correlation_id or create_correlation_id()

        participant = self._state.get_participant(participant_id)
        if participant is None:
            raise NotFoundError(f"Participant not found: {participant_id}")

        if self._state.is_participant_in_use(participant_id):
            error = ParticipantInUseError.for_participant(participant)
            self._audit_logger.log_validation_failed(
                entity_type="participant",
                issues=self._issue_dicts(error.result),
                entity_id=participant_id,
                correlation_id=correlation_id,
            )
            raise error

        new_state = LedgerState(
            participants=[p for p in self._state.participants if p.id != participant_id],
            expenses=list(self._state.expenses),
        )
        self._commit(new_state, "remove_participant", correlation_id)

        self._audit_logger.log_participant_removed(
            participant_id=participant.id,
            name=participant.name,
            correlation_id=correlation_id,
        )
        return participant

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        description: str,
        amount: float,
        payer_id: str,
        involved_ids: Optional[Iterable[str]] = None,
        date: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Record an expense split equally among `involved_ids`.

        Args:
            description: What was paid for
            amount: Total paid
            payer_id: Participant who paid
            involved_ids: Participants sharing it; everyone when omitted
            date: When it happened; now when omitted

        Raises:
            LedgerValidationError: Invalid expense (strict mode)
            StorageError: If the new state cannot be saved
        """
        correlation_id = correlation_id or create_correlation_id()

        if involved_ids is None:
            involved = [p.id for p in self._state.participants]
        else:
            involved = list(involved_ids)

        fields = {
            "description": description,
            "amount": float(amount),
            "payer_id": payer_id,
            "involved_ids": involved,
        }
        if date is not None:
            fields["date"] = date
        expense = Expense(**fields)

        result = self._validator.validate_expense(expense, self._state)
        self._enforce(result, "expense", expense.id, correlation_id)

        new_state = LedgerState(
            participants=list(self._state.participants),
            expenses=[*self._state.expenses, expense],
        )
        self._commit(new_state, "add_expense", correlation_id)

        self._audit_logger.log_expense_added(
            expense_id=expense.id,
            description=expense.description,
            amount=expense.amount,
            payer_id=expense.payer_id,
            involved_count=len(expense.involved_ids),
            correlation_id=correlation_id,
        )
        return expense

    def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Delete an expense.

        Raises:
            NotFoundError: Unknown expense
        """
        correlation_id = correlation_id or create_correlation_id()

        expense = self._state.get_expense(expense_id)
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        new_state = LedgerState(
            participants=list(self._state.participants),
            expenses=[e for e in self._state.expenses if e.id != expense_id],
        )
        self._commit(new_state, "delete_expense", correlation_id)

        self._audit_logger.log_expense_deleted(
            expense_id=expense.id,
            description=expense.description,
            correlation_id=correlation_id,
        )
        return expense

    def reset(self, correlation_id: Optional[UUID] = None) -> None:
        """Remove every participant and expense."""
        correlation_id = correlation_id or create_correlation_id()

        participant_count = len(self._state.participants)
        expense_count = len(self._state.expenses)

        self._commit(LedgerState(), "reset", correlation_id)

        self._audit_logger.log_ledger_reset(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def summary(self) -> LedgerSummary:
        """Recompute balances, settlements and statistics from scratch."""
        participants = self._state.participants
        expenses = self._state.expenses

        balances = calculate_balances(participants, expenses)
        settlements = calculate_settlements(
            balances, epsilon=self._settings.settlement_epsilon
        )
        stats = calculate_expense_stats(participants, expenses)

        logger.debug(
            "summary_computed",
            participants=len(participants),
            expenses=len(expenses),
            settlements=len(settlements),
        )

        return LedgerSummary(balances=balances, settlements=settlements, stats=stats)

    def format_money(self, amount: float) -> str:
        """Format an amount with the configured currency style."""
        return format_currency(
            amount,
            symbol=self._settings.currency_symbol,
            thousands_separator=self._settings.thousands_separator,
        )

    def report_text(
        self,
        channel: str = "clipboard",
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Shareable summary of who owes whom."""
        summary = self.summary()
        text = generate_report_text(
            self._state.participants,
            summary.settlements,
            summary.stats,
            title=self._settings.app_title,
            money=self.format_money,
        )
        self._audit_logger.log_report_generated(
            channel=channel,
            settlement_count=len(summary.settlements),
            correlation_id=correlation_id,
        )
        return text

    def share_url(self, correlation_id: Optional[UUID] = None) -> str:
        """WhatsApp link carrying the report text."""
        return whatsapp_share_url(self.report_text("whatsapp", correlation_id))

    def profiles(self) -> list[ParticipantProfile]:
        summary = self.summary()
        return build_profiles(self._state.participants, self._state.expenses, summary.balances)

    def paid_chart(self) -> ChartData:
        return build_paid_chart(self._state.participants, self._state.expenses)


def create_store(
    settings: AppSettings,
) -> tuple[LedgerStoreInterface, AuditLogger]:
    """Build the configured ledger store and a matching audit logger."""
    backend = settings.storage_backend

    if backend == "google_sheets":
        client = GoogleSheetsClient()
        return (
            GoogleSheetsLedgerStore(client),
            AuditLogger(GoogleSheetsAuditStorage(client)),
        )
    if backend == "json":
        return JsonFileLedgerStore(settings.storage_path), AuditLogger(InMemoryAuditStorage())
    return InMemoryLedgerStore(), AuditLogger(InMemoryAuditStorage())


def create_app_components(
    use_storage: bool = True,
) -> LedgerSession:
    """
    Factory function to create a ready-to-use ledger session.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to keep everything in memory.

    Returns:
        A LedgerSession with its state already loaded
    """
    settings = get_settings().app
    configure_logging(settings.log_level)

    store = None
    audit_logger = None
    setup_error = None

    if use_storage:
        try:
            store, audit_logger = create_store(settings)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning(
                "storage_not_configured",
                backend=settings.storage_backend,
                error=str(e),
            )
            setup_error = e

    if store is None:
        store = InMemoryLedgerStore()
        audit_logger = AuditLogger(InMemoryAuditStorage())
        if setup_error is not None:
            audit_logger.log_error(
                error_type="storage_not_configured",
                error_message=str(setup_error),
                details={"backend": settings.storage_backend},
            )

    session = LedgerSession(
        store=store,
        audit_logger=audit_logger,
        settings=settings,
    )
    session.load()
    return session
