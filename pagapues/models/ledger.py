"""
Core Data Models for PagaPues

These models define the schemas for everything flowing into and out of
the settlement engine:
1. Participant and Expense are supplied by the ledger session
2. Balance, Settlement and ExpenseStats are produced by the engine
3. LedgerState is the unit the storage layer loads and saves

DESIGN DECISION: Expense is deliberately permissive (no range checks).
The engine tolerates odd input (empty involved list, unknown ids,
negative amounts) and the validator reports it; rejecting it here would
hide those cases from both.

All models accept snake_case names and the camelCase names used by the
PagaPues web app's saved data (payerId, involvedIds, netAmount, ...).
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Amounts whose absolute value is below this are considered zero.
SETTLEMENT_EPSILON = 0.01


def new_id() -> str:
    """Create an opaque unique identifier for a participant or expense."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LedgerModel(BaseModel):
    """Base model with the shared naming configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# ENGINE INPUTS
# =============================================================================

class Participant(LedgerModel):
    """A person sharing expenses."""

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    name: str = Field(
        ...,
        max_length=100,
        description="Display name"
    )


class Expense(LedgerModel):
    """
    A single payment made by one participant on behalf of a subset
    of participants.

    The amount is split equally among `involved_ids`. The payer may or
    may not be one of them.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was spent on"
    )
    amount: float = Field(
        ...,
        description="Amount paid, in whole currency units or fractions of them"
    )
    payer_id: str = Field(
        ...,
        description="Participant who advanced the money"
    )
    involved_ids: list[str] = Field(
        default_factory=list,
        description="Participants sharing this expense"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the expense was recorded"
    )


# =============================================================================
# ENGINE OUTPUTS
# =============================================================================

class Balance(LedgerModel):
    """
    Net position of one participant.

    Positive means the participant is owed money, negative means they owe.
    """

    participant_id: str
    net_amount: float

    @property
    def is_creditor(self) -> bool:
        return self.net_amount > SETTLEMENT_EPSILON

    @property
    def is_debtor(self) -> bool:
        return self.net_amount < -SETTLEMENT_EPSILON

    @property
    def is_settled(self) -> bool:
        return not (self.is_creditor or self.is_debtor)


class Settlement(LedgerModel):
    """A recommended transfer from a debtor to a creditor."""

    from_id: str = Field(
        ...,
        description="Debtor who pays"
    )
    to_id: str = Field(
        ...,
        description="Creditor who receives"
    )
    amount: float = Field(
        ...,
        gt=0,
        description="Amount to transfer, rounded to cents"
    )


class ExpenseStats(LedgerModel):
    """Display statistics for a group."""

    total_group: float = 0.0
    average_per_person: float = 0.0
    paid_per_person: dict[str, float] = Field(default_factory=dict)


# =============================================================================
# LEDGER STATE
# =============================================================================

class LedgerState(LedgerModel):
    """
    Everything the storage layer persists.

    The order of both lists is significant: balances follow participant
    order and the expense list is shown in insertion order.
    """

    participants: list[Participant] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    def participant_ids(self) -> set[str]:
        return {p.id for p in self.participants}

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def participant_name(self, participant_id: str, default: str = "Someone") -> str:
        participant = self.get_participant(participant_id)
        return participant.name if participant else default

    def is_participant_in_use(self, participant_id: str) -> bool:
        """True if the participant paid for or shares any expense."""
        return any(
            e.payer_id == participant_id or participant_id in e.involved_ids
            for e in self.expenses
        )


class LedgerSummary(LedgerModel):
    """Everything derived from a ledger state in one recomputation."""

    balances: list[Balance] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
    stats: ExpenseStats = Field(default_factory=ExpenseStats)

    @property
    def is_settled(self) -> bool:
        return not self.settlements

    def balance_for(self, participant_id: str) -> float:
        for balance in self.balances:
            if balance.participant_id == participant_id:
                return balance.net_amount
        return 0.0


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_id')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Participant or expense the issue belongs to"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of validating a participant, an expense or a whole ledger."""

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        """Messages of non-blocking issues."""
        return [i.message for i in self.issues if i.severity != "error"]

    def summary(self) -> str:
        """One-line summary of the errors, for exceptions and UI messages."""
        errors = [i.message for i in self.issues if i.severity == "error"]
        return "; ".join(errors) if errors else "No errors"
