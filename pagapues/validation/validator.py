"""
Ledger Validation

DESIGN DECISION: The settlement engine tolerates malformed input and
never raises. Validation happens here, at the boundary, before the
ledger session accepts a new participant or expense:

PARTICIPANTS:
- Name must not be blank
- Reusing a name is allowed but flagged (two "Ana"s are confusing)

EXPENSES:
- Description must not be blank
- Amount must be positive
- Payer and every involved id must be known participants
- At least one participant must share the expense
- The group needs a minimum number of participants

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the caller decides whether to reject.
"""

from collections import Counter
from typing import Optional

from pagapues.config import get_settings
from pagapues.models.ledger import (
    Expense,
    LedgerState,
    Participant,
    ValidationIssue,
    ValidationResult,
)


class LedgerValidationError(ValueError):
    """A participant or expense was rejected. `result` holds every issue found."""

    def __init__(self, result: ValidationResult, message: Optional[str] = None):
        self.result = result
        super().__init__(message or result.summary())


class ParticipantInUseError(LedgerValidationError):
    """The participant pays for or shares an expense and cannot be removed."""

    @classmethod
    def for_participant(cls, participant: Participant) -> "ParticipantInUseError":
        result = ValidationResult(issues=[ValidationIssue(
            field="id",
            issue_type="in_use",
            message=f"{participant.name} is part of existing expenses",
            severity="error",
            entity_id=participant.id,
            suggested_fix="Delete their expenses first",
        )])
        return cls(result)


class LedgerValidator:
    """Validates participants and expenses against the current ledger."""

    def __init__(
        self,
        min_participants_for_expense: Optional[int] = None,
    ):
        """
        Initialize validator.

        Args:
            min_participants_for_expense: Group size needed before expenses
                can be recorded. Defaults to the configured value.
        """
        if min_participants_for_expense is None:
            min_participants_for_expense = get_settings().app.min_participants_for_expense
        self._min_participants = min_participants_for_expense

    def validate_participant(
        self,
        participant: Participant,
        state: LedgerState,
    ) -> ValidationResult:
        """Check a participant before it is added to `state`."""
        issues = []

        if not participant.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Participant name is required",
                severity="error",
                entity_id=participant.id,
                suggested_fix="Type the person's name",
            ))

        if participant.id in state.participant_ids():
            issues.append(ValidationIssue(
                field="id",
                issue_type="duplicate",
                message=f"Participant id {participant.id} already exists",
                severity="error",
                entity_id=participant.id,
            ))

        existing_names = {p.name.casefold() for p in state.participants}
        if participant.name and participant.name.casefold() in existing_names:
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"There is already a participant called {participant.name}",
                severity="warning",
                entity_id=participant.id,
                suggested_fix="Add a last name or nickname to tell them apart",
            ))

        return ValidationResult(issues=issues)

    def _expense_issues(
        self,
        expense: Expense,
        state: LedgerState,
    ) -> list[ValidationIssue]:
        issues = []
        known_ids = state.participant_ids()

        def issue(field: str, issue_type: str, message: str, severity: str = "error",
                  suggested_fix: Optional[str] = None) -> None:
            issues.append(ValidationIssue(
                field=field,
                issue_type=issue_type,
                message=message,
                severity=severity,
                entity_id=expense.id,
                suggested_fix=suggested_fix,
            ))

        if len(state.participants) < self._min_participants:
            issue(
                "participants", "too_few",
                f"At least {self._min_participants} participants are needed to share an expense",
                suggested_fix="Add more people to the group first",
            )

        if not expense.description:
            issue("description", "missing", "Expense description is required",
                  suggested_fix="Describe what was paid, e.g. 'Dinner'")

        if expense.amount <= 0:
            issue("amount", "invalid_value", "Amount must be greater than zero",
                  suggested_fix="Enter the amount that was paid")

        if expense.payer_id not in known_ids:
            issue("payer_id", "unknown_id", f"Payer {expense.payer_id} is not a participant")

        if not expense.involved_ids:
            issue("involved_ids", "missing", "Select at least one person sharing this expense")

        unknown = [pid for pid in expense.involved_ids if pid not in known_ids]
        if unknown:
            issue("involved_ids", "unknown_id",
                  f"Unknown participants sharing the expense: {', '.join(unknown)}")

        duplicated = [pid for pid, count in Counter(expense.involved_ids).items() if count > 1]
        if duplicated:
            issue("involved_ids", "duplicate",
                  "Some participants are listed more than once and will pay more than one share",
                  severity="warning")

        if expense.involved_ids and expense.payer_id not in expense.involved_ids:
            issue("payer_id", "payer_not_involved",
                  "The payer does not share this expense and will be repaid in full",
                  severity="info")

        return issues

    def validate_expense(
        self,
        expense: Expense,
        state: LedgerState,
    ) -> ValidationResult:
        """Check an expense before it is added to `state`."""
        issues = self._expense_issues(expense, state)

        if state.get_expense(expense.id) is not None:
            issues.append(ValidationIssue(
                field="id",
                issue_type="duplicate",
                message=f"Expense id {expense.id} already exists",
                severity="error",
                entity_id=expense.id,
            ))

        return ValidationResult(issues=issues)

    def validate_state(self, state: LedgerState) -> ValidationResult:
        """
        Check a whole ledger, e.g. one just loaded from storage.

        Issues are tagged with the id of the offending entity.
        """
        issues = []

        counts = Counter(p.id for p in state.participants)
        for participant_id, count in counts.items():
            if count > 1:
                issues.append(ValidationIssue(
                    field="id",
                    issue_type="duplicate",
                    message=f"Participant id {participant_id} appears {count} times",
                    severity="error",
                    entity_id=participant_id,
                ))

        for expense in state.expenses:
            issues.extend(self._expense_issues(expense, state))

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a summary of validation results to show in the UI."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
