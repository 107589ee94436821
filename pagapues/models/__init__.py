"""
Data Models Package

This package contains all Pydantic models used in PagaPues.
Everything entering or leaving the settlement engine conforms to these schemas.
"""

from pagapues.models.ledger import (
    SETTLEMENT_EPSILON,
    Balance,
    Expense,
    ExpenseStats,
    LedgerState,
    LedgerSummary,
    Participant,
    Settlement,
    ValidationIssue,
    ValidationResult,
    new_id,
)
from pagapues.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "SETTLEMENT_EPSILON",
    "Balance",
    "Expense",
    "ExpenseStats",
    "LedgerState",
    "LedgerSummary",
    "Participant",
    "Settlement",
    "ValidationIssue",
    "ValidationResult",
    "new_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
