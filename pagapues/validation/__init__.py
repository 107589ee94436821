"""Validation package."""

from pagapues.validation.validator import (
    LedgerValidationError,
    LedgerValidator,
    ParticipantInUseError,
)

__all__ = ["LedgerValidationError", "LedgerValidator", "ParticipantInUseError"]
