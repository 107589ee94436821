"""Tests for the ledger validator."""

import pytest

from pagapues.models.ledger import Expense, LedgerState, Participant
from pagapues.validation import LedgerValidationError, LedgerValidator, ParticipantInUseError


def issue_types(result):
    return {(i.field, i.issue_type, i.severity) for i in result.issues}


@pytest.fixture
def validator():
    return LedgerValidator(min_participants_for_expense=2)


@pytest.fixture
def state(trio):
    return LedgerState(participants=trio)


class TestParticipantValidation:
    """Tests for validate_participant."""

    def test_valid_participant(self, validator, state):
        result = validator.validate_participant(Participant(name="Diego"), state)
        assert result.is_valid
        assert result.issues == []

    def test_blank_name_is_an_error(self, validator, state):
        result = validator.validate_participant(Participant(name="   "), state)
        assert ("name", "missing", "error") in issue_types(result)

    def test_duplicate_id_is_an_error(self, validator, state):
        result = validator.validate_participant(Participant(id="ana", name="Another Ana"), state)
        assert ("id", "duplicate", "error") in issue_types(result)

    def test_repeated_name_is_only_a_warning(self, validator, state):
        result = validator.validate_participant(Participant(name="ANA"), state)
        assert result.is_valid
        assert ("name", "duplicate", "warning") in issue_types(result)


class TestExpenseValidation:
    """Tests for validate_expense."""

    def test_valid_expense(self, validator, state):
        expense = Expense(description="Lunch", amount=30000, payer_id="ana",
                          involved_ids=["ana", "beto", "carla"])
        result = validator.validate_expense(expense, state)
        assert result.issues == []

    @pytest.mark.parametrize("fields,expected", [
        ({"description": ""}, ("description", "missing", "error")),
        ({"amount": 0}, ("amount", "invalid_value", "error")),
        ({"amount": -10}, ("amount", "invalid_value", "error")),
        ({"payer_id": "ghost"}, ("payer_id", "unknown_id", "error")),
        ({"involved_ids": []}, ("involved_ids", "missing", "error")),
        ({"involved_ids": ["ana", "stranger"]}, ("involved_ids", "unknown_id", "error")),
    ])
    def test_rejected_inputs(self, validator, state, fields, expected):
        data = {"description": "Lunch", "amount": 100, "payer_id": "ana",
                "involved_ids": ["ana", "beto"]}
        data.update(fields)
        result = validator.validate_expense(Expense(**data), state)
        assert result.has_errors
        assert expected in issue_types(result)

    def test_too_few_participants(self, validator, ana):
        expense = Expense(description="Solo", amount=10, payer_id="ana", involved_ids=["ana"])
        result = validator.validate_expense(expense, LedgerState(participants=[ana]))
        assert ("participants", "too_few", "error") in issue_types(result)

    def test_minimum_is_configurable(self, ana):
        expense = Expense(description="Solo", amount=10, payer_id="ana", involved_ids=["ana"])
        result = LedgerValidator(min_participants_for_expense=1).validate_expense(
            expense, LedgerState(participants=[ana])
        )
        assert result.is_valid

    def test_duplicate_involved_is_a_warning(self, validator, state):
        expense = Expense(description="Taxi", amount=90, payer_id="ana",
                          involved_ids=["ana", "beto", "beto"])
        result = validator.validate_expense(expense, state)
        assert result.is_valid
        assert ("involved_ids", "duplicate", "warning") in issue_types(result)

    def test_payer_not_involved_is_info(self, validator, state):
        expense = Expense(description="Gift", amount=90, payer_id="ana",
                          involved_ids=["beto", "carla"])
        result = validator.validate_expense(expense, state)
        assert result.is_valid
        assert ("payer_id", "payer_not_involved", "info") in issue_types(result)

    def test_duplicate_expense_id(self, validator, trio):
        existing = Expense(id="e1", description="Taxi", amount=10, payer_id="ana",
                           involved_ids=["ana", "beto"])
        state = LedgerState(participants=trio, expenses=[existing])
        result = validator.validate_expense(existing, state)
        assert ("id", "duplicate", "error") in issue_types(result)


class TestStateValidation:
    """Tests for validate_state."""

    def test_clean_state(self, validator, trio):
        state = LedgerState(participants=trio, expenses=[
            Expense(description="Taxi", amount=10, payer_id="ana", involved_ids=["ana", "beto"]),
        ])
        assert validator.validate_state(state).is_valid

    def test_reports_every_bad_expense(self, validator, trio):
        state = LedgerState(participants=trio, expenses=[
            Expense(id="e1", description="Taxi", amount=10, payer_id="ghost", involved_ids=["ana"]),
            Expense(id="e2", description="Snacks", amount=5, payer_id="ana", involved_ids=[]),
        ])
        result = validator.validate_state(state)
        assert result.error_count == 2
        assert {i.entity_id for i in result.issues if i.severity == "error"} == {"e1", "e2"}

    def test_duplicate_participant_ids(self, validator):
        state = LedgerState(participants=[
            Participant(id="a", name="Ana"),
            Participant(id="a", name="Ana again"),
        ])
        result = validator.validate_state(state)
        assert ("id", "duplicate", "error") in issue_types(result)


class TestValidationErrors:
    """Tests for the exceptions raised on rejected input."""

    def test_error_carries_result(self, validator, state):
        result = validator.validate_participant(Participant(name=""), state)
        error = LedgerValidationError(result)
        assert error.result is result
        assert "Participant name is required" in str(error)
        assert isinstance(error, ValueError)

    def test_participant_in_use(self, ana):
        error = ParticipantInUseError.for_participant(ana)
        assert isinstance(error, LedgerValidationError)
        assert error.result.issues[0].issue_type == "in_use"
        assert "Ana" in str(error)


class TestUserFriendlySummary:
    """Tests for get_user_friendly_summary."""

    def test_all_good(self, validator, state):
        result = validator.validate_participant(Participant(name="Diego"), state)
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed!"

    def test_errors_and_fixes_listed(self, validator, state):
        expense = Expense(description="", amount=0, payer_id="ana", involved_ids=["ana"])
        summary = validator.get_user_friendly_summary(validator.validate_expense(expense, state))
        assert summary.startswith("❌ Please fix the following:")
        assert "Expense description is required" in summary
        assert "Amount must be greater than zero" in summary
        assert "💡" in summary

    def test_warnings_listed(self, validator, state):
        result = validator.validate_participant(Participant(name="Beto"), state)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("⚠️ Please verify:")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
