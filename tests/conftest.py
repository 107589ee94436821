"""Shared fixtures: a small group and a helper to build expenses."""

import pytest

from pagapues.config import AppSettings, get_settings
from pagapues.models.ledger import Expense, Participant


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ana():
    return Participant(id="ana", name="Ana")


@pytest.fixture
def beto():
    return Participant(id="beto", name="Beto")


@pytest.fixture
def carla():
    return Participant(id="carla", name="Carla")


@pytest.fixture
def trio(ana, beto, carla):
    return [ana, beto, carla]


@pytest.fixture
def app_settings():
    """Settings with defaults, independent of any local .env file."""
    return AppSettings(
        _env_file=None,
        storage_backend="memory",
        strict_validation=True,
        min_participants_for_expense=2,
    )


@pytest.fixture
def make_expense():
    """Build an Expense with a few positional shortcuts."""
    def build(payer_id, amount, involved_ids, description="Expense", expense_id=None):
        fields = {
            "description": description,
            "amount": amount,
            "payer_id": payer_id,
            "involved_ids": list(involved_ids),
        }
        if expense_id is not None:
            fields["id"] = expense_id
        return Expense(**fields)
    return build
