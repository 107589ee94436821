"""
Integration tests for the ledger session.

Every session runs on in-memory storage; the factory tests switch
backends through environment variables.
"""

from datetime import datetime, timezone

import pytest

from pagapues.audit import AuditLogger
from pagapues.config import AppSettings, validate_all_settings
from pagapues.models.audit import AuditEventType
from pagapues.models.ledger import Expense, LedgerState, Participant
from pagapues.orchestrator import LedgerSession, create_app_components
from pagapues.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    JsonFileLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from pagapues.validation import LedgerValidationError, LedgerValidator, ParticipantInUseError


class FailingStore(LedgerStoreInterface):
    """Loads fine, refuses every save."""

    def __init__(self, fail_load=False):
        self.fail_load = fail_load

    def load(self):
        if self.fail_load:
            raise StorageError("cannot read")
        return LedgerState()

    def save(self, state):
        raise StorageError("disk full")


def event_types(audit_storage):
    return [e.event_type for e in reversed(audit_storage.get_recent_events())]


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def session(store, audit_storage, app_settings):
    return LedgerSession(
        store=store,
        validator=LedgerValidator(min_participants_for_expense=2),
        audit_logger=AuditLogger(audit_storage),
        settings=app_settings,
    )


@pytest.fixture
def group(session):
    """Ana, Beto and Carla, added in that order."""
    return [session.add_participant(name) for name in ("Ana", "Beto", "Carla")]


class TestParticipants:
    """Adding and removing participants."""

    def test_add_participant(self, session, store, audit_storage):
        participant = session.add_participant("  Ana ")

        assert participant.name == "Ana"
        assert session.participants == [participant]
        assert store.load().participants == [participant]
        assert event_types(audit_storage) == [AuditEventType.PARTICIPANT_ADDED]

    def test_blank_name_rejected(self, session, store, audit_storage):
        with pytest.raises(LedgerValidationError):
            session.add_participant("   ")

        assert session.participants == []
        assert store.save_count == 0
        assert event_types(audit_storage) == [AuditEventType.VALIDATION_FAILED]

    def test_lenient_mode_accepts_and_logs(self, store, audit_storage):
        session = LedgerSession(
            store=store,
            validator=LedgerValidator(min_participants_for_expense=2),
            audit_logger=AuditLogger(audit_storage),
            settings=AppSettings(_env_file=None, strict_validation=False),
        )
        session.add_participant("")

        assert len(session.participants) == 1
        assert event_types(audit_storage) == [
            AuditEventType.VALIDATION_FAILED,
            AuditEventType.PARTICIPANT_ADDED,
        ]

    def test_remove_unused_participant(self, session, group, audit_storage):
        ana, beto, carla = group
        removed = session.remove_participant(beto.id)

        assert removed == beto
        assert session.participants == [ana, carla]
        assert event_types(audit_storage)[-1] == AuditEventType.PARTICIPANT_REMOVED

    def test_remove_participant_in_use(self, session, group):
        ana, beto, carla = group
        session.add_expense("Taxi", 30000, ana.id, [ana.id, carla.id])

        with pytest.raises(ParticipantInUseError):
            session.remove_participant(carla.id)
        with pytest.raises(ParticipantInUseError):
            session.remove_participant(ana.id)
        assert len(session.participants) == 3

    def test_remove_unknown_participant(self, session):
        with pytest.raises(NotFoundError):
            session.remove_participant("nobody")


class TestExpenses:
    """Adding and deleting expenses."""

    def test_involved_defaults_to_everyone(self, session, group):
        ana = group[0]
        expense = session.add_expense("Groceries", 90000, ana.id)
        assert expense.involved_ids == [p.id for p in group]

    def test_explicit_date(self, session, group):
        when = datetime(2024, 6, 14, 12, 0, tzinfo=timezone.utc)
        expense = session.add_expense("Museum", 45000, group[1].id, date=when)
        assert expense.date == when

    def test_expense_saved_and_audited(self, session, group, store, audit_storage):
        expense = session.add_expense("Dinner", 120000, group[0].id)

        assert store.load().expenses == [expense]
        assert event_types(audit_storage)[-1] == AuditEventType.EXPENSE_ADDED

    @pytest.mark.parametrize("kwargs", [
        {"description": "", "amount": 100},
        {"description": "Dinner", "amount": 0},
        {"description": "Dinner", "amount": 100, "involved_ids": []},
        {"description": "Dinner", "amount": 100, "involved_ids": ["stranger"]},
    ])
    def test_invalid_expense_rejected(self, session, group, kwargs):
        with pytest.raises(LedgerValidationError):
            session.add_expense(payer_id=group[0].id, **kwargs)
        assert session.expenses == []

    def test_unknown_payer_rejected(self, session, group):
        with pytest.raises(LedgerValidationError):
            session.add_expense("Dinner", 100, "ghost")

    def test_needs_two_participants(self, session):
        ana = session.add_participant("Ana")
        with pytest.raises(LedgerValidationError, match="At least 2 participants"):
            session.add_expense("Coffee", 5000, ana.id)

    def test_delete_expense(self, session, group, audit_storage):
        first = session.add_expense("Taxi", 10000, group[0].id)
        second = session.add_expense("Bus", 4000, group[1].id)

        assert session.delete_expense(first.id) == first
        assert session.expenses == [second]
        assert event_types(audit_storage)[-1] == AuditEventType.EXPENSE_DELETED

    def test_delete_unknown_expense(self, session):
        with pytest.raises(NotFoundError):
            session.delete_expense("missing")

    def test_recent_expenses_newest_first(self, session, group):
        payer = group[0].id
        old = session.add_expense("Old", 1, payer, date=datetime(2024, 1, 1, tzinfo=timezone.utc))
        new = session.add_expense("New", 1, payer, date=datetime(2024, 3, 1, tzinfo=timezone.utc))
        mid = session.add_expense("Mid", 1, payer, date=datetime(2024, 2, 1, tzinfo=timezone.utc))

        assert [e.id for e in session.recent_expenses()] == [new.id, mid.id, old.id]
        assert [e.id for e in session.expenses] == [old.id, new.id, mid.id]

    def test_reset(self, session, group, store, audit_storage):
        session.add_expense("Taxi", 10000, group[0].id)
        session.reset()

        assert session.state == LedgerState()
        assert store.load() == LedgerState()
        assert event_types(audit_storage)[-1] == AuditEventType.LEDGER_RESET


class TestStateIsolation:
    """The session never hands out its own state."""

    def test_state_is_a_copy(self, session, group):
        state = session.state
        state.participants.clear()
        session.participants.clear()
        assert len(session.participants) == 3


class TestSummary:
    """Derived views."""

    def test_summary(self, session, group):
        ana, beto, carla = group
        session.add_expense("Dinner", 90, ana.id)

        summary = session.summary()

        assert [b.net_amount for b in summary.balances] == pytest.approx([60.0, -30.0, -30.0])
        assert [(s.from_id, s.to_id, s.amount) for s in summary.settlements] == [
            (beto.id, ana.id, 30.0),
            (carla.id, ana.id, 30.0),
        ]
        assert summary.stats.total_group == 90.0
        assert summary.stats.average_per_person == pytest.approx(30.0)

    def test_summary_follows_deletions(self, session, group):
        expense = session.add_expense("Dinner", 90, group[0].id)
        session.delete_expense(expense.id)
        assert session.summary().is_settled

    def test_report_text(self, session, group, audit_storage):
        ana, beto, _ = group
        session.add_expense("Hotel", 200000, ana.id, [ana.id, beto.id])

        text = session.report_text()

        assert "• Beto owes $ 100.000 to Ana" in text
        assert "💰 Group total: $ 200.000" in text
        assert event_types(audit_storage)[-1] == AuditEventType.REPORT_GENERATED

    def test_share_url(self, session, group):
        url = session.share_url()
        assert url.startswith("https://wa.me/?text=")
        assert "All%20settled" in url

    def test_format_money_uses_settings(self, store):
        session = LedgerSession(
            store=store,
            validator=LedgerValidator(min_participants_for_expense=2),
            settings=AppSettings(_env_file=None, currency_symbol="€", thousands_separator=","),
        )
        assert session.format_money(1234567) == "€ 1,234,567"

    def test_profiles_and_chart(self, session, group):
        session.add_expense("Dinner", 90, group[0].id)

        profiles = session.profiles()
        chart = session.paid_chart()

        assert [p.name for p in profiles] == ["Ana", "Beto", "Carla"]
        assert chart.values == [90.0, 0.0, 0.0]
        assert chart.percentages == [100, 0, 0]

    def test_participant_name(self, session, group):
        assert session.participant_name(group[1].id) == "Beto"
        assert session.participant_name("gone") == "Someone"


class TestPersistence:
    """Loading and failing stores."""

    def test_load_existing_state(self, audit_storage, app_settings):
        ana = Participant(id="a", name="Ana")
        beto = Participant(id="b", name="Beto")
        saved = LedgerState(
            participants=[ana, beto],
            expenses=[Expense(description="Taxi", amount=10, payer_id="a", involved_ids=["a", "b"])],
        )
        session = LedgerSession(
            store=InMemoryLedgerStore(saved),
            validator=LedgerValidator(min_participants_for_expense=2),
            audit_logger=AuditLogger(audit_storage),
            settings=app_settings,
        )

        assert session.load() == saved
        assert session.summary().balance_for("b") == -5.0
        assert event_types(audit_storage) == [AuditEventType.LEDGER_LOADED]

    def test_invalid_loaded_state_is_kept_and_reported(self, audit_storage, app_settings):
        saved = LedgerState(
            participants=[Participant(id="a", name="Ana")],
            expenses=[Expense(description="Taxi", amount=10, payer_id="ghost", involved_ids=[])],
        )
        session = LedgerSession(
            store=InMemoryLedgerStore(saved),
            validator=LedgerValidator(min_participants_for_expense=2),
            audit_logger=AuditLogger(audit_storage),
            settings=app_settings,
        )

        assert session.load() == saved
        assert event_types(audit_storage) == [
            AuditEventType.VALIDATION_FAILED,
            AuditEventType.LEDGER_LOADED,
        ]

    def test_failed_save_leaves_state_unchanged(self, audit_storage, app_settings):
        session = LedgerSession(
            store=FailingStore(),
            validator=LedgerValidator(min_participants_for_expense=2),
            audit_logger=AuditLogger(audit_storage),
            settings=app_settings,
        )

        with pytest.raises(StorageError, match="disk full"):
            session.add_participant("Ana")

        assert session.participants == []
        assert event_types(audit_storage) == [AuditEventType.STORAGE_ERROR]

    def test_failed_load_is_raised(self, audit_storage, app_settings):
        session = LedgerSession(
            store=FailingStore(fail_load=True),
            validator=LedgerValidator(min_participants_for_expense=2),
            audit_logger=AuditLogger(audit_storage),
            settings=app_settings,
        )
        with pytest.raises(StorageError):
            session.load()
        assert event_types(audit_storage) == [AuditEventType.STORAGE_ERROR]

    def test_no_saves_after_failed_load(self, audit_storage, app_settings):
        session = LedgerSession(
            store=FailingStore(fail_load=True),
            validator=LedgerValidator(min_participants_for_expense=2),
            audit_logger=AuditLogger(audit_storage),
            settings=app_settings,
        )
        with pytest.raises(StorageError, match="cannot read"):
            session.load()
        with pytest.raises(StorageError, match="refusing to save"):
            session.reset()

        assert event_types(audit_storage) == [
            AuditEventType.STORAGE_ERROR,
            AuditEventType.STORAGE_ERROR,
        ]


class TestCreateAppComponents:
    """Tests for the factory."""

    @pytest.fixture(autouse=True)
    def isolated_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for name in ("STORAGE_BACKEND", "STORAGE_PATH", "STRICT_VALIDATION", "SETTLEMENT_EPSILON",
                     "GOOGLE_SHEETS_CREDENTIALS_PATH", "GOOGLE_SHEETS_SPREADSHEET_ID"):
            monkeypatch.delenv(name, raising=False)

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        session = create_app_components()
        assert isinstance(session.store, InMemoryLedgerStore)
        assert session.participants == []

    def test_json_backend_persists(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "json")
        monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "group.json"))

        session = create_app_components()
        assert isinstance(session.store, JsonFileLedgerStore)
        session.add_participant("Ana")

        reopened = create_app_components()
        assert [p.name for p in reopened.participants] == ["Ana"]

    def test_without_storage(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "json")
        monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "group.json"))

        session = create_app_components(use_storage=False)
        session.add_participant("Ana")

        assert isinstance(session.store, InMemoryLedgerStore)
        assert not (tmp_path / "group.json").exists()

    def test_unconfigured_sheets_fall_back_to_memory(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        session = create_app_components()
        assert isinstance(session.store, InMemoryLedgerStore)

    def test_settings_status(self, monkeypatch):
        """Test the status map shown on the settings page."""
        status = validate_all_settings()
        assert status["app"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status

        monkeypatch.setenv("STORAGE_BACKEND", "ftp")
        status = validate_all_settings()
        assert status["app"] is False
        assert "app_error" in status

    def test_epsilon_below_half_a_cent_is_rejected(self, monkeypatch):
        """Epsilons under 0.005 would leave sub-cent residue unsettled."""
        with pytest.raises(ValueError, match="settlement_epsilon"):
            AppSettings(_env_file=None, settlement_epsilon=0.001)
        assert AppSettings(_env_file=None, settlement_epsilon=0.005).settlement_epsilon == 0.005

        monkeypatch.setenv("SETTLEMENT_EPSILON", "0.001")
        assert validate_all_settings()["app"] is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
