"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. Everyone in the group can look at the raw expenses in a spreadsheet
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- save() rewrites both worksheets; fine for a group's handful of rows
- No transactions (participants are written before expenses)
- Concurrent edits from two sessions are last-writer-wins
- A hand-edited row that does not parse fails load() instead of being
  dropped by the next save()

The implementation follows the abstract interface, so business logic
does not change when switching from the JSON file store.
"""

import json
from datetime import datetime
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pagapues.config import GoogleSheetsSettings, get_settings
from pagapues.models.audit import AuditEvent
from pagapues.models.ledger import Expense, LedgerState, Participant
from pagapues.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

PARTICIPANT_COLUMNS = [
    "id",
    "name",
]

EXPENSE_COLUMNS = [
    "id",
    "description",
    "amount",
    "payer_id",
    "involved_ids_json",
    "date",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_participants_sheet(self) -> gspread.Worksheet:
        """Get or create the Participants worksheet."""
        return self._get_or_create_sheet(
            self._settings.participants_sheet_name, PARTICIPANT_COLUMNS, rows=100
        )

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create_sheet(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


def _participant_to_row(participant: Participant) -> list:
    return [participant.id, participant.name]


def _row_to_participant(row: list) -> Participant:
    return Participant(id=row[0], name=row[1] if len(row) > 1 else "")


def _expense_to_row(expense: Expense) -> list:
    return [
        expense.id,
        expense.description,
        repr(expense.amount),
        expense.payer_id,
        json.dumps(expense.involved_ids),
        expense.date.isoformat(),
    ]


def _row_to_expense(row: list) -> Expense:
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    return Expense(
        id=safe_get(0),
        description=safe_get(1),
        amount=float(safe_get(2, "0")),
        payer_id=safe_get(3),
        involved_ids=json.loads(safe_get(4, "[]")),
        date=datetime.fromisoformat(safe_get(5)),
    )


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Participants and expenses live on separate worksheets, one row per
    record. The involved participants of an expense are JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_rows(self, sheet: gspread.Worksheet, parse, kind: str) -> list:
        records = []
        # Skip header
        for index, row in enumerate(sheet.get_all_values()[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                records.append(parse(row))
            except (ValueError, IndexError) as e:
                logger.warning("malformed_sheet_row", kind=kind, row=index, error=str(e))
                raise StorageError(f"Malformed {kind} row {index}: {e}")
        return records

    def load(self) -> LedgerState:
        """
        Read both worksheets into a LedgerState.

        Blank rows and rows without an id are skipped. Any other row that
        does not parse fails the whole load, since the next save() would
        rewrite the sheet without it.
        """
        try:
            participants = self._read_rows(
                self._client.get_participants_sheet(), _row_to_participant, "participant"
            )
            expenses = self._read_rows(
                self._client.get_expenses_sheet(), _row_to_expense, "expense"
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load ledger: {e}")

        return LedgerState(participants=participants, expenses=expenses)

    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _rewrite(self, sheet: gspread.Worksheet, columns: list[str], rows: list[list]) -> None:
        sheet.clear()
        sheet.append_rows([columns] + rows, value_input_option="RAW")

    def save(self, state: LedgerState) -> None:
        """Replace the contents of both worksheets with `state`."""
        try:
            self._rewrite(
                self._client.get_participants_sheet(),
                PARTICIPANT_COLUMNS,
                [_participant_to_row(p) for p in state.participants],
            )
            self._rewrite(
                self._client.get_expenses_sheet(),
                EXPENSE_COLUMNS,
                [_expense_to_row(e) for e in state.expenses],
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ledger: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_event_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(AuditEvent.from_sheets_row(row))
                except ValueError as e:
                    logger.warning("malformed_audit_row", error=str(e))

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
