"""
JSON File Storage

Stores the ledger as a single JSON document:

    {"participants": [{"id": ..., "name": ...}, ...],
     "expenses": [{"id": ..., "payerId": ..., "involvedIds": [...], ...}, ...]}

Field names are camelCase so that data exported from the PagaPues web
app loads unchanged. Its localStorage export (`fs_participants` /
`fs_expenses`, each holding a JSON-encoded list) is accepted as well.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

import structlog
from pydantic import ValidationError

from pagapues.models.ledger import LedgerState
from pagapues.services.storage.interface import (
    LedgerStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Keys used by the browser app's localStorage
LEGACY_PARTICIPANTS_KEY = "fs_participants"
LEGACY_EXPENSES_KEY = "fs_expenses"


def _from_legacy(data: dict) -> dict:
    """Map a localStorage export onto the state layout."""
    def decode(value):
        return json.loads(value) if isinstance(value, str) else value

    return {
        "participants": decode(data.get(LEGACY_PARTICIPANTS_KEY) or []),
        "expenses": decode(data.get(LEGACY_EXPENSES_KEY) or []),
    }


class JsonFileLedgerStore(LedgerStoreInterface):
    """
    Ledger store backed by one JSON file.

    A missing file reads as an empty ledger. Writes go to a temporary
    file in the same directory which then replaces the target, so a
    crash never leaves a half-written ledger behind.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LedgerState:
        if not self._path.exists():
            logger.info("ledger_file_missing", path=str(self._path))
            return LedgerState()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")

        if not isinstance(data, dict):
            raise StorageError(f"Ledger file {self._path} does not contain a JSON object")

        try:
            if LEGACY_PARTICIPANTS_KEY in data or LEGACY_EXPENSES_KEY in data:
                data = _from_legacy(data)
            return LedgerState.model_validate(data)
        except (ValidationError, json.JSONDecodeError) as e:
            raise StorageError(f"Ledger file {self._path} holds invalid data: {e}")

    def save(self, state: LedgerState) -> None:
        payload = json.dumps(
            state.model_dump(mode="json", by_alias=True),
            ensure_ascii=False,
            indent=2,
        )

        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

        logger.debug(
            "ledger_file_saved",
            path=str(self._path),
            participants=len(state.participants),
            expenses=len(state.expenses),
        )
