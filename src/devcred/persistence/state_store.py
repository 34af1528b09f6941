"""State store — JSON file snapshot of the ledger relations and sequence marker."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from devcred.persistence.errors import LedgerIntegrityError
from devcred.persistence.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


class StateStore:
    """Durable snapshot of a LedgerStore.

    Writes go to a sibling temporary file that replaces the target in one
    rename, so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def save_ledger(self, store: LedgerStore, sequence: int) -> None:
        """Persist the store and the current sequence marker.

        Raises:
            OSError: If the file cannot be written.
        """
        data = {"sequence": sequence, "ledger": store.snapshot()}
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True, ensure_ascii=False)
        os.replace(tmp_path, self._storage_path)
        logger.debug("Ledger state saved to %s (sequence %d)", self._storage_path, sequence)

    def load_ledger(self) -> tuple[LedgerStore, int]:
        """Load the persisted store and sequence marker.

        Returns an empty store at sequence 0 when nothing has been saved.

        Raises:
            LedgerIntegrityError: If the file exists but cannot be parsed.
        """
        if not self._storage_path.exists():
            return LedgerStore(), 0

        try:
            with self._storage_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            store = LedgerStore.from_snapshot(data["ledger"])
            sequence = int(data["sequence"])
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise LedgerIntegrityError(
                f"Unreadable ledger state {self._storage_path}: {e}"
            ) from e

        logger.debug(
            "Ledger state loaded from %s: %d profiles, %d skills, %d receipts",
            self._storage_path, len(store.profiles), len(store.skills), len(store.receipts),
        )
        return store, sequence
