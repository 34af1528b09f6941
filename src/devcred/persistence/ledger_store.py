"""Ledger store — the three relations as plain in-memory maps.

One map per relation, never a shared table, so each relation keeps its
own uniqueness constraint. The store does no validation; operations in
the service layer check preconditions before calling in here.

Records are frozen dataclasses, so get() can return the stored object:
callers cannot mutate it, and every write replaces the record whole.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Generic, Iterator, Optional, TypeVar

from devcred.models.skill import (
    DeveloperProfile,
    ReceiptKey,
    SkillKey,
    SkillRecord,
    VerificationReceipt,
)

K = TypeVar("K")
R = TypeVar("R")

SNAPSHOT_VERSION = 1


class Relation(Generic[K, R]):
    """A single keyed relation with point lookup, insert, and update."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._rows: dict[K, R] = {}

    def get(self, key: K) -> Optional[R]:
        return self._rows.get(key)

    def set(self, key: K, record: R) -> None:
        """Full replace."""
        self._rows[key] = record

    def merge(self, key: K, **fields: Any) -> R:
        """Replace a subset of fields on an existing record, keeping the rest.

        Raises:
            KeyError: If no record exists at key.
        """
        current = self._rows[key]
        updated = dataclasses.replace(current, **fields)
        self._rows[key] = updated
        return updated

    def restore(self, key: K, previous: Optional[R]) -> None:
        """Put back the value seen before an uncommitted write.

        A previous value of None means the write created the row, so the
        row is dropped again.
        """
        if previous is None:
            self._rows.pop(key, None)
        else:
            self._rows[key] = previous

    def items(self) -> Iterator[tuple[K, R]]:
        return iter(list(self._rows.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def __len__(self) -> int:
        return len(self._rows)


class WriteSet:
    """The writes of one operation, recorded so they can be undone together.

    Usage:
        writes = WriteSet()
        writes.set(store.receipts, key, receipt)
        writes.merge(store.profiles, developer, total_reputation=15)
        ...
        writes.rollback()  # store is back to where it was
    """

    def __init__(self) -> None:
        self._undo: list[tuple[Relation[Any, Any], Any, Any]] = []

    def set(self, relation: Relation[K, R], key: K, record: R) -> R:
        self._undo.append((relation, key, relation.get(key)))
        relation.set(key, record)
        return record

    def merge(self, relation: Relation[K, R], key: K, **fields: Any) -> R:
        self._undo.append((relation, key, relation.get(key)))
        return relation.merge(key, **fields)

    def rollback(self) -> None:
        for relation, key, previous in reversed(self._undo):
            relation.restore(key, previous)
        self._undo.clear()

    def __len__(self) -> int:
        return len(self._undo)


class LedgerStore:
    """Authoritative holder of skill records, profiles, and receipts."""

    def __init__(self) -> None:
        self.skills: Relation[SkillKey, SkillRecord] = Relation("skills")
        self.profiles: Relation[str, DeveloperProfile] = Relation("profiles")
        self.receipts: Relation[ReceiptKey, VerificationReceipt] = Relation("receipts")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Export all three relations as JSON-compatible data."""
        return {
            "version": SNAPSHOT_VERSION,
            "profiles": {
                developer: dataclasses.asdict(profile)
                for developer, profile in sorted(self.profiles.items())
            },
            "skills": [
                {"developer": key.developer, "category": key.category,
                 **dataclasses.asdict(record)}
                for key, record in sorted(
                    self.skills.items(),
                    key=lambda item: (item[0].developer, item[0].category),
                )
            ],
            "receipts": [
                {"verifier": key.verifier, "developer": key.developer,
                 "category": key.category, **dataclasses.asdict(receipt)}
                for key, receipt in sorted(
                    self.receipts.items(),
                    key=lambda item: (
                        item[0].verifier, item[0].developer, item[0].category,
                    ),
                )
            ],
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> LedgerStore:
        """Rebuild a store from snapshot() output.

        Raises:
            ValueError: If the snapshot version is unsupported.
        """
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported ledger snapshot version: {version}")

        store = cls()
        for developer, fields in data.get("profiles", {}).items():
            store.profiles.set(developer, DeveloperProfile(**fields))
        for row in data.get("skills", []):
            row = dict(row)
            key = SkillKey(row.pop("developer"), int(row.pop("category")))
            store.skills.set(key, SkillRecord(**row))
        for row in data.get("receipts", []):
            row = dict(row)
            key = ReceiptKey(
                row.pop("verifier"), row.pop("developer"), int(row.pop("category")),
            )
            store.receipts.set(key, VerificationReceipt(**row))
        return store
