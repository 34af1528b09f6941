"""Append-only event log — the audit record of every committed ledger mutation.

Every successful initialize, report, or verify appends one event. Events
are immutable once written. The log serves as:
1. The tamper-evidence trail: each record carries the SHA-256 of its
   canonical JSON, checked again on reload.
2. The only place free-text achievement descriptions are kept.
3. The source the service replays when the state file lags behind it.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from devcred.persistence.errors import LedgerIntegrityError


class EventKind(str, enum.Enum):
    """Classification of ledger events."""
    PROFILE_INITIALIZED = "profile_initialized"
    ACHIEVEMENT_REPORTED = "achievement_reported"
    PEER_VERIFIED = "peer_verified"


def _canonical_hash(
    event_id: str,
    event_kind: str,
    timestamp_utc: str,
    actor_id: str,
    sequence: int,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "event_id": event_id,
            "event_kind": event_kind,
            "timestamp_utc": timestamp_utc,
            "actor_id": actor_id,
            "sequence": sequence,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable event in the ledger log."""
    event_id: str
    event_kind: EventKind
    timestamp_utc: str
    actor_id: str
    sequence: int
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        actor_id: str,
        sequence: int,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        return EventRecord(
            event_id=event_id,
            event_kind=event_kind,
            timestamp_utc=ts_str,
            actor_id=actor_id,
            sequence=sequence,
            payload=payload,
            event_hash=_canonical_hash(
                event_id, event_kind.value, ts_str, actor_id, sequence, payload,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "actor_id": self.actor_id,
            "sequence": self.sequence,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only event log with optional JSONL file persistence.

    Events can only be appended, never modified or deleted.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._events: list[EventRecord] = []
        self._storage_path = storage_path
        self._event_ids: set[str] = set()

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def append(self, event: EventRecord) -> None:
        """Append an event to the log.

        Raises ValueError if event_id is a duplicate (replay protection).
        """
        if event.event_id in self._event_ids:
            raise ValueError(f"Duplicate event ID: {event.event_id}")

        if self._storage_path:
            self._append_to_file(event)

        self._events.append(event)
        self._event_ids.add(event.event_id)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.event_kind == kind]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _append_to_file(self, event: EventRecord) -> None:
        with self._storage_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=False) + "\n")

    def _load_from_file(self, path: Path) -> None:
        """Load events from a JSONL file with integrity verification.

        Fail-closed: rejects undecodable or malformed lines, records with
        missing fields, tampered records (hash mismatch) and duplicate
        event IDs.
        """
        with path.open("rb") as f:
            for line_num, raw in enumerate(f, 1):
                try:
                    line = raw.decode("utf-8").strip()
                except UnicodeDecodeError as e:
                    raise LedgerIntegrityError(
                        f"Undecodable event (line {line_num}): {e}"
                    ) from e
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError as e:
                    raise LedgerIntegrityError(
                        f"Malformed event (line {line_num}): {e}"
                    ) from e

                try:
                    event = EventRecord(
                        event_id=data["event_id"],
                        event_kind=EventKind(data["event_kind"]),
                        timestamp_utc=data["timestamp_utc"],
                        actor_id=data["actor_id"],
                        sequence=int(data["sequence"]),
                        payload=dict(data["payload"]),
                        event_hash=data["event_hash"],
                    )
                except (KeyError, TypeError, ValueError) as e:
                    raise LedgerIntegrityError(
                        f"Malformed event (line {line_num}): missing or invalid field {e}"
                    ) from e

                if event.event_id in self._event_ids:
                    raise LedgerIntegrityError(
                        f"Duplicate event ID on recovery (line {line_num}): {event.event_id}"
                    )

                expected_hash = _canonical_hash(
                    event.event_id,
                    event.event_kind.value,
                    event.timestamp_utc,
                    event.actor_id,
                    event.sequence,
                    event.payload,
                )
                if event.event_hash != expected_hash:
                    raise LedgerIntegrityError(
                        f"Integrity check failed (line {line_num}): event {event.event_id} "
                        f"stored hash {event.event_hash} != computed {expected_hash}"
                    )

                self._events.append(event)
                self._event_ids.add(event.event_id)
