"""Persistence — ledger relations, sequence marker, state snapshots, and audit log."""

from devcred.persistence.errors import LedgerIntegrityError, LedgerPersistenceError
from devcred.persistence.event_log import EventKind, EventLog, EventRecord
from devcred.persistence.ledger_store import LedgerStore, Relation, WriteSet
from devcred.persistence.sequence import SequenceClock
from devcred.persistence.state_store import StateStore

__all__ = [
    "EventKind",
    "EventLog",
    "EventRecord",
    "LedgerIntegrityError",
    "LedgerPersistenceError",
    "LedgerStore",
    "Relation",
    "SequenceClock",
    "StateStore",
    "WriteSet",
]
