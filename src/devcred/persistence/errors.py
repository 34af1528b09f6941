"""Typed persistence exceptions.

Rejected operations are never raised; these cover storage that cannot be
trusted or written.
"""

from __future__ import annotations


class LedgerPersistenceError(RuntimeError):
    """Base exception for persistence-layer failures."""


class LedgerIntegrityError(LedgerPersistenceError, ValueError):
    """Persisted ledger data failed an integrity check on load."""
