"""Sequence clock — the monotonic marker stamped on ledger records.

A marker is opaque (a block height, a commit counter); it only orders
events and says nothing about wall-clock time.
"""

from __future__ import annotations


class SequenceClock:
    """Monotonically increasing sequence marker."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"Sequence start must be >= 0, got {start}")
        self._current = start

    @property
    def current(self) -> int:
        return self._current

    def advance(self) -> int:
        """Move to the next marker and return it."""
        self._current += 1
        return self._current
