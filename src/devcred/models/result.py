"""Operation results and the closed set of rejection codes.

Rejections are values, not exceptions: every ledger operation returns a
LedgerResult and callers branch on error_code.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional


class LedgerError(str, enum.Enum):
    """Why an operation was rejected."""
    NOT_AUTHORIZED = "not_authorized"
    INVALID_SKILL_CATEGORY = "invalid_skill_category"
    ALREADY_VERIFIED = "already_verified"
    INSUFFICIENT_REPUTATION = "insufficient_reputation"
    SKILL_NOT_FOUND = "skill_not_found"
    CANNOT_VERIFY_SELF = "cannot_verify_self"
    DESCRIPTION_TOO_LONG = "description_too_long"
    PERSISTENCE_FAILURE = "persistence_failure"

    @property
    def code(self) -> int:
        """Stable numeric code for wire formats and exit statuses."""
        return _NUMERIC_CODES[self]


_NUMERIC_CODES = {
    LedgerError.NOT_AUTHORIZED: 100,
    LedgerError.INVALID_SKILL_CATEGORY: 101,
    LedgerError.ALREADY_VERIFIED: 102,
    LedgerError.INSUFFICIENT_REPUTATION: 103,
    LedgerError.SKILL_NOT_FOUND: 104,
    LedgerError.CANNOT_VERIFY_SELF: 105,
    LedgerError.DESCRIPTION_TOO_LONG: 106,
    LedgerError.PERSISTENCE_FAILURE: 107,
}


@dataclass(frozen=True)
class LedgerResult:
    """Result of a ledger operation."""
    success: bool
    error_code: Optional[LedgerError] = None
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def rejected(cls, error_code: LedgerError, message: str) -> LedgerResult:
        return cls(success=False, error_code=error_code, errors=[message])
