"""Skill ledger data models — categories, levels, and the three ledger relations.

The ledger holds three relations, each keyed by a composite key:
- SkillRecord           (developer, category)
- DeveloperProfile      (developer)
- VerificationReceipt   (verifier, developer, category)

Records are frozen. Every change to a record is a full replacement in
the store, so a record handed out by a read can never alias live state.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class SkillCategory(enum.IntEnum):
    """Reference category enumeration.

    Extending the ledger means widening this enum and the category
    table in config/skill_categories.json together.
    """
    CLARITY_FUNDAMENTALS = 1
    DEFI_PROTOCOLS = 2
    SECURITY_MULTISIG = 3
    ORACLE_INTEGRATION = 4
    TOKEN_STANDARDS = 5
    TESTING_DEPLOYMENT = 6

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_DISPLAY_NAMES = {
    SkillCategory.CLARITY_FUNDAMENTALS: "Clarity Fundamentals",
    SkillCategory.DEFI_PROTOCOLS: "DeFi Protocols",
    SkillCategory.SECURITY_MULTISIG: "Security & Multisig",
    SkillCategory.ORACLE_INTEGRATION: "Oracle Integration",
    SkillCategory.TOKEN_STANDARDS: "Token Standards",
    SkillCategory.TESTING_DEPLOYMENT: "Testing & Deployment",
}


class SkillLevel(enum.IntEnum):
    """Derived classification of accumulated points in one category."""
    BEGINNER = 1
    INTERMEDIATE = 2
    ADVANCED = 3
    EXPERT = 4


@dataclass(frozen=True)
class SkillKey:
    """Key of the skill relation."""
    developer: str
    category: int


@dataclass(frozen=True)
class ReceiptKey:
    """Key of the verification relation.

    At most one receipt may ever exist per key.
    """
    verifier: str
    developer: str
    category: int


@dataclass(frozen=True)
class SkillRecord:
    """Accumulated points for one developer in one category.

    points never decreases. A record is created on the first self-report
    for its key and is never deleted.
    """
    points: int = 0
    self_reported_count: int = 0
    verified_count: int = 0
    last_updated: int = 0

    def __post_init__(self) -> None:
        for name in ("points", "self_reported_count", "verified_count"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class DeveloperProfile:
    """Aggregate standing of one developer.

    total_reputation is maintained incrementally and always equals the
    sum of points across the developer's skill records. active is
    reserved: it is set on creation and nothing reads it.
    """
    total_reputation: int = 0
    verifications_given: int = 0
    join_sequence: int = 0
    active: bool = True

    def __post_init__(self) -> None:
        if self.total_reputation < 0:
            raise ValueError(
                f"total_reputation must be >= 0, got {self.total_reputation}"
            )
        if self.verifications_given < 0:
            raise ValueError(
                f"verifications_given must be >= 0, got {self.verifications_given}"
            )


@dataclass(frozen=True)
class VerificationReceipt:
    """Proof that a verifier attested to a developer's skill."""
    verification_sequence: int
    points_awarded: int


@dataclass(frozen=True)
class SkillView:
    """Read-only view of a skill record plus its derived level."""
    developer: str
    category: int
    points: int
    self_reported_count: int
    verified_count: int
    last_updated: int
    level: SkillLevel

    @classmethod
    def from_record(
        cls, key: SkillKey, record: SkillRecord, level: SkillLevel,
    ) -> SkillView:
        return cls(
            developer=key.developer,
            category=key.category,
            points=record.points,
            self_reported_count=record.self_reported_count,
            verified_count=record.verified_count,
            last_updated=record.last_updated,
            level=level,
        )
