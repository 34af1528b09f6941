"""Achievement reporter — self-reported skill achievements.

Rules:
- Category must be inside the configured range.
- The reporter must already have a profile; reporting never creates one.
- Description is bounded in length and otherwise unchecked.
- Each report adds the fixed self-report value to the skill record and
  the same amount to the profile's total reputation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from devcred.models.result import LedgerError, LedgerResult
from devcred.models.skill import DeveloperProfile, SkillKey, SkillRecord
from devcred.persistence.ledger_store import LedgerStore, WriteSet

if TYPE_CHECKING:
    from devcred.policy.resolver import PolicyResolver


@dataclass(frozen=True)
class ReportOutcome:
    """Records written by a successful report."""
    points_awarded: int
    skill: SkillRecord
    profile: DeveloperProfile


class AchievementReporter:
    """Validates and applies self-reported achievements.

    Usage:
        reporter = AchievementReporter(resolver)
        rejection = reporter.check(store, "alice", 1, "Shipped a DEX")
        if rejection is None:
            outcome = reporter.apply(store, writes, "alice", 1, now=seq)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def check(
        self,
        store: LedgerStore,
        developer: str,
        category: int,
        description: str,
    ) -> Optional[LedgerResult]:
        """Return the first failed precondition, or None if the report may proceed."""
        if not self._resolver.categories.is_valid(category):
            return LedgerResult.rejected(
                LedgerError.INVALID_SKILL_CATEGORY,
                f"Invalid skill category: {category!r} "
                f"(valid: 1-{self._resolver.categories.max_category})",
            )

        if store.profiles.get(developer) is None:
            return LedgerResult.rejected(
                LedgerError.NOT_AUTHORIZED,
                f"No profile for {developer}: initialize a profile first",
            )

        max_len = self._resolver.max_description_length()
        if len(description) > max_len:
            return LedgerResult.rejected(
                LedgerError.DESCRIPTION_TOO_LONG,
                f"Description is {len(description)} characters, maximum {max_len}",
            )
        return None

    def apply(
        self,
        store: LedgerStore,
        writes: WriteSet,
        developer: str,
        category: int,
        now: int,
        points: Optional[int] = None,
    ) -> ReportOutcome:
        """Write the report. Preconditions must already have passed check().

        points overrides the configured value when replaying a logged event.
        """
        if points is None:
            points = self._resolver.self_report_points()
        key = SkillKey(developer, category)

        current = store.skills.get(key) or SkillRecord()
        skill = writes.set(
            store.skills,
            key,
            SkillRecord(
                points=current.points + points,
                self_reported_count=current.self_reported_count + 1,
                verified_count=current.verified_count,
                last_updated=now,
            ),
        )

        profile = store.profiles.get(developer)
        profile = writes.merge(
            store.profiles,
            developer,
            total_reputation=profile.total_reputation + points,
        )
        return ReportOutcome(points_awarded=points, skill=skill, profile=profile)
