"""Peer verification engine — reputation-gated attestation of a peer's skill.

Rules, checked in this order (first failure wins):
1. Category must be inside the configured range.
2. Self-verification is structurally blocked.
3. The verifier's live total reputation must meet the minimum.
   A verifier without a profile reads as reputation 0.
4. At most one verification per (verifier, developer, category), ever.
5. Verification can only boost an existing skill record, never create one.
6. Both profiles must exist.

Verifying grants the verifier nothing but a count increment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from devcred.models.result import LedgerError, LedgerResult
from devcred.models.skill import (
    DeveloperProfile,
    ReceiptKey,
    SkillKey,
    SkillRecord,
    VerificationReceipt,
)
from devcred.persistence.ledger_store import LedgerStore, WriteSet

if TYPE_CHECKING:
    from devcred.policy.resolver import PolicyResolver


@dataclass(frozen=True)
class VerificationOutcome:
    """Records written by a successful verification."""
    points_awarded: int
    receipt: VerificationReceipt
    skill: SkillRecord
    developer_profile: DeveloperProfile
    verifier_profile: DeveloperProfile


class PeerVerificationEngine:
    """Validates and applies peer verifications.

    Usage:
        engine = PeerVerificationEngine(resolver)
        rejection = engine.check(store, "victor", "dana", 1)
        if rejection is None:
            outcome = engine.apply(store, writes, "victor", "dana", 1, now=seq)
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def check(
        self,
        store: LedgerStore,
        verifier: str,
        developer: str,
        category: int,
    ) -> Optional[LedgerResult]:
        """Return the first failed precondition, or None if verification may proceed."""
        if not self._resolver.categories.is_valid(category):
            return LedgerResult.rejected(
                LedgerError.INVALID_SKILL_CATEGORY,
                f"Invalid skill category: {category!r} "
                f"(valid: 1-{self._resolver.categories.max_category})",
            )

        if verifier == developer:
            return LedgerResult.rejected(
                LedgerError.CANNOT_VERIFY_SELF,
                "Self-verification is not allowed",
            )

        verifier_profile = store.profiles.get(verifier)
        reputation = verifier_profile.total_reputation if verifier_profile else 0
        minimum = self._resolver.min_verifier_reputation()
        if reputation < minimum:
            return LedgerResult.rejected(
                LedgerError.INSUFFICIENT_REPUTATION,
                f"Verifier reputation {reputation} below minimum {minimum} to verify",
            )

        if ReceiptKey(verifier, developer, category) in store.receipts:
            return LedgerResult.rejected(
                LedgerError.ALREADY_VERIFIED,
                f"{verifier} has already verified {developer} in category {category}",
            )

        if SkillKey(developer, category) not in store.skills:
            return LedgerResult.rejected(
                LedgerError.SKILL_NOT_FOUND,
                f"{developer} has no existing skill in category {category}. "
                f"Verification can only boost existing skills, not create them.",
            )

        if store.profiles.get(developer) is None or verifier_profile is None:
            return LedgerResult.rejected(
                LedgerError.NOT_AUTHORIZED,
                f"Both {verifier} and {developer} must have profiles",
            )
        return None

    def apply(
        self,
        store: LedgerStore,
        writes: WriteSet,
        verifier: str,
        developer: str,
        category: int,
        now: int,
        bonus: Optional[int] = None,
    ) -> VerificationOutcome:
        """Write the verification. Preconditions must already have passed check()."""
        if bonus is None:
            bonus = self._resolver.peer_verification_points()

        receipt = writes.set(
            store.receipts,
            ReceiptKey(verifier, developer, category),
            VerificationReceipt(verification_sequence=now, points_awarded=bonus),
        )

        skill_key = SkillKey(developer, category)
        skill = store.skills.get(skill_key)
        skill = writes.merge(
            store.skills,
            skill_key,
            points=skill.points + bonus,
            verified_count=skill.verified_count + 1,
            last_updated=now,
        )

        developer_profile = store.profiles.get(developer)
        developer_profile = writes.merge(
            store.profiles,
            developer,
            total_reputation=developer_profile.total_reputation + bonus,
        )

        verifier_profile = store.profiles.get(verifier)
        verifier_profile = writes.merge(
            store.profiles,
            verifier,
            verifications_given=verifier_profile.verifications_given + 1,
        )

        return VerificationOutcome(
            points_awarded=bonus,
            receipt=receipt,
            skill=skill,
            developer_profile=developer_profile,
            verifier_profile=verifier_profile,
        )
