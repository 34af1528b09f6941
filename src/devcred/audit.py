"""Ledger audit — recompute the cross-relation invariants from stored state.

Operations maintain totals incrementally. This module recomputes them
from scratch so drift (a bad import, a hand-edited state file) is caught:
- total_reputation equals the sum of the developer's skill points.
- verified_count equals the receipts issued for that (developer, category).
- verifications_given equals the receipts issued by that verifier.
- points equal self-reported points plus the points of each receipt.
- every receipt references two profiles and an existing skill record.
- every skill record belongs to a profile and sits in a valid category.
"""

from __future__ import annotations

from collections import Counter

from devcred.models.skill import SkillKey
from devcred.persistence.ledger_store import LedgerStore
from devcred.policy.resolver import PolicyResolver


def audit_ledger(store: LedgerStore, resolver: PolicyResolver) -> list[str]:
    """Return a list of invariant violations. Empty means the ledger is consistent."""
    violations: list[str] = []
    self_points = resolver.self_report_points()

    reputation_sums: Counter[str] = Counter()
    for key, record in store.skills.items():
        reputation_sums[key.developer] += record.points
        if store.profiles.get(key.developer) is None:
            violations.append(f"Skill {key.developer}/{key.category} has no profile")
        if not resolver.categories.is_valid(key.category):
            violations.append(
                f"Skill {key.developer}/{key.category} is outside the category range"
            )

    verified_counts: Counter[SkillKey] = Counter()
    given_counts: Counter[str] = Counter()
    bonus_sums: Counter[SkillKey] = Counter()
    for key, receipt in store.receipts.items():
        skill_key = SkillKey(key.developer, key.category)
        verified_counts[skill_key] += 1
        bonus_sums[skill_key] += receipt.points_awarded
        given_counts[key.verifier] += 1
        if key.verifier == key.developer:
            violations.append(
                f"Receipt {key.verifier}->{key.developer}/{key.category} is a self-verification"
            )
        if store.profiles.get(key.verifier) is None:
            violations.append(f"Receipt verifier {key.verifier} has no profile")
        if store.profiles.get(key.developer) is None:
            violations.append(f"Receipt developer {key.developer} has no profile")
        if skill_key not in store.skills:
            violations.append(
                f"Receipt {key.verifier}->{key.developer}/{key.category} has no skill record"
            )

    for developer, profile in store.profiles.items():
        expected = reputation_sums.get(developer, 0)
        if profile.total_reputation != expected:
            violations.append(
                f"{developer}: total_reputation {profile.total_reputation} "
                f"!= sum of skill points {expected}"
            )
        if profile.verifications_given != given_counts.get(developer, 0):
            violations.append(
                f"{developer}: verifications_given {profile.verifications_given} "
                f"!= receipts issued {given_counts.get(developer, 0)}"
            )

    for key, record in store.skills.items():
        receipts = verified_counts.get(key, 0)
        if record.verified_count != receipts:
            violations.append(
                f"Skill {key.developer}/{key.category}: verified_count "
                f"{record.verified_count} != receipts {receipts}"
            )
        expected_points = record.self_reported_count * self_points + bonus_sums.get(key, 0)
        if record.points != expected_points:
            violations.append(
                f"Skill {key.developer}/{key.category}: points {record.points} "
                f"!= reported and verified total {expected_points}"
            )

    return violations
